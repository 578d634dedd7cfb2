"""
gigquest.engine.identity — The acting user
===========================================

Every lifecycle operation receives an :class:`Identity` resolved by the
auth provider.  Services trust the ``(user_id, role)`` pair as given.
"""

from __future__ import annotations

from dataclasses import dataclass

from gigquest.database.models import UserRole


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: int
    role: str
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, owner_id: int | None) -> bool:
        return owner_id is not None and owner_id == self.user_id
