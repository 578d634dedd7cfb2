"""
gigquest.services.pagination — Offset pagination for list queries
==================================================================

``page``/``limit`` → ``skip = (page - 1) * limit``, plus a single-field
sort.  Used by the job, application and user listing operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


@dataclass(slots=True)
class Page:
    """One page of results plus the totals needed to render pagination."""

    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self, serialize) -> dict:
        return {
            "items": [serialize(item) for item in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


def apply_sort(stmt: Select, model: type, sort_by: str, sort_order: str, allowed: set[str]) -> Select:
    """Order *stmt* by one whitelisted column; unknown columns fall back to ``created_at``."""
    column_name = sort_by if sort_by in allowed else "created_at"
    column = getattr(model, column_name)
    ordered = column.asc() if sort_order == "asc" else column.desc()
    return stmt.order_by(ordered, model.id.asc())


def paginate(session: Session, stmt: Select, page: int, limit: int) -> Page:
    """Run *stmt* for one page and count the full result set."""
    page = max(page, 1)
    limit = max(limit, 1)
    total = session.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ) or 0
    rows = session.scalars(stmt.offset((page - 1) * limit).limit(limit)).all()
    return Page(items=list(rows), total=total, page=page, limit=limit)


def paginate_list(items: list[Any], page: int, limit: int) -> Page:
    """Paginate an already-materialized list (used after in-Python filters)."""
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return Page(items=items[start:start + limit], total=len(items), page=page, limit=limit)
