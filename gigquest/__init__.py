"""
GigQuest — A Gamified Freelance Marketplace Core
=================================================
Clients post jobs, freelancers apply, and every meaningful action feeds a
points ledger that drives levels, daily streaks and unlockable
achievements.

Package layout::

    gigquest/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Leveling formula, rank badges
    ├── exceptions.py      # Error taxonomy (kind → HTTP status)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (6 tables)
    │   └── seed.py        # Default achievement catalog
    ├── engine/
    │   ├── events.py      # Activity → points table
    │   ├── streaks.py     # Consecutive-day streak calculation
    │   ├── achievements.py # Criteria handlers + unlock evaluation
    │   ├── lifecycle.py   # Job & application state machines
    │   └── identity.py    # The acting user
    ├── services/
    │   ├── ledger_service.py        # Append-only activity ledger
    │   ├── gamification_service.py  # Points, streaks, unlocks, leaderboard
    │   ├── job_service.py           # Job lifecycle
    │   ├── application_service.py   # Application lifecycle
    │   ├── user_service.py          # Users, profiles, stats counters
    │   └── pagination.py            # Offset pagination helpers
    └── api/
        ├── main.py        # FastAPI app
        ├── auth.py        # JWT issuance + verification
        ├── deps.py        # Dependency injection
        ├── serializers.py # ORM → JSON
        └── routes/        # users, jobs, applications, gamification
"""

__version__ = "0.1.0"
