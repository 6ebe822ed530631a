"""
Schools24 Backend — Application Package
========================================

What: School-management REST API (auth, students, teachers, academics,
      attendance, fees, announcements).
Who:  Imported by uvicorn (`app.main:app`), alembic, and the test suite.

Layering:

    ┌─────────────────────────────────────┐
    │        Routes (HTTP handlers)       │  ← parse request, shape response
    ├─────────────────────────────────────┤
    │         Services (domain rules)     │  ← validation, orchestration
    ├─────────────────────────────────────┤
    │     Repositories (data access)      │  ← one query per method
    ├─────────────────────────────────────┤
    │   Models (ORM) · Schemas (API)      │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
