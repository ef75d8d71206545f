"""
Things API: Application Package
=================================

What: A namespaced JSON resource API serving the `things` collection.
Who:  Imported by uvicorn (`thingsapi.main:app`), alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Request pipeline (middleware)     │  ← request id, logging, format suffix
    ├─────────────────────────────────────┤
    │   Routes bound from a RouteTable    │  ← verb + path → action handler
    ├─────────────────────────────────────┤
    │   Services + Serializers            │  ← CRUD rules, entity → JSON mapping
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
