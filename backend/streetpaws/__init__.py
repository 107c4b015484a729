"""
StreetPaws Backend — Application Package Initializer
======================================================

What: Marks the `streetpaws` directory as a Python package.
Why:  Enables module imports like `from streetpaws.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered the same way for every resource (pets, users, auth):

    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← HTTP concerns, envelope shaping
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← Ownership checks, state changes
    ├──────────────────┬──────────────────┤
    │ Models & Schemas │  Realtime hub    │  ← ORM + Pydantic │ WebSocket rooms
    ├──────────────────┴──────────────────┤
    │      Database (Persistence)         │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services never see HTTP objects; they receive a session and an already
    authenticated identity, and raise typed errors from `streetpaws.exceptions`.
"""

__version__ = "1.0.0"
