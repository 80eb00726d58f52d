"""
Office Plant Tracker Backend — Application Package Initializer
==============================================================

What: Marks the `plant_tracker` directory as a Python package.
Why:  Enables module imports like `from plant_tracker.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend keeps the same layering for every feature:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Stores, CSV reader, materializer
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    - Routes translate query strings, bodies and uploads into service calls
    - Services own the location tree, the plant catalog and the CSV import
    - Models describe the two tables; Schemas describe the JSON contract
    - Database layer hands out one session (one transaction) per request
"""

__version__ = "1.0.0"
