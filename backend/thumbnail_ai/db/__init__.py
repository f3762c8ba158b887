"""Database Infrastructure — SQLAlchemy Base and standalone session factories.

Invariants:
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests
"""
