"""Database resource adapters for environment sessions.

- SQLiteFileResource: temporary SQLite file, no external runtime needed
- PostgresContainerResource: PostgreSQL in a container (testcontainers);
  imported lazily because testcontainers is a test-only dependency
"""

from .sqlite_file import SQLiteFileResource

__all__ = ["SQLiteFileResource"]
