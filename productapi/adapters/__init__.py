"""External adapters for the Product API.

This package contains all external dependencies (asyncpg, aiosqlite,
aiohttp, httpx, testcontainers) and provides implementations of the core
port interfaces.

Adapter Organization:

- store/: Product persistence (SQLite, PostgreSQL)
- http/: aiohttp route layer and the application host
- resource/: Ephemeral databases for environment sessions
"""
