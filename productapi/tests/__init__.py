"""Test suite for the Product API.

Organized into four categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - SQLite against temporary files, PostgreSQL in a container
   - aiohttp route layer through aiohttp's test client

3. integration/: End-to-end tests through a live environment session

4. fakes/: Port implementations for testing
"""
