"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeProductStorePort: In-memory product table
- FakeDatabaseResource: Resource with scriptable readiness
- FakeApplicationHost: Host that records lifecycle calls
- FakeHostFactory: Host factory that records the overrides it received
"""

from .environment import (
    FakeApplicationHost,
    FakeClient,
    FakeDatabaseResource,
    FakeHostFactory,
)
from .store import FakeProductStorePort

__all__ = [
    "FakeApplicationHost",
    "FakeClient",
    "FakeDatabaseResource",
    "FakeHostFactory",
    "FakeProductStorePort",
]
