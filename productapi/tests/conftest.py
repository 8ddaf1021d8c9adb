"""Shared pytest configuration.

Tests marked ``docker`` need a reachable container runtime. They are
skipped, not failed, when none is available.
"""

import logging

import docker
import pytest
from docker.errors import DockerException

logger = logging.getLogger(__name__)


def docker_available() -> bool:
    """Return True if a Docker daemon answers a ping."""
    try:
        client = docker.from_env()
        try:
            return bool(client.ping())
        finally:
            client.close()
    except DockerException as e:
        logger.debug(f"Docker not available: {e}")
        return False


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    docker_items = [item for item in items if "docker" in item.keywords]
    if not docker_items or docker_available():
        return

    skip_docker = pytest.mark.skip(reason="Docker daemon not available")
    for item in docker_items:
        item.add_marker(skip_docker)
