"""Environment session: bring up a database and the application for tests.

The session drives a strictly sequential state machine:

    UNINITIALIZED → RESOURCE_STARTING → RESOURCE_READY → APP_STARTING → LIVE

and reaches TORN_DOWN from any state. Each step consumes the output of
the previous one: the connection string only exists once the resource is
ready, and the schema is ensured through the store of the started host.

Teardown releases in reverse acquisition order: clients, host (stop, then
dispose), resource (stop, then dispose).
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import (
    EnvironmentSetupError,
    ResourceStartupError,
    SessionStateError,
    StorageError,
)
from .models import SessionState
from .ports import ApplicationHostPort, DatabaseResourcePort

logger = logging.getLogger(__name__)

CONNECTION_STRING_KEY = "db_connection_string"

HostFactory = Callable[[dict[str, Any]], ApplicationHostPort]


@dataclass(frozen=True)
class SessionOptions:
    """Timing bounds for an environment session.

    Attributes:
        ready_timeout_seconds: How long to wait for the resource to report
            ready before giving up.
        probe_interval_seconds: Pause between readiness and settle probes.
        settle_timeout_seconds: Upper bound on the settle step that follows
            the first schema ensure.
        settle_probes: Consecutive successful store pings required to
            consider the database settled.
    """

    ready_timeout_seconds: float = 60.0
    probe_interval_seconds: float = 0.5
    settle_timeout_seconds: float = 5.0
    settle_probes: int = 3

    def __post_init__(self) -> None:
        """Validate option invariants on creation."""
        if self.ready_timeout_seconds <= 0:
            raise ValueError("ready_timeout_seconds must be positive")
        if self.probe_interval_seconds < 0:
            raise ValueError("probe_interval_seconds must be non-negative")
        if self.settle_timeout_seconds <= 0:
            raise ValueError("settle_timeout_seconds must be positive")
        if self.settle_probes < 1:
            raise ValueError("settle_probes must be at least 1")


class EnvironmentSession:
    """One bootstrap-to-teardown cycle of database plus application.

    Usage:
        async with EnvironmentSession(resource, host_factory) as session:
            client = session.create_client()
            ...

    Any failure before LIVE tears the session down. ResourceStartupError and
    cancellation propagate unchanged; every other failure is reported as
    EnvironmentSetupError so a broken environment is never mistaken for a
    failing assertion.
    """

    def __init__(
        self,
        resource: DatabaseResourcePort,
        host_factory: HostFactory,
        options: SessionOptions | None = None,
        overrides: Mapping[str, Any] | None = None,
    ):
        """Initialize an empty session.

        Args:
            resource: Database resource to start and own.
            host_factory: Builds an application host from configuration
                overrides. Called exactly once, after the resource is ready.
            options: Timing bounds. Defaults to SessionOptions().
            overrides: Extra configuration passed to the host factory. The
                connection string override is applied on top of these.
        """
        self.resource = resource
        self.host_factory = host_factory
        self.options = options or SessionOptions()
        self.overrides = dict(overrides or {})
        self._state = SessionState.UNINITIALIZED
        self._connection_string: str | None = None
        self._host: ApplicationHostPort | None = None
        self._resource_started = False
        self._host_started = False
        self._schema_ensured = False
        self._clients: list[Any] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def schema_ensured(self) -> bool:
        return self._schema_ensured

    @property
    def connection_string(self) -> str:
        if self._connection_string is None:
            raise SessionStateError(
                f"Connection string is not available in state {self._state.value}"
            )
        return self._connection_string

    @property
    def host(self) -> ApplicationHostPort:
        if self._host is None:
            raise SessionStateError(f"No application host in state {self._state.value}")
        return self._host

    async def __aenter__(self) -> "EnvironmentSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if self._state != SessionState.TORN_DOWN:
            await self.close()

    async def start(self, timeout: float | None = None) -> None:
        """Run the bootstrap sequence up to LIVE.

        Args:
            timeout: Overall deadline in seconds for the whole sequence.
                None means only the per-step bounds apply.

        Raises:
            SessionStateError: If the session was already started.
            ResourceStartupError: If the resource never became ready.
            EnvironmentSetupError: On any other failure before LIVE.
            asyncio.CancelledError: If the caller cancelled the start.
        """
        if self._state != SessionState.UNINITIALIZED:
            raise SessionStateError(f"Cannot start session in state {self._state.value}")

        logger.info("Starting environment session")
        try:
            async with asyncio.timeout(timeout):
                await self._bootstrap()
        except BaseException as e:
            logger.error(
                f"Environment session failed in state {self._state.value}: {e!r}"
            )
            await self._teardown(raise_errors=False)
            if isinstance(e, (ResourceStartupError, asyncio.CancelledError)):
                raise
            if isinstance(e, TimeoutError):
                raise EnvironmentSetupError(
                    f"Environment session did not go live within {timeout}s"
                ) from e
            if isinstance(e, Exception):
                raise EnvironmentSetupError(f"Environment session failed: {e}") from e
            raise

        logger.info(f"Environment session live at {self.host.base_url}")

    async def _bootstrap(self) -> None:
        self._transition(SessionState.RESOURCE_STARTING)
        self._resource_started = True
        await self.resource.start()

        await self._wait_until_ready()
        self._connection_string = self.resource.connection_string()
        self._transition(SessionState.RESOURCE_READY)

        host_overrides = {**self.overrides, CONNECTION_STRING_KEY: self._connection_string}
        self._host = self.host_factory(host_overrides)
        self._transition(SessionState.APP_STARTING)
        self._host_started = True
        await self._host.start()

        await self.ensure_schema()
        await self._settle()
        self._transition(SessionState.LIVE)

    async def _wait_until_ready(self) -> None:
        """Poll the resource readiness probe until it succeeds.

        A single check is bounded by the same deadline. A check that raises
        counts as not ready.

        Raises:
            ResourceStartupError: If the resource is not ready within
                ready_timeout_seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.options.ready_timeout_seconds
        attempt = 0

        while True:
            attempt += 1
            try:
                async with asyncio.timeout_at(deadline):
                    ready = await self.resource.is_ready()
            except Exception as e:
                logger.debug(f"Readiness check #{attempt} failed: {e!r}")
                ready = False

            if ready:
                logger.info(f"Database resource ready after {attempt} probe(s)")
                return

            logger.debug(f"Database resource not ready (probe #{attempt})")
            if loop.time() >= deadline:
                raise ResourceStartupError(
                    f"Database resource not ready after "
                    f"{self.options.ready_timeout_seconds}s ({attempt} probes)"
                )
            await asyncio.sleep(self.options.probe_interval_seconds)

    async def ensure_schema(self) -> None:
        """Create the schema through the live application's own store.

        Raises:
            SessionStateError: If the host has not been started yet.
        """
        if self._state not in (SessionState.APP_STARTING, SessionState.LIVE):
            raise SessionStateError(
                f"Cannot ensure schema in state {self._state.value}: "
                "application host is not running"
            )

        await self.host.store.ensure_schema()
        self._schema_ensured = True
        logger.info("Database schema ensured")

    async def _settle(self) -> None:
        """Wait until the store answers several pings in a row.

        Some engines report ready before they reliably serve statements.
        This replaces a fixed sleep with a bounded active probe.

        Raises:
            EnvironmentSetupError: If the store does not settle within
                settle_timeout_seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.options.settle_timeout_seconds
        streak = 0

        while True:
            try:
                await self.host.store.ping()
                streak += 1
            except StorageError as e:
                logger.debug(f"Settle probe failed: {e}")
                streak = 0

            if streak >= self.options.settle_probes:
                return
            if loop.time() >= deadline:
                raise EnvironmentSetupError(
                    f"Database did not settle within {self.options.settle_timeout_seconds}s"
                )
            await asyncio.sleep(self.options.probe_interval_seconds)

    def create_client(self) -> Any:
        """Return an HTTP client bound to the live application.

        The client is closed when the session is torn down.

        Raises:
            SessionStateError: If the session is not live.
        """
        if self._state != SessionState.LIVE:
            raise SessionStateError(f"Cannot create a client in state {self._state.value}")

        client = self.host.create_client()
        self._clients.append(client)
        return client

    async def close(self) -> None:
        """Tear the session down.

        Safe to call once from any state. Every teardown step runs even if
        an earlier one fails; the first failure is re-raised at the end.

        Raises:
            SessionStateError: If the session was already torn down.
        """
        if self._state == SessionState.TORN_DOWN:
            raise SessionStateError("Environment session already torn down")
        await self._teardown(raise_errors=True)

    async def _teardown(self, raise_errors: bool) -> None:
        previous = self._state
        self._transition(SessionState.TORN_DOWN)
        logger.info(f"Tearing down environment session (was {previous.value})")

        steps: list[tuple[str, Callable[[], Any]]] = []
        for client in self._clients:
            steps.append(("close client", client.aclose))
        if self._host is not None:
            if self._host_started:
                steps.append(("stop host", self._host.stop))
            steps.append(("dispose host", self._host.dispose))
        if self._resource_started:
            steps.append(("stop resource", self.resource.stop))
            steps.append(("dispose resource", self.resource.dispose))
        self._clients.clear()

        first_error: BaseException | None = None
        for name, step in steps:
            try:
                await step()
            except Exception as e:
                logger.error(f"Teardown step '{name}' failed: {e}", exc_info=True)
                if first_error is None:
                    first_error = e

        if first_error is not None and raise_errors:
            raise first_error

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"Session state {self._state.value} -> {state.value}")
        self._state = state
