"""Lifecycle controller: starts, stops, and deploys to one managed server."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from pathlib import Path

from .console import ConsoleDrain, RingBuffer
from .errors import (
    DeploymentError,
    ManagementError,
    ProcessDiedError,
    ServerStateError,
    StartupTimeoutError,
)
from .launcher import ProcessLauncher, ServerProcess
from .management import ClientFactory
from .models import (
    ConnectionInfo,
    DeploymentStatus,
    LaunchSpec,
    Operation,
    ServerState,
)
from .monitor import ServerStateMonitor

log = logging.getLogger(__name__)

SHUTDOWN_WAIT = 5.0  # seconds to wait for the console shutdown marker
RESTARTABLE = (ServerState.NOT_STARTED, ServerState.STOPPED, ServerState.FAILED_START)


def poll_delays(first: int = 50, floor: int = 100) -> Iterator[int]:
    """Yield the waits (ms) between server-state polls.

    Each wait is ``max(previous // 2, floor)``, so 50 once, then 100 forever.
    """
    sleep = first
    while True:
        yield sleep
        sleep = max(sleep // 2, floor)


class LifecycleController:
    """Owns one server process, its management session and its console.

    ``start``, ``stop`` and ``deploy`` each hold the controller's lock for
    their whole body, so lifecycle operations never interleave.
    """

    def __init__(
        self,
        connection: ConnectionInfo,
        spec: LaunchSpec,
        client_factory: ClientFactory,
        *,
        launcher: ProcessLauncher | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.connection = connection
        self.spec = spec
        self._client_factory = client_factory
        self._launcher = launcher or ProcessLauncher()
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._monitor = ServerStateMonitor()
        self._process: ServerProcess | None = None
        self._console: ConsoleDrain | None = None
        self._state = ServerState.NOT_STARTED
        self.output = RingBuffer()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def exit_code(self) -> int | None:
        return self._process.exit_code if self._process else None

    @property
    def console(self) -> ConsoleDrain | None:
        return self._console

    async def is_running(self) -> bool:
        async with self._lock:
            return await self._monitor.is_running()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        async with self._lock:
            if self._state not in RESTARTABLE:
                raise ServerStateError(
                    f"Cannot start a server that is {self._state.value}"
                )

            self._process = await self._launcher.spawn(self.spec)
            self._console = ConsoleDrain.start(self._process.stdout, buffer=self.output)
            self._monitor.client = self._client_factory(self.connection)
            self._state = ServerState.STARTING

            timeout = self.spec.startup_timeout * 1000
            available = False
            died = False
            delays = poll_delays()
            try:
                while timeout > 0:
                    available = await self._monitor.is_running()
                    if available:
                        break
                    if self._process.has_exited():
                        died = True
                        break
                    sleep = next(delays)
                    await self._sleep(sleep / 1000)
                    timeout -= sleep
            except asyncio.CancelledError:
                await self._abort_start()
                raise

            if not available:
                await self._abort_start()
                if died:
                    raise ProcessDiedError(self.spec.startup_timeout, self.exit_code)
                raise StartupTimeoutError(self.spec.startup_timeout)

            self._state = ServerState.RUNNING
            log.info("Server is running (pid=%s)", self._process.pid)

    async def stop(self) -> None:
        async with self._lock:
            if not await self._monitor.is_running():
                return

            self._state = ServerState.STOPPING
            try:
                client = self._monitor.client
                try:
                    if client is not None:
                        await client.execute(Operation.shutdown())
                except (ManagementError, OSError) as exc:
                    log.warning("Shutdown request failed: %s", exc)
                finally:
                    await self._close_client()

                if self._console is not None:
                    if not await self._console.await_completion(SHUTDOWN_WAIT):
                        log.info(
                            "No shutdown marker after %ss — terminating", SHUTDOWN_WAIT
                        )
            finally:
                self._monitor.reset()
                if self._process is not None:
                    code = await self._process.destroy()
                    log.info("Server stopped (exit code %s)", code)
                if self._console is not None:
                    await self._console.close()
                self._state = ServerState.STOPPED

    async def deploy(self, path: str | Path, name: str) -> DeploymentStatus:
        async with self._lock:
            client = self._monitor.client
            if client is None or not await self._monitor.is_running():
                raise ServerStateError("Cannot deploy to a server that is not running.")

            try:
                result = await client.execute(Operation.deploy(path, name))
            except (ManagementError, OSError) as exc:
                raise DeploymentError(name, str(exc)) from exc

            status = DeploymentStatus.classify(result)
            if status is DeploymentStatus.FAILED:
                raise DeploymentError(
                    name, result.failure_description or f"outcome {result.outcome}"
                )
            elif status is DeploymentStatus.REQUIRES_RESTART:
                log.info("Deployment '%s' requires a restart — reloading", name)
                try:
                    reload = await client.execute(Operation.reload())
                except (ManagementError, OSError) as exc:
                    raise DeploymentError(name, f"reload failed: {exc}") from exc
                if not reload.succeeded:
                    raise DeploymentError(
                        name, f"reload failed: {reload.failure_description}"
                    )
            elif status is DeploymentStatus.SUCCESS:
                log.info("Deployed '%s'", name)
            return status

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _abort_start(self) -> None:
        self._state = ServerState.FAILED_START
        await self._close_client()
        if self._process is not None:
            await self._process.destroy()
        if self._console is not None:
            await self._console.close()

    async def _close_client(self) -> None:
        client, self._monitor.client = self._monitor.client, None
        if client is None:
            return
        try:
            await client.close()
        except Exception:
            log.warning("Error closing management client", exc_info=True)
