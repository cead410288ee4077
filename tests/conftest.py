"""Shared fakes for the supervisor tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from standalone_supervisor.management import ManagementClient
from standalone_supervisor.models import (
    SUCCESS,
    ConnectionInfo,
    LaunchSpec,
    Operation,
    OperationResult,
)


class FakeClient(ManagementClient):
    """Scripted management client.

    ``states`` are returned by successive server-state reads; the last one
    repeats.  An exception instance in ``states`` is raised instead.
    ``responses`` maps other operation names to a result or an exception.
    """

    def __init__(self, states=("RUNNING",), responses=None, on_execute=None):
        self.states = list(states)
        self.responses = dict(responses or {})
        self.on_execute = on_execute
        self.operations: list[Operation] = []
        self.closed = False

    @property
    def names(self) -> list[str]:
        return [op.name for op in self.operations]

    async def execute(self, operation: Operation) -> OperationResult:
        self.operations.append(operation)
        if self.on_execute is not None:
            self.on_execute(operation)
        if operation.name == "read-attribute":
            state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
            if isinstance(state, BaseException):
                raise state
            return OperationResult(SUCCESS, state)
        resp = self.responses.get(operation.name, OperationResult(SUCCESS))
        if isinstance(resp, BaseException):
            raise resp
        return resp

    async def close(self) -> None:
        self.closed = True


class FakeServerProcess:
    def __init__(self, pid: int = 4242, exit_code: int | None = None) -> None:
        self.pid = pid
        self.stdout = asyncio.StreamReader()
        self.exit_code = None
        self.destroyed = 0
        if exit_code is not None:
            self.exit(exit_code)

    def has_exited(self) -> bool:
        return self.exit_code is not None

    def exit(self, code: int) -> None:
        self.exit_code = code
        self.stdout.feed_eof()

    def emit(self, line: str) -> None:
        self.stdout.feed_data(f"{line}\n".encode())

    async def destroy(self, timeout: float = 10.0) -> int:
        self.destroyed += 1
        if self.exit_code is None:
            self.exit(143)
        return self.exit_code


class FakeLauncher:
    def __init__(self, exit_code: int | None = None) -> None:
        self.exit_code = exit_code
        self.spawned: list[FakeServerProcess] = []

    async def spawn(self, spec: LaunchSpec) -> FakeServerProcess:
        proc = FakeServerProcess(pid=4242 + len(self.spawned), exit_code=self.exit_code)
        self.spawned.append(proc)
        return proc

    @property
    def process(self) -> FakeServerProcess:
        return self.spawned[-1]


class RecordingSleep:
    """Stand-in for asyncio.sleep that records waits and returns at once."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def jboss_home(tmp_path: Path) -> Path:
    home = tmp_path / "jboss"
    (home / "modules").mkdir(parents=True)
    (home / "bundles").mkdir()
    (home / "jboss-modules.jar").write_bytes(b"")
    return home


@pytest.fixture
def launch_spec(jboss_home: Path, tmp_path: Path) -> LaunchSpec:
    return LaunchSpec(
        home=jboss_home,
        modules_dir=jboss_home / "modules",
        bundles_dir=jboss_home / "bundles",
        java_home=tmp_path / "jdk",
        jvm_args=("-Xmx512m",),
        startup_timeout=2,
    )


@pytest.fixture
def connection() -> ConnectionInfo:
    return ConnectionInfo("127.0.0.1", 9999)
