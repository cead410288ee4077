from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Launch inputs: where the server lives and how to reach it
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConnectionInfo:
    host: str
    port: int
    # Called by the management client when the server asks for credentials;
    # returns (username, password).
    auth: Callable[[], tuple[str, str]] | None = None


@dataclass(frozen=True)
class LaunchSpec:
    home: Path
    modules_dir: Path
    bundles_dir: Path
    java_home: Path
    jvm_args: tuple[str, ...] = ()
    server_config: str | None = None
    startup_timeout: int = 60  # seconds


# ---------------------------------------------------------------------------
# ServerState: lifecycle phase of one start/stop cycle
# ---------------------------------------------------------------------------

class ServerState(str, enum.Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED_START = "failed_start"


# ---------------------------------------------------------------------------
# Management operations: requests issued against the running server
# ---------------------------------------------------------------------------

SUCCESS = "success"


@dataclass(frozen=True)
class Operation:
    """A single management request.

    ``address`` is a sequence of ``(type, value)`` pairs; empty means the
    server root.  ``attachments`` are files whose content is streamed along
    with the request (referenced from ``params`` by index).
    """

    name: str
    address: tuple[tuple[str, str], ...] = ()
    params: dict[str, Any] = field(default_factory=dict)
    attachments: tuple[Path, ...] = ()

    @classmethod
    def read_attribute(cls, attribute: str) -> Operation:
        return cls("read-attribute", params={"name": attribute})

    @classmethod
    def shutdown(cls) -> Operation:
        return cls("shutdown")

    @classmethod
    def reload(cls) -> Operation:
        return cls("reload")

    @classmethod
    def deploy(cls, path: str | Path, name: str) -> Operation:
        return cls(
            "add",
            address=(("deployment", name),),
            params={
                "runtime-name": name,
                "enabled": True,
                "content": [{"input-stream-index": 0}],
            },
            attachments=(Path(path),),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.name,
            "address": [{k: v} for k, v in self.address],
            **self.params,
        }


@dataclass(frozen=True)
class OperationResult:
    outcome: str
    result: Any = None
    failure_description: str | None = None
    response_headers: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome == SUCCESS

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OperationResult:
        failure = raw.get("failure-description")
        return cls(
            outcome=raw.get("outcome", "failed"),
            result=raw.get("result"),
            failure_description=None if failure is None else str(failure),
            response_headers=dict(raw.get("response-headers") or {}),
        )


class DeploymentStatus(enum.Enum):
    SUCCESS = "success"
    REQUIRES_RESTART = "requires_restart"
    FAILED = "failed"

    @classmethod
    def classify(cls, result: OperationResult) -> DeploymentStatus:
        if not result.succeeded:
            return cls.FAILED
        headers = result.response_headers
        if headers.get("process-state") in ("reload-required", "restart-required"):
            return cls.REQUIRES_RESTART
        if headers.get("operation-requires-reload") or headers.get(
            "operation-requires-restart"
        ):
            return cls.REQUIRES_RESTART
        return cls.SUCCESS
