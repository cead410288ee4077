"""Exceptions raised by the supervisor."""

from __future__ import annotations


class SupervisorError(Exception):
    pass


class ConfigurationError(SupervisorError, ValueError):
    """A launch artifact or setting is missing or invalid."""


class StartupTimeoutError(SupervisorError):
    def __init__(self, timeout: int, message: str | None = None) -> None:
        self.timeout = timeout
        super().__init__(
            message or f"Managed server was not started within [{timeout}] s"
        )


class ProcessDiedError(StartupTimeoutError):
    """The server process exited before it ever reported running."""

    def __init__(self, timeout: int, exit_code: int | None) -> None:
        self.exit_code = exit_code
        super().__init__(
            timeout,
            f"Managed server was not started within [{timeout}] s: "
            f"process exited with code {exit_code}",
        )


class ServerStateError(SupervisorError, RuntimeError):
    pass


class DeploymentError(SupervisorError):
    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        super().__init__(f"Deployment of '{name}' failed: {description}")


class ManagementError(SupervisorError):
    """Transport or protocol failure talking to the management interface."""
