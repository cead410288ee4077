from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import ConnectionInfo, Operation, OperationResult


class ManagementClient(ABC):
    """Connection to a running server's management interface.

    Implementations own the wire format and the upload of any
    ``Operation.attachments``.  Transport and protocol failures must be
    raised as :class:`~standalone_supervisor.errors.ManagementError` (or an
    ``OSError``); an operation that reaches the server but fails is
    reported through ``OperationResult.outcome`` instead.
    """

    @abstractmethod
    async def execute(self, operation: Operation) -> OperationResult:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


ClientFactory = Callable[[ConnectionInfo], ManagementClient]
