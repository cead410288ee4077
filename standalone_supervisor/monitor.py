from __future__ import annotations

import logging

from .management import ManagementClient
from .models import Operation

log = logging.getLogger(__name__)

TRANSITIONAL_STATES = ("STARTING", "STOPPING")


class ServerStateMonitor:
    """Answers "is the server up?" by reading ``server-state``.

    The answer latches: once the server has been seen running it is not
    polled again until :meth:`reset` is called by an explicit stop.
    """

    def __init__(self, client: ManagementClient | None = None) -> None:
        self.client = client
        self._running = False

    async def is_running(self) -> bool:
        if self._running:
            return True
        if self.client is None:
            return False
        try:
            rsp = await self.client.execute(Operation.read_attribute("server-state"))
        except Exception as exc:
            log.debug("server-state query failed: %s", exc)
            return False
        self._running = rsp.succeeded and rsp.result not in TRANSITIONAL_STATES
        return self._running

    def reset(self) -> None:
        self._running = False
