"""MCP Server exposing the managed server's lifecycle as tools over HTTP."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from standalone_supervisor.controller import LifecycleController
from standalone_supervisor.models import ServerState

# Default port for the persistent HTTP daemon
DEFAULT_PORT = 8902


class SupervisorTools:
    """Tool implementations; each returns a JSON-able dict and never raises."""

    def __init__(self, controller: LifecycleController) -> None:
        self.controller = controller

    async def start_server(self) -> dict:
        """Start the managed server and wait until it reports running.

        Blocks for up to the configured startup timeout.  Fails if the
        server process exits or the timeout elapses first.
        """
        ctl = self.controller
        try:
            await ctl.start()
        except Exception as exc:
            return {"status": "error", "error": str(exc), "exit_code": ctl.exit_code}
        return {"status": ctl.state.value, "pid": ctl.pid}

    async def stop_server(self) -> dict:
        """Shut the managed server down.

        Requests a graceful shutdown, waits up to 5 seconds for the server to
        finish, then terminates the process.  Does nothing if it is not
        running.
        """
        ctl = self.controller
        try:
            await ctl.stop()
        except Exception as exc:
            return {"status": "error", "error": str(exc)}
        return {"status": ctl.state.value, "exit_code": ctl.exit_code}

    async def deploy(self, path: str, name: str) -> dict:
        """Deploy an archive to the running server.

        Args:
            path: Filesystem path of the deployment archive.
            name: Deployment name (e.g. "app.war").
        """
        try:
            status = await self.controller.deploy(path, name)
        except Exception as exc:
            return {"name": name, "status": "error", "error": str(exc)}
        return {"name": name, "status": status.value}

    async def server_status(self) -> dict:
        """Report the lifecycle state, PID and exit code of the managed server."""
        ctl = self.controller
        return {
            "state": ctl.state.value,
            "running": ctl.state is ServerState.RUNNING,
            "pid": ctl.pid,
            "exit_code": ctl.exit_code,
        }

    async def get_output(self, tail: int = 2000) -> dict[str, Any]:
        """Get the most recent console output of the managed server.

        Args:
            tail: Number of characters to retrieve from the end of the buffer.
        """
        buf = self.controller.output
        return {
            "state": self.controller.state.value,
            "output": buf.tail(tail),
            "seq": buf.seq,
        }


def create_server(
    controller: LifecycleController,
    port: int = DEFAULT_PORT,
) -> FastMCP:
    """Create and configure the MCP standalone supervisor server."""

    tools = SupervisorTools(controller)

    mcp = FastMCP(
        name="standalone-supervisor",
        instructions=(
            "Controls one managed application server. Use start_server and "
            "stop_server for its lifecycle, deploy to push an archive, "
            "server_status to check state, and get_output to read its console."
        ),
        host="127.0.0.1",
        port=port,
        stateless_http=True,
    )

    for fn in (
        tools.start_server,
        tools.stop_server,
        tools.deploy,
        tools.server_status,
        tools.get_output,
    ):
        mcp.tool()(fn)

    return mcp
