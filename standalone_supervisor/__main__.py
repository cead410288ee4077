"""Run the supervisor as a persistent MCP daemon over HTTP.

Loads the server settings from the environment (and an optional .env
file), boots the managed server and serves the lifecycle tools until
interrupted.  The managed server is stopped on the way out.

Usage:
    python -m standalone_supervisor [--port PORT] [--env-file FILE] [--no-autostart]
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path

import uvicorn

from standalone_supervisor.config import Config
from standalone_supervisor.controller import LifecycleController
from standalone_supervisor.errors import SupervisorError
from standalone_supervisor.management import ClientFactory
from standalone_supervisor.server import DEFAULT_PORT, create_server

log = logging.getLogger(__name__)


async def _run(
    config: Config, factory: ClientFactory, port: int, autostart: bool
) -> None:
    controller = LifecycleController(
        config.connection_info(), config.launch_spec(), factory
    )
    server = create_server(controller=controller, port=port)

    if autostart:
        try:
            await controller.start()
        except SupervisorError:
            log.exception("Managed server failed to start")

    app = server.streamable_http_app()
    uvi = uvicorn.Server(
        uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    )

    # _serve() skips uvicorn's own signal capture so ours stay installed.
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    serve_task = asyncio.create_task(uvi._serve())

    await shutdown.wait()
    log.info("Signal received — shutting down")

    uvi.should_exit = True
    await serve_task
    log.info("Stopping managed server")
    await controller.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Standalone server supervisor daemon")
    parser.add_argument(
        "--port", type=int, default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Settings file to load before reading the environment",
    )
    parser.add_argument(
        "--no-autostart", action="store_true",
        help="Wait for a start_server call instead of booting immediately",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [standalone-supervisor] %(levelname)s %(message)s",
    )

    try:
        config = Config.from_env(args.env_file)
        factory = config.load_client_factory()
    except SupervisorError as exc:
        parser.error(str(exc))

    log.info("Starting standalone-supervisor on http://127.0.0.1:%d/mcp", args.port)
    asyncio.run(_run(config, factory, args.port, not args.no_autostart))


if __name__ == "__main__":
    main()
