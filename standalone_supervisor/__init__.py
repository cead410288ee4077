"""Standalone Supervisor: boots and stops one managed application server.

The :class:`LifecycleController` launches the server process, drains its
console, polls the management interface until the server reports running,
and handles graceful shutdown and deployments.

Can run as an MCP daemon:
    python -m standalone_supervisor
"""

from standalone_supervisor.controller import LifecycleController
from standalone_supervisor.management import ManagementClient
from standalone_supervisor.models import ConnectionInfo, LaunchSpec, ServerState
from standalone_supervisor.server import create_server

__all__ = [
    "ConnectionInfo",
    "LaunchSpec",
    "LifecycleController",
    "ManagementClient",
    "ServerState",
    "create_server",
]
