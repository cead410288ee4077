"""Builds the server command line and spawns the server process."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from pathlib import Path

from .errors import ConfigurationError
from .models import LaunchSpec

log = logging.getLogger(__name__)

MODULES_JAR = "jboss-modules.jar"
MAIN_MODULE = "org.jboss.as.standalone"
JAXP_MODULE = "javax.xml.jaxp-provider"
BOOT_LOG = Path("standalone", "log", "boot.log")
LOGGING_CONFIG = Path("standalone", "configuration", "logging.properties")


class ServerProcess:
    """Handle to the spawned server with stdout and stderr merged."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def stdout(self) -> asyncio.StreamReader:
        return self._process.stdout  # type: ignore[return-value]

    @property
    def exit_code(self) -> int | None:
        return self._process.returncode

    def has_exited(self) -> bool:
        return self._process.returncode is not None

    async def destroy(self, timeout: float = 10.0) -> int:
        """Terminate the process and wait for it to exit.

        Sends SIGTERM to the process group, waits up to `timeout` seconds,
        then escalates to SIGKILL.
        """
        proc = self._process
        if proc.returncode is not None:
            return proc.returncode

        self._signal(signal.SIGTERM)
        try:
            return await asyncio.wait_for(proc.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning(
                "Server (pid=%s) did not exit within %ss — killing", proc.pid, timeout
            )
        self._signal(signal.SIGKILL)
        return await proc.wait()

    def _signal(self, sig: signal.Signals) -> None:
        try:
            os.killpg(os.getpgid(self._process.pid), sig)
        except ProcessLookupError:
            # Exited between the returncode check and the signal
            pass


class ProcessLauncher:
    @staticmethod
    def build_command(spec: LaunchSpec) -> list[str]:
        """Return the argument vector that boots a standalone server."""
        home = Path(spec.home)
        modules_jar = (home / MODULES_JAR).absolute()
        if not modules_jar.exists():
            raise ConfigurationError(f"Cannot find: {modules_jar}")

        modules = str(Path(spec.modules_dir).absolute())
        bundles = str(Path(spec.bundles_dir).absolute())

        # A java_home containing spaces still stays a single argv element.
        cmd = [str(Path(spec.java_home) / "bin" / "java")]
        cmd.extend(spec.jvm_args)
        cmd += [
            f"-Djboss.home.dir={home}",
            f"-Dorg.jboss.boot.log.file={home / BOOT_LOG}",
            f"-Dlogging.configuration=file:{home / LOGGING_CONFIG}",
            f"-Djboss.modules.dir={modules}",
            f"-Djboss.bundles.dir={bundles}",
            "-jar", str(modules_jar),
            "-mp", modules,
            "-jaxpmodule", JAXP_MODULE,
            MAIN_MODULE,
        ]
        if spec.server_config is not None:
            cmd += ["-server-config", spec.server_config]
        return cmd

    async def spawn(self, spec: LaunchSpec) -> ServerProcess:
        cmd = self.build_command(spec)
        log.info("Launching server: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(spec.home),
                # New process group so the whole server tree can be signalled
                start_new_session=True,
            )
        except OSError as exc:
            raise ConfigurationError(f"Failed to launch {cmd[0]}: {exc}") from exc
        log.info("Server process started (pid=%s)", process.pid)
        return ServerProcess(process)
