from __future__ import annotations

import os
import pkgutil
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError
from .management import ClientFactory
from .models import ConnectionInfo, LaunchSpec

DEFAULT_JVM_ARGS = (
    "-Xms64m -Xmx512m -Djava.net.preferIPv4Stack=true "
    "-Dorg.jboss.resolver.warning=true "
    "-Dsun.rmi.dgc.client.gcInterval=3600000 "
    "-Dsun.rmi.dgc.server.gcInterval=3600000"
)


@dataclass(frozen=True)
class Config:
    home: Path
    modules_dir: Path
    bundles_dir: Path
    java_home: Path
    jvm_args: tuple[str, ...]
    server_config: str | None = None
    startup_timeout: int = 60
    management_host: str = "127.0.0.1"
    management_port: int = 9999
    username: str | None = None
    password: str | None = None
    client_factory: str | None = None

    def connection_info(self) -> ConnectionInfo:
        auth = None
        if self.username:
            creds = (self.username, self.password or "")
            auth = lambda: creds  # noqa: E731
        return ConnectionInfo(self.management_host, self.management_port, auth)

    def launch_spec(self) -> LaunchSpec:
        return LaunchSpec(
            home=self.home,
            modules_dir=self.modules_dir,
            bundles_dir=self.bundles_dir,
            java_home=self.java_home,
            jvm_args=self.jvm_args,
            server_config=self.server_config,
            startup_timeout=self.startup_timeout,
        )

    def load_client_factory(self) -> ClientFactory:
        """Import the ``module:attr`` named by JBOSS_CLIENT_FACTORY."""
        if not self.client_factory:
            raise ConfigurationError("JBOSS_CLIENT_FACTORY is not set")
        try:
            return pkgutil.resolve_name(self.client_factory)
        except (ImportError, AttributeError, ValueError) as exc:
            raise ConfigurationError(
                f"Cannot load client factory {self.client_factory!r}: {exc}"
            ) from exc

    @classmethod
    def from_env(cls, env_path: str | Path | None = None) -> Config:
        load_dotenv(env_path)

        raw_home = os.getenv("JBOSS_HOME")
        if not raw_home:
            raise ConfigurationError("JBOSS_HOME is not set")
        home = Path(raw_home)

        modules = Path(os.getenv("JBOSS_MODULES_PATH") or home / "modules")
        bundles = Path(os.getenv("JBOSS_BUNDLES_PATH") or home / "bundles")

        return cls(
            home=home,
            modules_dir=modules,
            bundles_dir=bundles,
            java_home=_java_home(),
            jvm_args=tuple(shlex.split(os.getenv("JBOSS_JVM_ARGS", DEFAULT_JVM_ARGS))),
            server_config=os.getenv("JBOSS_SERVER_CONFIG") or None,
            startup_timeout=_int_env("JBOSS_STARTUP_TIMEOUT", 60),
            management_host=os.getenv("JBOSS_MANAGEMENT_HOST", "127.0.0.1"),
            management_port=_int_env("JBOSS_MANAGEMENT_PORT", 9999),
            username=os.getenv("JBOSS_MANAGEMENT_USERNAME") or None,
            password=os.getenv("JBOSS_MANAGEMENT_PASSWORD") or None,
            client_factory=os.getenv("JBOSS_CLIENT_FACTORY") or None,
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _java_home() -> Path:
    """JAVA_HOME, or the installation owning the `java` found on PATH."""
    raw = os.getenv("JAVA_HOME")
    if raw:
        return Path(raw)
    java = shutil.which("java")
    if java is None:
        raise ConfigurationError("JAVA_HOME is not set and no java on PATH")
    # <java_home>/bin/java
    return Path(java).resolve().parent.parent
