from pathlib import Path

import pytest

from standalone_supervisor.config import DEFAULT_JVM_ARGS, Config
from standalone_supervisor.errors import ConfigurationError

ENV_VARS = (
    "JBOSS_HOME",
    "JBOSS_MODULES_PATH",
    "JBOSS_BUNDLES_PATH",
    "JAVA_HOME",
    "JBOSS_JVM_ARGS",
    "JBOSS_SERVER_CONFIG",
    "JBOSS_STARTUP_TIMEOUT",
    "JBOSS_MANAGEMENT_HOST",
    "JBOSS_MANAGEMENT_PORT",
    "JBOSS_MANAGEMENT_USERNAME",
    "JBOSS_MANAGEMENT_PASSWORD",
    "JBOSS_CLIENT_FACTORY",
)


def make_client(info):
    return info


@pytest.fixture
def env(monkeypatch, tmp_path):
    # setenv first so monkeypatch restores the variable's absence afterwards,
    # including values load_dotenv() writes.
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("JBOSS_HOME", str(tmp_path / "jboss"))
    monkeypatch.setenv("JAVA_HOME", str(tmp_path / "jdk"))
    return monkeypatch


class TestFromEnv:
    def test_defaults(self, env, tmp_path):
        config = Config.from_env(tmp_path / "missing.env")

        home = tmp_path / "jboss"
        assert config.home == home
        assert config.modules_dir == home / "modules"
        assert config.bundles_dir == home / "bundles"
        assert config.java_home == tmp_path / "jdk"
        assert config.jvm_args == tuple(DEFAULT_JVM_ARGS.split())
        assert config.server_config is None
        assert config.startup_timeout == 60
        assert config.connection_info().host == "127.0.0.1"
        assert config.connection_info().port == 9999
        assert config.connection_info().auth is None

    def test_overrides(self, env, tmp_path):
        env.setenv("JBOSS_MODULES_PATH", "/opt/modules")
        env.setenv("JBOSS_JVM_ARGS", "-Xmx1g '-Dmsg=hello world'")
        env.setenv("JBOSS_SERVER_CONFIG", "standalone-full.xml")
        env.setenv("JBOSS_STARTUP_TIMEOUT", "120")
        env.setenv("JBOSS_MANAGEMENT_PORT", "10090")
        env.setenv("JBOSS_MANAGEMENT_USERNAME", "admin")
        env.setenv("JBOSS_MANAGEMENT_PASSWORD", "secret")

        config = Config.from_env(tmp_path / "missing.env")
        spec = config.launch_spec()

        assert spec.modules_dir == Path("/opt/modules")
        assert spec.jvm_args == ("-Xmx1g", "-Dmsg=hello world")
        assert spec.server_config == "standalone-full.xml"
        assert spec.startup_timeout == 120
        info = config.connection_info()
        assert info.port == 10090
        assert info.auth() == ("admin", "secret")

    def test_reads_env_file(self, env, tmp_path):
        env.delenv("JBOSS_HOME")
        env_file = tmp_path / "supervisor.env"
        env_file.write_text("JBOSS_HOME=/srv/wildfly\nJBOSS_STARTUP_TIMEOUT=30\n")

        config = Config.from_env(env_file)

        assert config.home == Path("/srv/wildfly")
        assert config.startup_timeout == 30

    def test_home_is_required(self, env, tmp_path):
        env.delenv("JBOSS_HOME")
        with pytest.raises(ConfigurationError, match="JBOSS_HOME"):
            Config.from_env(tmp_path / "missing.env")

    def test_bad_integer(self, env, tmp_path):
        env.setenv("JBOSS_STARTUP_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="JBOSS_STARTUP_TIMEOUT"):
            Config.from_env(tmp_path / "missing.env")

    def test_java_home_from_path(self, env, tmp_path):
        env.delenv("JAVA_HOME")
        java = tmp_path / "jdk17" / "bin" / "java"
        java.parent.mkdir(parents=True)
        java.write_text("")
        env.setattr("standalone_supervisor.config.shutil.which", lambda name: str(java))

        config = Config.from_env(tmp_path / "missing.env")

        assert config.java_home == (tmp_path / "jdk17").resolve()

    def test_no_java_anywhere(self, env, tmp_path):
        env.delenv("JAVA_HOME")
        env.setattr("standalone_supervisor.config.shutil.which", lambda name: None)
        with pytest.raises(ConfigurationError, match="JAVA_HOME"):
            Config.from_env(tmp_path / "missing.env")


class TestClientFactory:
    def test_resolves_module_attr(self, env, tmp_path):
        env.setenv("JBOSS_CLIENT_FACTORY", f"{__name__}:make_client")
        config = Config.from_env(tmp_path / "missing.env")
        assert config.load_client_factory() is make_client

    def test_unset(self, env, tmp_path):
        config = Config.from_env(tmp_path / "missing.env")
        with pytest.raises(ConfigurationError, match="JBOSS_CLIENT_FACTORY"):
            config.load_client_factory()

    def test_unknown_module(self, env, tmp_path):
        env.setenv("JBOSS_CLIENT_FACTORY", "no_such_module_xyz:create")
        config = Config.from_env(tmp_path / "missing.env")
        with pytest.raises(ConfigurationError, match="no_such_module_xyz"):
            config.load_client_factory()
