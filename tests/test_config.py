"""
Tests for configuration loading — environment, .env and YAML sources.
"""

import textwrap
from pathlib import Path

import pytest

from app.core.config.loader import ConfigError, load_config, read_env_file

SECRET = "x" * 40


def _env(**extra: str) -> dict[str, str]:
    env = {"SERVICE_TEMPLATE__JWT_SECRET": SECRET}
    env.update(extra)
    return env


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(environ=_env(), env_file=None)
        assert config.database_url == "sqlite:///tasks.db"
        assert config.server_host == "0.0.0.0"
        assert config.server_port == 3000
        assert config.cors_config.allowed_origins == ["*"]

    def test_missing_secret(self):
        with pytest.raises(ConfigError):
            load_config(environ={}, env_file=None)

    def test_short_secret(self):
        with pytest.raises(ConfigError):
            load_config(environ={"SERVICE_TEMPLATE__JWT_SECRET": "short"}, env_file=None)

    def test_nested_keys(self):
        config = load_config(
            environ=_env(
                SERVICE_TEMPLATE__SERVER_PORT="8081",
                SERVICE_TEMPLATE__DATABASE__TIMEOUT="5",
            ),
            env_file=None,
        )
        assert config.server_port == 8081
        assert config.database.timeout == 5.0

    def test_comma_separated_lists(self):
        config = load_config(
            environ=_env(
                SERVICE_TEMPLATE__CORS_CONFIG__ALLOWED_ORIGINS="http://a.test, http://b.test",
            ),
            env_file=None,
        )
        assert config.cors_config.allowed_origins == ["http://a.test", "http://b.test"]

    def test_invalid_port(self):
        with pytest.raises(ConfigError):
            load_config(environ=_env(SERVICE_TEMPLATE__SERVER_PORT="70000"), env_file=None)

    def test_unprefixed_keys_ignored(self):
        config = load_config(environ=_env(SERVER_PORT="1"), env_file=None)
        assert config.server_port == 3000


class TestSources:
    def test_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(textwrap.dedent(f"""\
            # comment
            SERVICE_TEMPLATE__JWT_SECRET="{SECRET}"
            export SERVICE_TEMPLATE__SERVER_PORT=4000
        """))
        config = load_config(environ={}, env_file=env_file)
        assert config.server_port == 4000

    def test_environment_overrides_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("SERVICE_TEMPLATE__SERVER_PORT=4000\n")
        config = load_config(
            environ=_env(SERVICE_TEMPLATE__SERVER_PORT="5000"), env_file=env_file
        )
        assert config.server_port == 5000

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "service.yml"
        path.write_text(textwrap.dedent(f"""\
            jwt_secret: {SECRET}
            server_port: 9000
            cors_config:
              allowed_origins: ["https://app.test"]
        """))
        config = load_config(environ={}, env_file=None, config_file=path)
        assert config.server_port == 9000
        assert config.cors_config.allowed_origins == ["https://app.test"]

    def test_yaml_path_from_environment(self, tmp_path: Path):
        path = tmp_path / "service.yml"
        path.write_text("server_port: 9100\n")
        config = load_config(
            environ=_env(SERVICE_TEMPLATE_CONFIG=str(path)), env_file=None
        )
        assert config.server_port == 9100

    def test_env_overrides_yaml(self, tmp_path: Path):
        path = tmp_path / "service.yml"
        path.write_text("server_port: 9000\n")
        config = load_config(
            environ=_env(SERVICE_TEMPLATE__SERVER_PORT="9001"),
            env_file=None,
            config_file=path,
        )
        assert config.server_port == 9001

    def test_missing_yaml_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(environ=_env(), env_file=None, config_file=tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "service.yml"
        path.write_text("server_port: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(environ=_env(), env_file=None, config_file=path)

    def test_yaml_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "service.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(environ=_env(), env_file=None, config_file=path)


class TestReadEnvFile:
    def test_missing_file(self, tmp_path: Path):
        assert read_env_file(tmp_path / "absent") == {}

    def test_quotes_and_comments(self, tmp_path: Path):
        path = tmp_path / ".env"
        path.write_text("# c\nA='1'\nB=\"two\"\n\nC=3\n")
        assert read_env_file(path) == {"A": "1", "B": "two", "C": "3"}
