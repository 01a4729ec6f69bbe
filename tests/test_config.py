"""Tests for configuration models and the YAML loader."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from dbfacade.config import (
    BackendConfig,
    SINGLE_BACKEND_NAME,
    EnvironmentSettings,
    FacadeConfig,
    create_sample_config,
    expand_env,
    load_backend,
    load_config,
    locate_config_file,
)
from dbfacade.exceptions import ConfigurationError


class TestBackendConfig:
    def test_driver_is_trimmed_and_lowercased(self) -> None:
        config = BackendConfig(driver="  PgSQL ")
        assert config.driver == "pgsql"

    def test_default_driver_is_first_relational_dialect(self) -> None:
        assert BackendConfig().driver == "mysql"
        assert BackendConfig(driver="   ").driver == "mysql"

    def test_unknown_driver_is_accepted_at_construction(self) -> None:
        # validated when the connection is opened, not here
        assert BackendConfig(driver="oracle").driver == "oracle"

    def test_user_and_type_aliases(self) -> None:
        config = BackendConfig(type="redis", user="admin")
        assert config.driver == "redis"
        assert config.username == "admin"

    def test_port_coercion_and_range(self) -> None:
        assert BackendConfig(port="3307").port == 3307
        assert BackendConfig(port="").port is None
        with pytest.raises(ValidationError):
            BackendConfig(port=70000)

    def test_config_is_immutable(self) -> None:
        config = BackendConfig(host="db")
        with pytest.raises(ValidationError):
            config.host = "other"

    def test_masked_hides_password(self) -> None:
        config = BackendConfig(password="secret")
        assert config.masked()["password"] == "***"


class TestFacadeConfig:
    def test_default_backend_falls_back_to_first(self) -> None:
        config = FacadeConfig(backends={"a": {"driver": "sqlite"}, "b": {"driver": "redis"}})
        assert config.default_backend == "a"
        assert config.get_backend().driver == "sqlite"
        assert config.get_backend("b").driver == "redis"

    def test_unknown_default_backend_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FacadeConfig(backends={"a": {}}, default_backend="missing")

    def test_get_unknown_backend(self) -> None:
        config = FacadeConfig(backends={"a": {}})
        with pytest.raises(KeyError):
            config.get_backend("nope")


class TestEnvironmentSettings:
    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DBFACADE_TERMINATE_ON_CONNECTION_FAILURE", "false")
        monkeypatch.setenv("DBFACADE_LOG_LEVEL", "DEBUG")
        settings = EnvironmentSettings()
        assert settings.terminate_on_connection_failure is False
        assert settings.log_level == "DEBUG"


class TestLoadConfig:
    def _write(self, path: Path, data: dict) -> Path:
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    def test_load_with_env_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_DB_PASSWORD", "s3cret")
        monkeypatch.delenv("APP_DB_HOST", raising=False)
        monkeypatch.delenv("APP_DB_PORT", raising=False)
        config_file = self._write(tmp_path / "dbfacade.yaml", {
            "backends": {
                "main": {
                    "driver": "mysql",
                    "host": "${APP_DB_HOST:-db.internal}",
                    "port": "${APP_DB_PORT:-3307}",
                    "database": "app",
                    "user": "app",
                    "password": "${APP_DB_PASSWORD}",
                },
            },
        })

        backend = load_config(config_file).get_backend()

        assert backend.host == "db.internal"
        assert backend.port == 3307
        assert backend.password == "s3cret"

    def test_empty_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("REDIS_PASSWORD", raising=False)
        assert expand_env({"password": "${REDIS_PASSWORD:-}", "port": 6379}) == {"password": "", "port": 6379}

    def test_missing_required_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        config_file = self._write(tmp_path / "c.yaml", {
            "backends": {"main": {"password": "${NOT_SET_ANYWHERE}"}},
        })
        with pytest.raises(ConfigurationError, match="NOT_SET_ANYWHERE"):
            load_config(config_file)

    def test_single_backend_document(self, tmp_path: Path) -> None:
        config_file = self._write(tmp_path / "c.yaml", {"driver": "MongoDB", "host": "mongo", "database": "shop"})

        config = load_config(config_file)

        assert config.default_backend == SINGLE_BACKEND_NAME
        assert config.get_backend().driver == "mongodb"

    def test_document_without_backends(self, tmp_path: Path) -> None:
        config_file = self._write(tmp_path / "c.yaml", {"host": "db"})
        with pytest.raises(ConfigurationError, match="backends"):
            load_config(config_file)

    def test_invalid_backend_fields(self, tmp_path: Path) -> None:
        config_file = self._write(tmp_path / "c.yaml", {"backends": {"main": {"port": 99999}}})
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config(config_file)

    def test_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(config_file)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("backends: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(config_file)

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "absent.yaml")

    def test_default_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DBFACADE_CONFIG_FILE", raising=False)
        self._write(tmp_path / "dbfacade.yml", {"backends": {"local": {"driver": "sqlite"}}})
        assert locate_config_file() == tmp_path / "dbfacade.yml"
        assert load_config().default_backend == "local"

    def test_location_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config_file = self._write(tmp_path / "elsewhere.yaml", {"backends": {"env": {"driver": "redis"}}})
        monkeypatch.setenv("DBFACADE_CONFIG_FILE", str(config_file))
        assert load_config().default_backend == "env"

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DBFACADE_CONFIG_FILE", raising=False)
        with pytest.raises(ConfigurationError, match="No configuration file found"):
            load_config()

    def test_load_backend_by_name(self, tmp_path: Path) -> None:
        config_file = self._write(tmp_path / "c.yaml", {
            "backends": {"a": {"driver": "sqlite"}, "b": {"driver": "redis"}},
        })
        assert load_backend("b", config_file).driver == "redis"
        with pytest.raises(ConfigurationError, match="not found"):
            load_backend("missing", config_file)

    def test_sample_config_round_trips(self, tmp_path: Path) -> None:
        sample = tmp_path / "sample.yaml"
        create_sample_config(sample)

        config = load_config(sample)
        assert config.default_backend == "main"
        assert {b.driver for b in config.backends.values()} == {"mysql", "pgsql", "mongodb", "redis", "sqlite"}
