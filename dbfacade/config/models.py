"""Pydantic models for dbfacade configuration."""

from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DRIVER = "mysql"


class BackendConfig(BaseModel):
    """Connection parameters for a single backend.

    The driver identifier is normalized here but only validated against the
    recognized set when the first connection is opened.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    driver: str = Field(default=DEFAULT_DRIVER, validation_alias=AliasChoices("driver", "type"))
    host: str = "localhost"
    port: Optional[int] = None
    database: str = ""
    username: str = Field(default="", validation_alias=AliasChoices("username", "user"))
    password: str = ""
    charset: str = "utf8mb4"
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('driver', mode='before')
    def normalize_driver(cls, v):
        """Trim and lower-case the driver identifier."""
        if v is None:
            return DEFAULT_DRIVER
        normalized = str(v).strip().lower()
        return normalized or DEFAULT_DRIVER

    @field_validator('port', mode='before')
    def coerce_port(cls, v):
        """Accept numeric strings and treat blanks as unset."""
        if isinstance(v, str):
            v = v.strip()
            return int(v) if v else None
        return v

    @field_validator('port')
    def validate_port(cls, v):
        """Validate port number range."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator('host', 'database', 'username', 'password', mode='before')
    def none_as_empty(cls, v):
        return "" if v is None else v

    def masked(self) -> Dict[str, Any]:
        """Return the configuration as a dict with the password hidden."""
        data = self.model_dump()
        if data.get('password'):
            data['password'] = '***'
        return data


class FacadeConfig(BaseModel):
    """Main configuration model: a set of named backends."""
    backends: Dict[str, BackendConfig]
    default_backend: Optional[str] = None

    @model_validator(mode='after')
    def validate_default_backend(self):
        """Ensure default_backend exists in backends."""
        if self.default_backend and self.default_backend not in self.backends:
            raise ValueError(f"default_backend '{self.default_backend}' not found in backends")
        return self

    @model_validator(mode='after')
    def set_default_backend(self):
        """Set default backend if not specified."""
        if not self.default_backend and self.backends:
            self.default_backend = next(iter(self.backends))
        return self

    def get_backend(self, name: Optional[str] = None) -> BackendConfig:
        """Return a backend configuration by name, or the default one."""
        backend_name = name or self.default_backend
        if backend_name not in self.backends:
            raise KeyError(
                f"Backend '{backend_name}' not found. Available backends: {list(self.backends)}"
            )
        return self.backends[backend_name]


class EnvironmentSettings(BaseSettings):
    """Process-level settings read from DBFACADE_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="DBFACADE_", case_sensitive=False)

    log_level: str = Field(default="INFO")
    error_log_path: str = Field(default="dbfacade_error.log")
    terminate_on_connection_failure: bool = Field(default=True)
    config_file: Optional[str] = Field(default=None)
