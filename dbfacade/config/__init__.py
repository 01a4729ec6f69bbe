"""Configuration management for dbfacade."""

from dbfacade.config.models import (
    DEFAULT_DRIVER,
    BackendConfig,
    FacadeConfig,
    EnvironmentSettings,
)
from dbfacade.config.loader import (
    SINGLE_BACKEND_NAME,
    create_sample_config,
    expand_env,
    load_backend,
    load_config,
    locate_config_file,
)

__all__ = [
    # Models
    "DEFAULT_DRIVER",
    "BackendConfig",
    "FacadeConfig",
    "EnvironmentSettings",
    # Loader
    "SINGLE_BACKEND_NAME",
    "create_sample_config",
    "expand_env",
    "load_backend",
    "load_config",
    "locate_config_file",
]
