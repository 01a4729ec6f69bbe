"""Loading backend definitions from YAML files.

A file either names several backends::

    backends:
      main: {driver: mysql, host: db.internal, database: app, password: "${APP_DB_PASSWORD}"}
      cache: {driver: redis, host: cache.internal}
    default_backend: main

or describes a single backend at the top level, which is registered as
``default``. ``${VAR}`` and ``${VAR:-fallback}`` references in string values
are resolved from the environment before the backends are validated.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from dbfacade.config.models import BackendConfig, EnvironmentSettings, FacadeConfig
from dbfacade.exceptions import ConfigurationError

SEARCH_PATHS = ("dbfacade.yaml", "dbfacade.yml", "config/dbfacade.yaml")
SINGLE_BACKEND_NAME = "default"

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>\w+)(?::-(?P<fallback>[^}]*))?\}")

SAMPLE_BACKENDS: Dict[str, Dict[str, Any]] = {
    'main': {
        'driver': 'mysql',
        'host': '${APP_DB_HOST:-localhost}',
        'port': 3306,
        'database': 'app',
        'username': 'app_user',
        'password': '${APP_DB_PASSWORD:-app_password}',
        'charset': 'utf8mb4',
    },
    'reporting': {
        'driver': 'pgsql',
        'host': 'localhost',
        'database': 'reporting',
        'username': 'report_user',
        'password': '${REPORT_DB_PASSWORD:-}',
    },
    'documents': {
        'driver': 'mongodb',
        'host': 'localhost',
        'database': 'app',
    },
    'cache': {
        'driver': 'redis',
        'host': 'localhost',
        'database': '0',
        'password': '${REDIS_PASSWORD:-}',
    },
    'local': {
        'driver': 'sqlite',
        'database': './local.db',
    },
}


def candidate_paths(settings: Optional[EnvironmentSettings] = None) -> List[Path]:
    """Files searched when no path is given: DBFACADE_CONFIG_FILE, then the working directory."""
    settings = settings or EnvironmentSettings()
    paths = [Path(settings.config_file)] if settings.config_file else []
    return paths + [Path.cwd() / name for name in SEARCH_PATHS]


def locate_config_file(
    config_path: Optional[Union[str, Path]] = None,
    settings: Optional[EnvironmentSettings] = None,
) -> Path:
    """Resolve the configuration file to read.

    Raises:
        ConfigurationError: If the given file does not exist or nothing is found.
    """
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file '{config_path}' not found")
        return path

    candidates = candidate_paths(settings)
    for path in candidates:
        if path.is_file():
            return path
    raise ConfigurationError(
        f"No configuration file found, looked for: {[str(p) for p in candidates]}"
    )


def expand_env(value: Any, source: str = "configuration") -> Any:
    """Resolve environment references in every string of a parsed document.

    Raises:
        ConfigurationError: If a reference without fallback names an unset variable.
    """
    if isinstance(value, dict):
        return {key: expand_env(item, source) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item, source) for item in value]
    if not isinstance(value, str):
        return value

    def lookup(match: re.Match) -> str:
        name, fallback = match.group("name"), match.group("fallback")
        resolved = os.environ.get(name, fallback)
        if resolved is None:
            raise ConfigurationError(
                f"Environment variable '{name}' used in '{source}' is not set",
                details={'variable': name},
            )
        return resolved

    return _ENV_REFERENCE.sub(lookup, value)


def _backend_document(document: Dict[str, Any], source: str) -> Dict[str, Any]:
    if "backends" in document:
        return document
    if "driver" in document or "type" in document:
        return {"backends": {SINGLE_BACKEND_NAME: document}, "default_backend": SINGLE_BACKEND_NAME}
    raise ConfigurationError(
        f"'{source}' must define a 'backends' mapping or a single backend with a 'driver'"
    )


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    settings: Optional[EnvironmentSettings] = None,
) -> FacadeConfig:
    """Read, interpolate and validate a configuration file.

    Raises:
        ConfigurationError: If the file is missing, empty, not YAML or fails validation.
    """
    path = locate_config_file(config_path, settings)
    try:
        with open(path, 'r', encoding='utf-8') as file:
            document = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e

    if not document:
        raise ConfigurationError(f"Configuration file '{path}' is empty")
    if not isinstance(document, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")

    document = expand_env(_backend_document(document, str(path)), str(path))
    try:
        return FacadeConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for '{path}': {e}") from e


def load_backend(
    name: Optional[str] = None,
    config_path: Optional[Union[str, Path]] = None,
    settings: Optional[EnvironmentSettings] = None,
) -> BackendConfig:
    """Load one backend by name, or the file's default backend.

    Raises:
        ConfigurationError: If the file cannot be loaded or has no such backend.
    """
    config = load_config(config_path, settings)
    try:
        return config.get_backend(name)
    except KeyError as e:
        raise ConfigurationError(e.args[0], details={'backend': name}) from None


def create_sample_config(output_path: Union[str, Path]) -> None:
    """Write a configuration file with one backend per driver class."""
    sample = {'backends': SAMPLE_BACKENDS, 'default_backend': 'main'}
    with open(output_path, 'w', encoding='utf-8') as file:
        yaml.safe_dump(sample, file, default_flow_style=False, sort_keys=False)
