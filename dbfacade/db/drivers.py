"""Driver identifiers and their capability classes."""

from enum import Enum
from typing import Dict, List

from dbfacade.exceptions import ConfigurationError


class DriverClass(str, Enum):
    """Capability classes a backend can belong to."""
    RELATIONAL = "relational"
    DOCUMENT = "document"
    KEY_VALUE = "key-value"


class Dialect(str, Enum):
    """Canonical backend dialects, one adapter each."""
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"
    MONGODB = "mongodb"
    REDIS = "redis"


_DIALECT_CLASSES: Dict[Dialect, DriverClass] = {
    Dialect.MYSQL: DriverClass.RELATIONAL,
    Dialect.POSTGRESQL: DriverClass.RELATIONAL,
    Dialect.SQLITE: DriverClass.RELATIONAL,
    Dialect.SQLSERVER: DriverClass.RELATIONAL,
    Dialect.MONGODB: DriverClass.DOCUMENT,
    Dialect.REDIS: DriverClass.KEY_VALUE,
}

# Accepted identifiers, already trimmed and lower-cased.
_IDENTIFIERS: Dict[str, Dialect] = {
    "mysql": Dialect.MYSQL,
    "pgsql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "postgresql": Dialect.POSTGRESQL,
    "sqlite": Dialect.SQLITE,
    "sqlsrv": Dialect.SQLSERVER,
    "mssql": Dialect.SQLSERVER,
    "sqlserver": Dialect.SQLSERVER,
    "mongodb": Dialect.MONGODB,
    "mongo": Dialect.MONGODB,
    "redis": Dialect.REDIS,
}


def normalize_driver(driver: str) -> str:
    return (driver or "").strip().lower()


def supported_drivers() -> List[str]:
    """Return every recognized driver identifier."""
    return sorted(_IDENTIFIERS)


def dialect_for(driver: str) -> Dialect:
    """Resolve a driver identifier to its canonical dialect.

    Raises:
        ConfigurationError: If the identifier is not recognized.
    """
    normalized = normalize_driver(driver)
    try:
        return _IDENTIFIERS[normalized]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported driver: '{driver}'. Supported drivers: {supported_drivers()}",
            details={'driver': driver},
        ) from None


def classify(driver: str) -> DriverClass:
    """Map a driver identifier to its capability class.

    Raises:
        ConfigurationError: If the identifier is not recognized.
    """
    return _DIALECT_CLASSES[dialect_for(driver)]
