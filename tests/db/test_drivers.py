"""Tests for driver classification."""

import pytest

from dbfacade.db.drivers import Dialect, DriverClass, classify, dialect_for, supported_drivers
from dbfacade.exceptions import ConfigurationError


@pytest.mark.parametrize(
    "driver",
    ["mysql", "pgsql", "postgres", "postgresql", "sqlite", "sqlsrv", "mssql", "sqlserver"],
)
def test_relational_identifiers(driver: str) -> None:
    assert classify(driver) is DriverClass.RELATIONAL


@pytest.mark.parametrize("driver", ["mongodb", "mongo"])
def test_document_identifiers(driver: str) -> None:
    assert classify(driver) is DriverClass.DOCUMENT


def test_key_value_identifier() -> None:
    assert classify("redis") is DriverClass.KEY_VALUE


def test_identifiers_are_normalized() -> None:
    assert classify("  MySQL ") is DriverClass.RELATIONAL
    assert dialect_for(" PGSQL") is Dialect.POSTGRESQL


@pytest.mark.parametrize("driver", ["oracle", "", "my sql", "cassandra"])
def test_unknown_identifiers_raise(driver: str) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        classify(driver)
    assert "Supported drivers" in str(exc_info.value)


def test_supported_drivers_lists_every_identifier() -> None:
    drivers = supported_drivers()
    assert "mysql" in drivers
    assert "redis" in drivers
    assert drivers == sorted(drivers)
