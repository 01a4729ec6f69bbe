"""Facade behaviour for key-value backends."""

from unittest.mock import Mock, patch

import pytest

from dbfacade import BackendConfig, CapabilityError, Database, DriverClass
from dbfacade.db.base import KeyValueHandle
from dbfacade.db.connection import ConnectionManager


@pytest.fixture()
def redis_class():
    with patch("dbfacade.db.adapters.redis_store.Redis") as redis_class:
        yield redis_class


@pytest.fixture()
def database(redis_class):
    return Database(driver="redis", host="cache.internal", database="2", password="s3cret")


@pytest.mark.parametrize(
    "operation, args",
    [
        ("insert", ("sessions", {"id": "a"})),
        ("select", ("sessions",)),
        ("update", ("sessions", {"ttl": 5}, {"id": "a"})),
        ("delete", ("sessions", {"id": "a"})),
        ("raw_query", ("GET a",)),
        ("begin", ()),
        ("commit", ()),
        ("rollback", ()),
    ],
)
def test_generic_operations_are_refused(database, redis_class, operation, args):
    with pytest.raises(CapabilityError) as exc_info:
        getattr(database, operation)(*args)

    error = exc_info.value
    assert error.operation == operation
    assert error.driver_class is DriverClass.KEY_VALUE
    assert "raw connection handle" in str(error)
    redis_class.assert_not_called()


def test_raw_handle_is_authenticated_client(database, redis_class):
    client = database.raw_handle()

    assert client is redis_class.return_value
    assert isinstance(database.get_connection(), KeyValueHandle)
    redis_class.assert_called_once_with(
        host="cache.internal",
        port=6379,
        db=2,
        password="s3cret",
        decode_responses=True,
    )
    client.ping.assert_called_once()


def test_driver_class(database):
    assert database.driver_class is DriverClass.KEY_VALUE
    assert database.get_driver() == "redis"


def test_capability_comes_from_connection_manager() -> None:
    manager = Mock(spec=ConnectionManager)
    manager.driver_class = DriverClass.KEY_VALUE
    database = Database(BackendConfig(driver="redis"), connection_manager=manager)

    with pytest.raises(CapabilityError):
        database.insert("sessions", {"id": "a"})

    manager.get_connection.assert_not_called()
