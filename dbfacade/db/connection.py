"""Adapter factory and the per-facade connection manager."""

import logging
from typing import Dict, Optional, Type

from dbfacade.config.models import BackendConfig
from dbfacade.db.adapters.mongodb import MongoDBAdapter
from dbfacade.db.adapters.mysql import MySQLAdapter
from dbfacade.db.adapters.postgresql import PostgreSQLAdapter
from dbfacade.db.adapters.redis_store import RedisAdapter
from dbfacade.db.adapters.sqlite import SQLiteAdapter
from dbfacade.db.adapters.sqlserver import SQLServerAdapter
from dbfacade.db.base import BaseAdapter, ConnectionHandle
from dbfacade.db.drivers import Dialect, DriverClass, classify, dialect_for
from dbfacade.diagnostics import DiagnosticSink
from dbfacade.exceptions import ConfigurationError, DatabaseConnectionError

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for creating backend adapters."""

    _adapters: Dict[Dialect, Type[BaseAdapter]] = {
        Dialect.MYSQL: MySQLAdapter,
        Dialect.POSTGRESQL: PostgreSQLAdapter,
        Dialect.SQLITE: SQLiteAdapter,
        Dialect.SQLSERVER: SQLServerAdapter,
        Dialect.MONGODB: MongoDBAdapter,
        Dialect.REDIS: RedisAdapter,
    }

    @classmethod
    def create_adapter(cls, config: BackendConfig) -> BaseAdapter:
        """Create a backend adapter based on configuration.

        Args:
            config: Backend configuration.

        Returns:
            Backend adapter instance.

        Raises:
            ConfigurationError: If the driver identifier is not supported.
        """
        dialect = dialect_for(config.driver)
        adapter_class = cls._adapters.get(dialect)
        if not adapter_class:
            raise ConfigurationError(
                f"No adapter registered for dialect: {dialect.value}. "
                f"Registered dialects: {[d.value for d in cls._adapters]}"
            )

        return adapter_class(config)

    @classmethod
    def register_adapter(cls, dialect: Dialect, adapter_class: Type[BaseAdapter]) -> None:
        """Register a custom adapter for a dialect."""
        cls._adapters[dialect] = adapter_class


class ConnectionManager:
    """Owns the single lazily-opened connection handle of one facade.

    The handle is created on the first ``get_connection`` call and returned
    as-is afterwards; it is never re-created while set.
    """

    def __init__(
        self,
        config: BackendConfig,
        factory: Optional[AdapterFactory] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self.config = config
        self._factory = factory or AdapterFactory()
        self._diagnostics = diagnostics or DiagnosticSink()
        self._handle: Optional[ConnectionHandle] = None

    @property
    def driver_class(self) -> DriverClass:
        return classify(self.config.driver)

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    def get_connection(self) -> ConnectionHandle:
        """Return the cached handle, opening it on first use.

        Raises:
            ConfigurationError: If the driver identifier is not recognized.
            SystemExit: If the connection cannot be established (after the
                failure has been reported through the diagnostic sink).
        """
        if self._handle is None:
            adapter = self._factory.create_adapter(self.config)
            try:
                self._handle = adapter.connect()
            except DatabaseConnectionError as e:
                self._diagnostics.fail(e, self.config.driver, source=__file__)
            logger.info(
                f"Opened {adapter.driver_class.value} connection using driver "
                f"'{self.config.driver}' ({adapter.get_driver_name()})"
            )
        return self._handle

    def close(self) -> None:
        """Release the cached handle and close the native connection."""
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except Exception as e:
            logger.warning(f"Error closing {self.config.driver} connection: {e}")
