"""Backend-agnostic CRUD and transaction facade."""

import logging
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult

from dbfacade.config.loader import load_backend
from dbfacade.config.models import BackendConfig, EnvironmentSettings
from dbfacade.db.base import (
    AffectedRows,
    ConnectionHandle,
    DocumentHandle,
    InsertResult,
    QueryOutcome,
    RelationalHandle,
    RowSet,
)
from dbfacade.db.connection import AdapterFactory, ConnectionManager
from dbfacade.db.drivers import DriverClass
from dbfacade.db.query_builder import (
    Params,
    SelectOptions,
    SQLStatement,
    build_delete,
    build_document_delete,
    build_document_find,
    build_document_insert,
    build_document_update,
    build_insert,
    build_raw,
    build_select,
    build_update,
    is_row_returning,
    require_conditions,
    require_data,
)
from dbfacade.db.transaction_manager import TransactionGuard, TransactionState
from dbfacade.diagnostics import DiagnosticSink
from dbfacade.exceptions import CapabilityError

logger = logging.getLogger(__name__)

_CRUD_CLASSES = (DriverClass.RELATIONAL, DriverClass.DOCUMENT)

Options = Union[SelectOptions, Mapping[str, Any], None]


class Database:
    """One backend, one lazily-opened connection, one CRUD surface.

    Relational and document backends support insert/select/update/delete.
    Raw queries and transactions are relational only. Key-value backends only
    hand out their raw client through :meth:`raw_handle`.

    Not safe for concurrent use; give each worker its own instance.
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        *,
        settings: Optional[EnvironmentSettings] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        factory: Optional[AdapterFactory] = None,
        connection_manager: Optional[ConnectionManager] = None,
        **fields: Any,
    ) -> None:
        """Initialize the facade.

        Args:
            config: Backend configuration. When omitted it is built from ``fields``
                (host, database, user/username, password, port, driver).
            settings: Process settings used for the diagnostic sink.
            diagnostics: Sink that reports connection failures.
            factory: Adapter factory used to open the connection.
            connection_manager: Pre-built manager; overrides ``factory`` and ``diagnostics``.
        """
        if config is not None and fields:
            raise TypeError("Pass either a BackendConfig or individual fields, not both")
        self.config = config if config is not None else BackendConfig(**fields)
        self._manager = connection_manager or ConnectionManager(
            self.config,
            factory=factory,
            diagnostics=diagnostics or DiagnosticSink(settings=settings),
        )
        self._guard = TransactionGuard()
        self._driver_class: Optional[DriverClass] = None

    @classmethod
    def from_config_file(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        backend: Optional[str] = None,
        **kwargs: Any,
    ) -> "Database":
        """Build a facade for a named backend of a YAML configuration file."""
        return cls(load_backend(backend, config_path), **kwargs)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database(driver={self.config.driver!r}, host={self.config.host!r}, database={self.config.database!r})"

    # Connection and driver information

    @property
    def driver_class(self) -> DriverClass:
        """Capability class of the configured driver.

        Raises:
            ConfigurationError: If the driver identifier is not recognized.
        """
        if self._driver_class is None:
            self._driver_class = self._manager.driver_class
        return self._driver_class

    def get_driver(self) -> str:
        """Normalized driver identifier."""
        return self.config.driver

    def get_connection(self) -> ConnectionHandle:
        """Tagged connection handle, opened on first use and cached afterwards."""
        return self._manager.get_connection()

    def raw_handle(self) -> Any:
        """The native connection object (SQLAlchemy Connection, MongoClient or Redis)."""
        return self.get_connection().native

    @property
    def is_connected(self) -> bool:
        return self._manager.is_connected

    @property
    def transaction_state(self) -> TransactionState:
        return self._guard.state

    @property
    def in_transaction(self) -> bool:
        return self._guard.in_transaction

    def close(self) -> None:
        """Release the connection. An open transaction is discarded by the backend."""
        if self._guard.in_transaction:
            logger.warning("Closing connection with an open transaction; it will be rolled back")
        self._guard.reset()
        self._manager.close()

    def _require(self, operation: str, *supported: DriverClass) -> DriverClass:
        driver_class = self.driver_class
        if driver_class not in supported:
            raise CapabilityError(operation, driver_class)
        return driver_class

    # CRUD

    def insert(self, table: str, data: Mapping[str, Any]) -> InsertResult:
        """Insert one row or document.

        Returns:
            The generated identifier as text; None when a relational backend
            does not report one.
        """
        self._require("insert", *_CRUD_CLASSES)
        require_data("insert", table, data)

        handle = self.get_connection()
        if isinstance(handle, DocumentHandle):
            document = build_document_insert(table, data)
            result = handle.collection(table).insert_one(document)
            return InsertResult(str(result.inserted_id))

        statement = build_insert(table, data)
        with self._statement(handle) as connection:
            result = self._execute(connection, statement)
            if not handle.supports_last_insert_id:
                return InsertResult(None)
            last_id = result.lastrowid
        return InsertResult(str(last_id) if last_id else None)

    def select(
        self,
        table: str,
        conditions: Optional[Mapping[str, Any]] = None,
        options: Options = None,
        **option_fields: Any,
    ) -> RowSet:
        """Fetch rows matching every condition.

        Options (as a SelectOptions, a mapping, or keyword arguments):
        ``columns``, ``order`` (raw text such as ``"age DESC"``), ``limit``, ``offset``.
        """
        self._require("select", *_CRUD_CLASSES)
        if option_fields:
            merged = dict(option_fields)
            if isinstance(options, SelectOptions):
                merged = {**asdict(options), **merged}
            elif options:
                merged = {**options, **merged}
            options = merged
        options = SelectOptions.coerce(options)

        handle = self.get_connection()
        if isinstance(handle, DocumentHandle):
            return self._find(handle, table, conditions, options)

        statement = build_select(table, conditions, options, dialect=handle.dialect)
        with self._statement(handle) as connection:
            return _row_set(self._execute(connection, statement))

    def update(
        self,
        table: str,
        data: Mapping[str, Any],
        conditions: Mapping[str, Any],
    ) -> AffectedRows:
        """Update matching rows or documents.

        Raises:
            ConstraintError: If ``conditions`` is empty.
        """
        self._require("update", *_CRUD_CLASSES)
        require_conditions("update", table, conditions)
        require_data("update", table, data)

        handle = self.get_connection()
        if isinstance(handle, DocumentHandle):
            document_filter, update = build_document_update(table, data, conditions)
            result = handle.collection(table).update_many(document_filter, update)
            return AffectedRows(result.modified_count)

        statement = build_update(table, data, conditions)
        with self._statement(handle) as connection:
            return AffectedRows(_rowcount(self._execute(connection, statement)))

    def delete(self, table: str, conditions: Mapping[str, Any]) -> AffectedRows:
        """Delete matching rows or documents.

        Raises:
            ConstraintError: If ``conditions`` is empty.
        """
        self._require("delete", *_CRUD_CLASSES)
        require_conditions("delete", table, conditions)

        handle = self.get_connection()
        if isinstance(handle, DocumentHandle):
            document_filter = build_document_delete(table, conditions)
            result = handle.collection(table).delete_many(document_filter)
            return AffectedRows(result.deleted_count)

        statement = build_delete(table, conditions)
        with self._statement(handle) as connection:
            return AffectedRows(_rowcount(self._execute(connection, statement)))

    def raw_query(self, query: str, params: Params = None) -> QueryOutcome:
        """Run literal SQL with bound parameters.

        Statements starting with SELECT, SHOW, DESCRIBE, PRAGMA or WITH return
        a RowSet; anything else returns AffectedRows. Rows produced by a
        mutating statement's RETURNING or OUTPUT clause are attached as
        ``AffectedRows.returned``.
        """
        self._require("raw_query", DriverClass.RELATIONAL)
        statement = build_raw(query, params)

        handle = self.get_connection()
        with self._statement(handle) as connection:
            result = self._execute(connection, statement)
            if result.returns_rows:
                # The cursor must be drained before the statement is committed
                rows = _row_set(result)
                if is_row_returning(query):
                    return rows
                return AffectedRows(rows.row_count, rows)
            count = _rowcount(result)
            result.close()
            return AffectedRows(count)

    # Transactions

    def begin(self) -> None:
        """Start a transaction; a no-op when one is already open."""
        self._require("begin", DriverClass.RELATIONAL)
        self._guard.begin(lambda: self.get_connection().connection)

    def commit(self) -> None:
        """Commit the open transaction; a no-op when none is open."""
        self._require("commit", DriverClass.RELATIONAL)
        self._guard.commit()

    def rollback(self) -> None:
        """Roll back the open transaction; a no-op when none is open."""
        self._require("rollback", DriverClass.RELATIONAL)
        self._guard.rollback()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Commit on success, roll back on error."""
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    # Helpers

    @contextmanager
    def _statement(self, handle: RelationalHandle) -> Iterator[Connection]:
        """Commit each statement run outside an explicit transaction."""
        connection = handle.connection
        try:
            yield connection
        except Exception:
            if not self._guard.in_transaction and connection.in_transaction():
                try:
                    connection.rollback()
                except Exception as rollback_error:
                    logger.warning(f"Rollback after failed statement also failed: {rollback_error}")
            raise
        else:
            if not self._guard.in_transaction:
                connection.commit()

    @staticmethod
    def _execute(connection: Connection, statement: SQLStatement) -> CursorResult:
        logger.debug(f"Executing: {statement.sql}")
        return connection.execute(text(statement.sql), statement.params)

    @staticmethod
    def _find(
        handle: DocumentHandle,
        collection: str,
        conditions: Optional[Mapping[str, Any]],
        options: SelectOptions,
    ) -> RowSet:
        query = build_document_find(conditions, options)
        # pymongo treats limit(0) as "no limit"
        if query.limit == 0:
            return RowSet([], list(query.projection or {}))

        cursor = handle.collection(collection).find(query.filter, query.projection)
        if query.sort:
            cursor = cursor.sort(query.sort)
        if query.skip:
            cursor = cursor.skip(query.skip)
        if query.limit is not None:
            cursor = cursor.limit(query.limit)
        return RowSet([dict(document) for document in cursor])


def _row_set(result: CursorResult) -> RowSet:
    columns = list(result.keys())
    rows: list[Dict[str, Any]] = [dict(row._mapping) for row in result]
    return RowSet(rows, columns)


def _rowcount(result: CursorResult) -> int:
    return result.rowcount if result.rowcount and result.rowcount > 0 else 0
