"""Backend connectivity, query translation and transaction control."""

from dbfacade.db.base import (
    AffectedRows,
    BaseAdapter,
    ConnectionHandle,
    DocumentHandle,
    InsertResult,
    KeyValueHandle,
    QueryOutcome,
    RelationalAdapter,
    RelationalHandle,
    RowSet,
)
from dbfacade.db.connection import AdapterFactory, ConnectionManager
from dbfacade.db.drivers import Dialect, DriverClass, classify, dialect_for, supported_drivers
from dbfacade.db.query_builder import SelectOptions, SQLStatement, DocumentQuery
from dbfacade.db.transaction_manager import TransactionGuard, TransactionState
from dbfacade.db.adapters import (
    PostgreSQLAdapter,
    MySQLAdapter,
    SQLiteAdapter,
    SQLServerAdapter,
    MongoDBAdapter,
    RedisAdapter,
)

__all__ = [
    # Handles and results
    "RelationalHandle",
    "DocumentHandle",
    "KeyValueHandle",
    "ConnectionHandle",
    "InsertResult",
    "RowSet",
    "AffectedRows",
    "QueryOutcome",
    # Driver classification
    "Dialect",
    "DriverClass",
    "classify",
    "dialect_for",
    "supported_drivers",
    # Connection management
    "BaseAdapter",
    "RelationalAdapter",
    "AdapterFactory",
    "ConnectionManager",
    # Query translation
    "SelectOptions",
    "SQLStatement",
    "DocumentQuery",
    # Transactions
    "TransactionGuard",
    "TransactionState",
    # Backend adapters
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
    "SQLServerAdapter",
    "MongoDBAdapter",
    "RedisAdapter",
]
