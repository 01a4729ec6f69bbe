"""Connection handles, result containers and the base adapter."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union
from urllib.parse import quote_plus, urlencode

import pandas as pd
from pymongo import MongoClient
from pymongo.database import Database as MongoDatabase
from redis import Redis
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from dbfacade.config.models import BackendConfig
from dbfacade.db.drivers import Dialect, DriverClass, classify
from dbfacade.exceptions import DatabaseConnectionError


@dataclass(frozen=True)
class RelationalHandle:
    """An open SQLAlchemy connection plus the dialect it speaks."""
    connection: Connection
    dialect: Dialect
    engine: Optional[Engine] = None
    supports_last_insert_id: bool = False

    driver_class = DriverClass.RELATIONAL

    @property
    def native(self) -> Connection:
        return self.connection

    def close(self) -> None:
        self.connection.close()
        if self.engine is not None:
            self.engine.dispose()


@dataclass(frozen=True)
class DocumentHandle:
    """A MongoDB client bound to a database name; collections are picked per call."""
    client: MongoClient
    database_name: str

    driver_class = DriverClass.DOCUMENT

    @property
    def native(self) -> MongoClient:
        return self.client

    @property
    def database(self) -> MongoDatabase:
        return self.client[self.database_name]

    def collection(self, name: str):
        return self.database[name]

    def close(self) -> None:
        self.client.close()


@dataclass(frozen=True)
class KeyValueHandle:
    """A connected (and, when configured, authenticated) Redis client."""
    client: Redis

    driver_class = DriverClass.KEY_VALUE

    @property
    def native(self) -> Redis:
        return self.client

    def close(self) -> None:
        self.client.close()


ConnectionHandle = Union[RelationalHandle, DocumentHandle, KeyValueHandle]


@dataclass(frozen=True)
class InsertResult:
    """Identifier generated by an insert, or None when the backend reports none."""
    inserted_id: Optional[str] = None


@dataclass(frozen=True)
class AffectedRows:
    """Number of rows or documents changed by a mutating statement.

    ``returned`` holds the rows produced by a RETURNING or OUTPUT clause.
    """
    count: int = 0
    returned: Optional["RowSet"] = field(default=None, compare=False)


@dataclass
class RowSet:
    """Rows returned by a query, each row a column to value mapping."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.columns and self.rows:
            # Documents need not share fields; keep every key in first-seen order
            self.columns = list(dict.fromkeys(key for row in self.rows for key in row))

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.rows[index]

    @property
    def is_empty(self) -> bool:
        """Check if result is empty."""
        return not self.rows

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the rows to a pandas DataFrame."""
        return pd.DataFrame(self.rows, columns=self.columns or None)


QueryOutcome = Union[RowSet, AffectedRows]


class BaseAdapter(ABC):
    """Base class for backend adapters.

    An adapter knows how to turn a BackendConfig into a connection string and
    an open connection handle for one dialect.
    """

    dialect: Dialect
    default_port: Optional[int] = None

    def __init__(self, config: BackendConfig) -> None:
        """Initialize backend adapter.

        Args:
            config: Backend configuration.
        """
        self.config = config

    @property
    def driver_class(self) -> DriverClass:
        return classify(self.dialect.value)

    @property
    def port(self) -> Optional[int]:
        """Configured port, falling back to the dialect default."""
        return self.config.port or self.default_port

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build the native connection string or URI.

        Returns:
            Connection string.
        """
        pass

    @abstractmethod
    def get_driver_name(self) -> str:
        """Get the native client library name for this adapter."""
        pass

    @abstractmethod
    def connect(self) -> ConnectionHandle:
        """Open a connection and wrap it in the handle type of this driver class.

        Raises:
            DatabaseConnectionError: If the native client cannot connect or authenticate.
        """
        pass

    def masked_connection_string(self) -> str:
        """Connection string safe to put in logs."""
        connection_string = self.build_connection_string()
        if self.config.password:
            connection_string = connection_string.replace(
                f":{quote_plus(self.config.password)}@", ":***@"
            )
        return connection_string


class RelationalAdapter(BaseAdapter):
    """Base class for SQL dialects reached through SQLAlchemy."""

    supports_last_insert_id: bool = False

    def get_engine(self) -> Engine:
        """Create a SQLAlchemy engine for this backend.

        Raises:
            DatabaseConnectionError: If engine creation fails.
        """
        connection_string = self.build_connection_string()
        try:
            return create_engine(connection_string, **self._get_engine_options())
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to create database engine: {e}",
                driver=self.config.driver,
                connection_string=self.masked_connection_string(),
            ) from e

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get dialect-specific engine options."""
        return {}

    def connect(self) -> RelationalHandle:
        engine = self.get_engine()
        try:
            connection = engine.connect()
        except Exception as e:
            engine.dispose()
            raise DatabaseConnectionError(
                f"Database connection error: {e}",
                driver=self.config.driver,
                connection_string=self.masked_connection_string(),
            ) from e
        return RelationalHandle(
            connection=connection,
            dialect=self.dialect,
            engine=engine,
            supports_last_insert_id=self.supports_last_insert_id,
        )

    def _url(self, drivername: str, query: Optional[Dict[str, Any]] = None) -> str:
        """Render a host-based SQLAlchemy URL with URL-encoded credentials."""
        credentials = ""
        if self.config.username:
            credentials = quote_plus(self.config.username)
            if self.config.password:
                credentials += f":{quote_plus(self.config.password)}"
            credentials += "@"

        connection_string = f"{drivername}://{credentials}{self.config.host}"
        if self.port:
            connection_string += f":{self.port}"
        connection_string += f"/{self.config.database}"

        options = dict(query or {})
        options.update(self.config.options)
        if options:
            connection_string += "?" + urlencode(options)
        return connection_string
