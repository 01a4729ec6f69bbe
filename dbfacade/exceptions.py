"""Core exceptions for dbfacade."""

from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError


class FacadeError(Exception):
    """Base exception for all dbfacade errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FacadeError):
    """Raised for an unrecognized driver identifier or an invalid configuration file."""
    pass


class DatabaseConnectionError(FacadeError):
    """Raised when a native connection or authentication step fails."""

    def __init__(
        self,
        message: str,
        driver: Optional[str] = None,
        connection_string: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.driver = driver
        self.connection_string = connection_string


class CapabilityError(FacadeError):
    """Raised when an operation is not supported by the active driver class."""

    def __init__(
        self,
        operation: str,
        driver_class: Any,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        label = getattr(driver_class, "value", driver_class)
        super().__init__(
            message or (
                f"Operation '{operation}' is not implemented for the {label} driver class; "
                f"use the raw connection handle instead"
            ),
            details,
        )
        self.operation = operation
        self.driver_class = driver_class


class ConstraintError(FacadeError):
    """Raised when a mutating operation would run without a required filter or payload."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.operation = operation
        self.table = table


class QueryError(FacadeError):
    """Raised when raw query parameters cannot be bound to the query text."""

    def __init__(
        self,
        message: str,
        sql_query: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.sql_query = sql_query


# Native execution failures are never wrapped; catch these to handle them.
EXECUTION_ERRORS = (SQLAlchemyError, PyMongoError, RedisError)
