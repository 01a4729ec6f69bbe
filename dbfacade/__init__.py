"""dbfacade: one CRUD surface over relational, document and key-value backends.

dbfacade provides:
- Lazy, cached single connection per facade instance
- Driver classification into relational, document and key-value classes
- Translation of CRUD requests into parameterized SQL or MongoDB queries
- Idempotent transaction control for relational backends
- YAML-based configuration and a small command line tool
"""

__version__ = "0.1.0"
__license__ = "MIT"

from dbfacade.exceptions import (
    FacadeError,
    ConfigurationError,
    DatabaseConnectionError,
    CapabilityError,
    ConstraintError,
    QueryError,
    EXECUTION_ERRORS,
)
from dbfacade.config.models import BackendConfig
from dbfacade.db.base import AffectedRows, InsertResult, RowSet
from dbfacade.db.drivers import DriverClass, classify
from dbfacade.db.query_builder import SelectOptions
from dbfacade.facade import Database

__all__ = [
    "__version__",
    "Database",
    "BackendConfig",
    "DriverClass",
    "classify",
    "SelectOptions",
    "InsertResult",
    "RowSet",
    "AffectedRows",
    "FacadeError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "CapabilityError",
    "ConstraintError",
    "QueryError",
    "EXECUTION_ERRORS",
]
