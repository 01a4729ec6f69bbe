"""SQLite backend adapter."""

from pathlib import Path
from typing import Any, Dict

from dbfacade.db.base import RelationalAdapter
from dbfacade.db.drivers import Dialect

MEMORY_DATABASE = ":memory:"


class SQLiteAdapter(RelationalAdapter):
    """SQLite backend adapter. The database name is the file path; host and port are ignored."""

    dialect = Dialect.SQLITE
    supports_last_insert_id = True

    def get_driver_name(self) -> str:
        """Get the driver name for SQLite."""
        return "sqlite"

    def build_connection_string(self) -> str:
        """Build SQLite connection string.

        Returns:
            ``sqlite:///<absolute path>`` or ``sqlite://`` for an in-memory database.
        """
        if not self.config.database or self.config.database == MEMORY_DATABASE:
            return "sqlite://"

        db_path = Path(self.config.database)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)

        return f"sqlite:///{db_path}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        return {
            'connect_args': {
                'timeout': self.config.options.get('timeout', 30),
            }
        }
