"""Backend adapters, one per dialect."""

from dbfacade.db.adapters.postgresql import PostgreSQLAdapter
from dbfacade.db.adapters.mysql import MySQLAdapter
from dbfacade.db.adapters.sqlite import SQLiteAdapter
from dbfacade.db.adapters.sqlserver import SQLServerAdapter
from dbfacade.db.adapters.mongodb import MongoDBAdapter
from dbfacade.db.adapters.redis_store import RedisAdapter

__all__ = [
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
    "SQLServerAdapter",
    "MongoDBAdapter",
    "RedisAdapter",
]
