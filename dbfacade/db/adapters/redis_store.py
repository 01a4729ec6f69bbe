"""Redis backend adapter."""

import logging

from redis import Redis
from redis.exceptions import RedisError

from dbfacade.db.base import BaseAdapter, KeyValueHandle
from dbfacade.db.drivers import Dialect
from dbfacade.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class RedisAdapter(BaseAdapter):
    """Redis backend adapter.

    Only connection setup lives here; generic CRUD is not offered for
    key-value stores, callers work on the raw client.
    """

    dialect = Dialect.REDIS
    default_port = 6379

    def get_driver_name(self) -> str:
        return "redis"

    @property
    def db_index(self) -> int:
        """Numeric database names select a Redis logical database."""
        database = self.config.database.strip()
        return int(database) if database.isdigit() else 0

    def build_connection_string(self) -> str:
        auth = f":{self.config.password}@" if self.config.password else ""
        return f"redis://{auth}{self.config.host}:{self.port}/{self.db_index}"

    def masked_connection_string(self) -> str:
        auth = ":***@" if self.config.password else ""
        return f"redis://{auth}{self.config.host}:{self.port}/{self.db_index}"

    def connect(self) -> KeyValueHandle:
        client = Redis(
            host=self.config.host,
            port=self.port,
            db=self.db_index,
            password=self.config.password or None,
            decode_responses=True,
            **self.config.options,
        )
        try:
            # The first command opens the socket and sends AUTH when a password is set
            client.ping()
        except RedisError as e:
            client.close()
            raise DatabaseConnectionError(
                f"Failed to connect to Redis: {e}",
                driver=self.config.driver,
                connection_string=self.masked_connection_string(),
            ) from e

        logger.debug(f"Redis client connected to {self.config.host}:{self.port}")
        return KeyValueHandle(client=client)
