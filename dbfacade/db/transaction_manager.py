"""Idempotent transaction control for relational connections."""

import logging
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.engine import Connection, RootTransaction

logger = logging.getLogger(__name__)


class TransactionState(str, Enum):
    """Transaction lifecycle states."""
    IDLE = "idle"
    IN_TRANSACTION = "in_transaction"


class TransactionGuard:
    """Tracks whether a relational connection is inside an explicit transaction.

    ``begin`` only acts when idle; ``commit`` and ``rollback`` only act inside a
    transaction. Calls made in the wrong state are no-ops, never errors.
    """

    def __init__(self) -> None:
        self._state = TransactionState.IDLE
        self._transaction: Optional[RootTransaction] = None

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def in_transaction(self) -> bool:
        return self._state == TransactionState.IN_TRANSACTION

    def begin(self, connect: Callable[[], Connection]) -> bool:
        """Start a transaction on the connection returned by ``connect``.

        ``connect`` is only called when idle. Returns True if a transaction was started.
        """
        if self.in_transaction:
            logger.debug("begin() ignored: already in a transaction")
            return False
        connection = connect()
        # Statements outside explicit transactions are committed as they run,
        # so an autobegun transaction can only be empty here.
        if connection.in_transaction():
            connection.commit()
        self._transaction = connection.begin()
        self._state = TransactionState.IN_TRANSACTION
        logger.debug("Transaction started")
        return True

    def commit(self) -> bool:
        """Commit the open transaction. Returns True if one was committed."""
        if not self.in_transaction:
            logger.debug("commit() ignored: no transaction in progress")
            return False
        transaction, self._transaction = self._transaction, None
        self._state = TransactionState.IDLE
        transaction.commit()
        logger.debug("Transaction committed")
        return True

    def rollback(self) -> bool:
        """Roll back the open transaction. Returns True if one was rolled back."""
        if not self.in_transaction:
            logger.debug("rollback() ignored: no transaction in progress")
            return False
        transaction, self._transaction = self._transaction, None
        self._state = TransactionState.IDLE
        transaction.rollback()
        logger.debug("Transaction rolled back")
        return True

    def reset(self) -> None:
        """Forget any transaction, used when the connection is released."""
        self._transaction = None
        self._state = TransactionState.IDLE
