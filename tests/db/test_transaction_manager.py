"""Tests for the idempotent transaction guard."""

from unittest.mock import Mock

import pytest

from dbfacade.db.transaction_manager import TransactionGuard, TransactionState


def _connection(autobegun: bool = False) -> Mock:
    connection = Mock()
    connection.in_transaction.return_value = autobegun
    return connection


def test_initial_state_is_idle() -> None:
    guard = TransactionGuard()
    assert guard.state is TransactionState.IDLE
    assert not guard.in_transaction


def test_begin_twice_is_a_no_op() -> None:
    guard = TransactionGuard()
    connection = _connection()
    connect = Mock(return_value=connection)

    assert guard.begin(connect) is True
    assert guard.begin(connect) is False

    assert guard.state is TransactionState.IN_TRANSACTION
    connect.assert_called_once_with()
    connection.begin.assert_called_once_with()


def test_commit_then_rollback() -> None:
    guard = TransactionGuard()
    connection = _connection()
    guard.begin(lambda: connection)
    transaction = connection.begin.return_value

    assert guard.commit() is True
    assert guard.state is TransactionState.IDLE
    assert guard.rollback() is False

    transaction.commit.assert_called_once_with()
    transaction.rollback.assert_not_called()


def test_rollback_and_commit_when_idle_do_nothing() -> None:
    guard = TransactionGuard()
    assert guard.commit() is False
    assert guard.rollback() is False
    assert guard.state is TransactionState.IDLE


def test_autobegun_transaction_is_closed_before_begin() -> None:
    guard = TransactionGuard()
    connection = _connection(autobegun=True)

    guard.begin(lambda: connection)

    connection.commit.assert_called_once_with()
    connection.begin.assert_called_once_with()


def test_state_is_idle_even_if_commit_fails() -> None:
    guard = TransactionGuard()
    connection = _connection()
    guard.begin(lambda: connection)
    connection.begin.return_value.commit.side_effect = RuntimeError("lost connection")

    with pytest.raises(RuntimeError):
        guard.commit()

    assert guard.state is TransactionState.IDLE


def test_reset() -> None:
    guard = TransactionGuard()
    guard.begin(lambda: _connection())
    guard.reset()
    assert guard.state is TransactionState.IDLE
