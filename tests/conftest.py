from __future__ import annotations

from pathlib import Path

import pytest

from dbfacade.diagnostics import DiagnosticSink
from dbfacade.facade import Database


@pytest.fixture(autouse=True)
def isolated_error_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep diagnostic log files out of the working directory."""
    path = tmp_path / "dbfacade_error.log"
    monkeypatch.setenv("DBFACADE_ERROR_LOG_PATH", str(path))
    return path


@pytest.fixture()
def sqlite_database(tmp_path: Path) -> Database:
    database = Database(
        driver="sqlite",
        database=str(tmp_path / "app.db"),
        diagnostics=DiagnosticSink(error_log_path=tmp_path / "error.log"),
    )
    database.raw_query(
        "CREATE TABLE users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL, "
        "age INTEGER, "
        "email TEXT)"
    )
    try:
        yield database
    finally:
        database.close()
