"""Translation of backend-neutral CRUD requests into native queries.

Relational requests become parameterized SQL text for SQLAlchemy's ``text()``
with every value bound by name. Document requests become pymongo filter,
update, projection and sort specifications. Nothing here performs I/O.

Table, collection and column names are emitted as given: callers must only
pass trusted identifiers. The ``order`` option is likewise passed through as
raw text.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pymongo import ASCENDING, DESCENDING

from dbfacade.db.drivers import Dialect
from dbfacade.exceptions import ConstraintError, QueryError

ROW_RETURNING_KEYWORDS = frozenset({"select", "show", "describe", "pragma", "with"})

_LEADING_KEYWORD = re.compile(r"\s*([A-Za-z]+)")
_NON_WORD = re.compile(r"\W")

Params = Union[Mapping[Any, Any], Sequence[Any], None]


@dataclass(frozen=True)
class SelectOptions:
    """Projection, ordering and paging options for select."""
    columns: Optional[Sequence[str]] = None
    order: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @classmethod
    def coerce(cls, options: Union["SelectOptions", Mapping[str, Any], None] = None) -> "SelectOptions":
        """Build options from None, an existing instance or a plain mapping."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options

        unknown = set(options) - {"columns", "order", "limit", "offset"}
        if unknown:
            raise QueryError(f"Unknown select option(s): {sorted(unknown)}")

        columns = options.get("columns")
        if isinstance(columns, str):
            columns = [c.strip() for c in columns.split(",") if c.strip()]

        return cls(
            columns=columns,
            order=options.get("order"),
            limit=_non_negative("limit", options.get("limit")),
            offset=_non_negative("offset", options.get("offset")),
        )

    @property
    def projected_columns(self) -> List[str]:
        """Requested columns, empty when every column is wanted."""
        return [c for c in (self.columns or []) if c != "*"]


@dataclass(frozen=True)
class SQLStatement:
    """SQL text with named placeholders and the values bound to them."""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentQuery:
    """A pymongo find request."""
    filter: Dict[str, Any]
    projection: Optional[Dict[str, int]] = None
    sort: Optional[List[Tuple[str, int]]] = None
    limit: Optional[int] = None
    skip: Optional[int] = None


def _non_negative(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise QueryError(f"Option '{name}' must be an integer, got {value!r}") from None
    if number < 0:
        raise QueryError(f"Option '{name}' must not be negative, got {number}")
    return number


def require_conditions(operation: str, table: str, conditions: Optional[Mapping[str, Any]]) -> None:
    """Refuse mutations that would hit every row of a table.

    Raises:
        ConstraintError: If no condition is given.
    """
    if not conditions:
        raise ConstraintError(
            f"Refusing to {operation} '{table}' without conditions",
            operation=operation,
            table=table,
        )


def require_data(operation: str, table: str, data: Optional[Mapping[str, Any]]) -> None:
    """Refuse writes that carry no column values.

    Raises:
        ConstraintError: If the data mapping is empty.
    """
    if not data:
        raise ConstraintError(
            f"Nothing to {operation} into '{table}': no column values given",
            operation=operation,
            table=table,
        )


class _PlaceholderNames:
    """Hands out unique bind names derived from column names."""

    def __init__(self) -> None:
        self._used: set = set()

    def take(self, column: str, prefix: str = "") -> str:
        base = _NON_WORD.sub("_", f"{prefix}{column}") or "p"
        name = base
        suffix = 2
        while name in self._used:
            name = f"{base}_{suffix}"
            suffix += 1
        self._used.add(name)
        return name


def _where_clause(
    conditions: Optional[Mapping[str, Any]],
    names: _PlaceholderNames,
    params: Dict[str, Any],
) -> str:
    if not conditions:
        return ""
    clauses = []
    for column, value in conditions.items():
        name = names.take(column, "w_")
        params[name] = value
        clauses.append(f"{column} = :{name}")
    return " WHERE " + " AND ".join(clauses)


def build_insert(table: str, data: Mapping[str, Any]) -> SQLStatement:
    """INSERT INTO t (a, b) VALUES (:a, :b)."""
    require_data("insert", table, data)
    names = _PlaceholderNames()
    params: Dict[str, Any] = {}
    placeholders = []
    for column, value in data.items():
        name = names.take(column)
        params[name] = value
        placeholders.append(f":{name}")
    sql = f"INSERT INTO {table} ({', '.join(data)}) VALUES ({', '.join(placeholders)})"
    return SQLStatement(sql, params)


def build_select(
    table: str,
    conditions: Optional[Mapping[str, Any]] = None,
    options: Union[SelectOptions, Mapping[str, Any], None] = None,
    dialect: Dialect = Dialect.MYSQL,
) -> SQLStatement:
    """SELECT cols FROM t [WHERE ...] [ORDER BY ...] [LIMIT n [OFFSET m]]."""
    options = SelectOptions.coerce(options)
    names = _PlaceholderNames()
    params: Dict[str, Any] = {}

    columns = ", ".join(options.projected_columns) or "*"
    sql = f"SELECT {columns} FROM {table}" + _where_clause(conditions, names, params)
    if options.order:
        sql += f" ORDER BY {options.order}"
    sql += _pagination(options, dialect)
    return SQLStatement(sql, params)


def _pagination(options: SelectOptions, dialect: Dialect) -> str:
    # An offset is only meaningful together with a limit
    if options.limit is None:
        return ""
    if dialect == Dialect.SQLSERVER:
        clause = "" if options.order else " ORDER BY (SELECT NULL)"
        return clause + f" OFFSET {options.offset or 0} ROWS FETCH NEXT {options.limit} ROWS ONLY"
    clause = f" LIMIT {options.limit}"
    if options.offset:
        clause += f" OFFSET {options.offset}"
    return clause


def build_update(
    table: str,
    data: Mapping[str, Any],
    conditions: Mapping[str, Any],
) -> SQLStatement:
    """UPDATE t SET c = :s_c, ... WHERE c = :w_c AND ..."""
    require_conditions("update", table, conditions)
    require_data("update", table, data)
    names = _PlaceholderNames()
    params: Dict[str, Any] = {}
    assignments = []
    for column, value in data.items():
        name = names.take(column, "s_")
        params[name] = value
        assignments.append(f"{column} = :{name}")
    sql = f"UPDATE {table} SET {', '.join(assignments)}" + _where_clause(conditions, names, params)
    return SQLStatement(sql, params)


def build_delete(table: str, conditions: Mapping[str, Any]) -> SQLStatement:
    """DELETE FROM t WHERE ..."""
    require_conditions("delete", table, conditions)
    names = _PlaceholderNames()
    params: Dict[str, Any] = {}
    sql = f"DELETE FROM {table}" + _where_clause(conditions, names, params)
    return SQLStatement(sql, params)


def is_row_returning(query: str) -> bool:
    """Whether a statement produces rows, judged by its leading keyword."""
    match = _LEADING_KEYWORD.match(query)
    return bool(match) and match.group(1).lower() in ROW_RETURNING_KEYWORDS


def build_raw(query: str, params: Params = None) -> SQLStatement:
    """Bind positional or named parameters to a literal query.

    Positional values (a sequence, or a mapping keyed by 0-based integers)
    fill ``?`` markers left to right; the markers are rewritten to 1-based
    names ``:p1, :p2, ...``. Named keys may be given with or without the
    leading ``:``. Colons inside quoted literals are escaped so they are
    never read as bind names.

    Raises:
        QueryError: On mixed key styles or a positional count mismatch.
    """
    if not params:
        return SQLStatement(_scan_literals(query)[0], {})

    if isinstance(params, Mapping):
        keys = list(params)
        if all(isinstance(k, int) for k in keys):
            ordered = sorted(keys)
            if ordered != list(range(len(ordered))):
                raise QueryError(
                    f"Positional parameter keys must run from 0 to {len(ordered) - 1}, got {ordered}",
                    sql_query=query,
                )
            return _bind_positional(query, [params[k] for k in ordered])
        if all(isinstance(k, str) for k in keys):
            sql = _scan_literals(query)[0]
            return SQLStatement(sql, {k.lstrip(":"): v for k, v in params.items()})
        raise QueryError("Cannot mix positional and named parameters", sql_query=query)

    if isinstance(params, (str, bytes)):
        raise QueryError("Parameters must be a mapping or a sequence of values", sql_query=query)

    return _bind_positional(query, list(params))


def _scan_literals(query: str, number_markers: bool = False) -> Tuple[str, int]:
    """Escape ``:`` inside quoted literals; optionally number ``?`` outside them.

    Returns the rewritten text and the number of ``?`` markers replaced.
    """
    parts = []
    count = 0
    quote: Optional[str] = None
    for char in query:
        if quote:
            if char == quote:
                quote = None
            parts.append("\\:" if char == ":" else char)
        elif char in ("'", '"'):
            quote = char
            parts.append(char)
        elif char == "?" and number_markers:
            count += 1
            parts.append(f":p{count}")
        else:
            parts.append(char)
    return "".join(parts), count


def _bind_positional(query: str, values: List[Any]) -> SQLStatement:
    sql, count = _scan_literals(query, number_markers=True)
    if count != len(values):
        raise QueryError(
            f"Query has {count} positional placeholder(s) but {len(values)} value(s) were given",
            sql_query=query,
        )
    return SQLStatement(sql, {f"p{i}": v for i, v in enumerate(values, start=1)})


# Document store translation


def parse_sort(order: Optional[str]) -> Optional[List[Tuple[str, int]]]:
    """Turn ``"age DESC, name"`` into a pymongo sort list."""
    if not order:
        return None
    sort = []
    for part in order.split(","):
        tokens = part.split()
        if not tokens:
            continue
        direction = DESCENDING if len(tokens) > 1 and tokens[1].upper() == "DESC" else ASCENDING
        sort.append((tokens[0], direction))
    return sort or None


def build_document_insert(collection: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    require_data("insert", collection, data)
    # pymongo writes _id back into the document it is given
    return dict(data)


def build_document_update(
    collection: str,
    data: Mapping[str, Any],
    conditions: Mapping[str, Any],
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return the (filter, update) pair for update_many."""
    require_conditions("update", collection, conditions)
    require_data("update", collection, data)
    return dict(conditions), {"$set": dict(data)}


def build_document_delete(collection: str, conditions: Mapping[str, Any]) -> Dict[str, Any]:
    require_conditions("delete", collection, conditions)
    return dict(conditions)


def build_document_find(
    conditions: Optional[Mapping[str, Any]] = None,
    options: Union[SelectOptions, Mapping[str, Any], None] = None,
) -> DocumentQuery:
    options = SelectOptions.coerce(options)
    columns = options.projected_columns
    return DocumentQuery(
        filter=dict(conditions or {}),
        projection={column: 1 for column in columns} if columns else None,
        sort=parse_sort(options.order),
        limit=options.limit,
        skip=options.offset,
    )
