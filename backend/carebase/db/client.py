"""
Table client — a small query builder over the async session factory.

Services talk to the database through ``client.table(name)`` the same way
they would talk to a hosted database REST client::

    result = await client.table("patients").insert(row).select().execute()
    if result.error:
        raise result.error

Every ``execute()`` runs in its own short transaction and never raises for
database failures; the failure is returned as ``QueryResult.error``.
Unknown tables or columns and misuse of the builder raise ``ValueError``
straight away since they are programming errors.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    MetaData,
    Table,
    Uuid,
    delete,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for "invalid text representation"
INVALID_TEXT_REPRESENTATION = "22P02"


class DatabaseError(Exception):
    """A failed database call, carried in ``QueryResult.error``."""

    def __init__(self, message: str, *, code: str | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    @classmethod
    def from_exception(cls, exc: SQLAlchemyError) -> "DatabaseError":
        if isinstance(exc, DBAPIError) and exc.orig is not None:
            orig = exc.orig
            code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
            return cls(str(orig), code=code, details=type(orig).__name__)
        return cls(str(exc), details=type(exc).__name__)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


@dataclass
class QueryResult:
    data: list[dict[str, Any]] | None = None
    error: DatabaseError | None = None
    count: int | None = None


def _coerce(column: Column, value: Any) -> Any:
    """Accept the string forms a REST client would send for typed columns."""
    if value is None:
        return None
    try:
        if isinstance(column.type, Uuid) and isinstance(value, str):
            return uuid.UUID(value)
        if isinstance(column.type, DateTime) and isinstance(value, str):
            return datetime.fromisoformat(value)
        if isinstance(column.type, Date) and isinstance(value, str):
            return date.fromisoformat(value)
    except ValueError as exc:
        raise DatabaseError(
            f'invalid input syntax for column "{column.name}": {value!r}',
            code=INVALID_TEXT_REPRESENTATION,
        ) from exc
    return value


class QueryBuilder:
    """Fluent builder for a single statement against one table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], table: Table):
        self._session_factory = session_factory
        self._table = table
        self._operation: str | None = None
        self._values: dict[str, Any] | list[dict[str, Any]] | None = None
        self._columns: list[Column] | None = None
        self._returning = False
        self._count: str | None = None
        self._filters: list[tuple[str, Any, Any]] = []
        self._order: list[tuple[Column, bool]] = []
        self._limit: int | None = None
        self._offset: int | None = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def select(self, columns: str = "*", *, count: str | None = None) -> "QueryBuilder":
        """Select rows, or ask a pending insert/update/delete to return rows."""
        if count not in (None, "exact"):
            raise ValueError(f"Unsupported count mode: {count!r}")
        if self._operation in ("insert", "update", "delete"):
            self._returning = True
            self._columns = self._resolve_columns(columns)
            return self
        self._set_operation("select")
        self._columns = self._resolve_columns(columns)
        self._count = count
        return self

    def insert(self, values: dict[str, Any] | list[dict[str, Any]]) -> "QueryBuilder":
        self._set_operation("insert")
        rows = values if isinstance(values, list) else [values]
        if not rows:
            raise ValueError("insert() needs at least one row")
        for row in rows:
            self._check_keys(row)
        self._values = values
        return self

    def update(self, values: dict[str, Any]) -> "QueryBuilder":
        self._set_operation("update")
        if not values:
            raise ValueError("update() needs at least one column")
        self._check_keys(values)
        self._values = values
        return self

    def delete(self) -> "QueryBuilder":
        self._set_operation("delete")
        return self

    # ------------------------------------------------------------------
    # Filters and modifiers
    # ------------------------------------------------------------------

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self._filters.append(("eq", self._column(column), value))
        return self

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        self._filters.append(("neq", self._column(column), value))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        self._filters.append(("in", self._column(column), list(values)))
        return self

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        self._filters.append(("ilike", self._column(column), pattern))
        return self

    def ilike_any(self, columns: Iterable[str], pattern: str) -> "QueryBuilder":
        """Match *pattern* case-insensitively against any of *columns*."""
        resolved = [self._column(name) for name in columns]
        if not resolved:
            raise ValueError("ilike_any() needs at least one column")
        self._filters.append(("ilike_any", resolved, pattern))
        return self

    def order(self, column: str, *, desc: bool = False) -> "QueryBuilder":
        self._order.append((self._column(column), desc))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        if count < 0:
            raise ValueError("limit() must not be negative")
        self._limit = count
        return self

    def range(self, start: int, end: int) -> "QueryBuilder":
        """Restrict to rows *start* through *end*, both inclusive."""
        if start < 0 or end < start:
            raise ValueError(f"Invalid range {start}..{end}")
        self._offset = start
        self._limit = end - start + 1
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self) -> QueryResult:
        if self._operation is None:
            raise ValueError(f"No operation chosen for table {self._table.name!r}")
        if self._operation in ("update", "delete") and not self._filters:
            raise ValueError(f"{self._operation}() on {self._table.name!r} requires a filter")

        try:
            conditions = [self._condition(*f) for f in self._filters]
            statement = self._statement(conditions)
            async with self._session_factory() as session:
                async with session.begin():
                    count = None
                    if self._count == "exact":
                        count_query = select(func.count()).select_from(
                            select(self._table).where(*conditions).subquery()
                        )
                        count = (await session.execute(count_query)).scalar_one()
                    result = await session.execute(statement)
                    data = None
                    if self._operation == "select" or self._returning:
                        data = [dict(row._mapping) for row in result]
        except DatabaseError as exc:
            logger.debug("Rejected %s on %s: %s", self._operation, self._table.name, exc)
            return QueryResult(error=exc)
        except SQLAlchemyError as exc:
            logger.debug("Database error during %s on %s: %s", self._operation, self._table.name, exc)
            return QueryResult(error=DatabaseError.from_exception(exc))
        return QueryResult(data=data, count=count)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_operation(self, operation: str) -> None:
        if self._operation is not None:
            raise ValueError(f"Cannot call {operation}() after {self._operation}()")
        self._operation = operation

    def _column(self, name: str) -> Column:
        try:
            return self._table.c[name]
        except KeyError:
            raise ValueError(f"Unknown column {name!r} on table {self._table.name!r}") from None

    def _resolve_columns(self, columns: str) -> list[Column]:
        if columns.strip() == "*":
            return list(self._table.c)
        return [self._column(name.strip()) for name in columns.split(",") if name.strip()]

    def _check_keys(self, row: dict[str, Any]) -> None:
        for key in row:
            self._column(key)

    def _coerce_row(self, row: dict[str, Any]) -> dict[str, Any]:
        return {key: _coerce(self._table.c[key], value) for key, value in row.items()}

    def _condition(self, op: str, column: Any, value: Any):
        if op == "eq":
            return column == _coerce(column, value)
        if op == "neq":
            return column != _coerce(column, value)
        if op == "in":
            return column.in_([_coerce(column, v) for v in value])
        if op == "ilike":
            return column.ilike(value)
        return or_(*(c.ilike(value) for c in column))

    def _statement(self, conditions: list):
        if self._operation == "select":
            query = select(*self._columns).where(*conditions)
            for column, descending in self._order:
                query = query.order_by(column.desc() if descending else column.asc())
            if self._limit is not None:
                query = query.limit(self._limit)
            if self._offset is not None:
                query = query.offset(self._offset)
            return query

        if self._operation == "insert":
            if isinstance(self._values, list):
                values = [self._coerce_row(row) for row in self._values]
            else:
                values = self._coerce_row(self._values)
            statement = insert(self._table).values(values)
        elif self._operation == "update":
            statement = update(self._table).where(*conditions).values(self._coerce_row(self._values))
        else:
            statement = delete(self._table).where(*conditions)

        if self._returning:
            statement = statement.returning(*self._columns)
        return statement


class SqlTableClient:
    """Entry point handed to services: ``client.table("patients")``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], metadata: MetaData):
        self._session_factory = session_factory
        self._metadata = metadata

    def table(self, name: str) -> QueryBuilder:
        try:
            table = self._metadata.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table {name!r}") from None
        return QueryBuilder(self._session_factory, table)
