"""
Crudtastic: Generic Table Model
===============================

What:  A small active-record layer over one reflected SQLAlchemy `Table`.
How:   `TableModel` answers collection-level questions (fetch all, fetch by
       id, count) and builds `Record`s; a `Record` holds one row's
       attributes and knows how to save or destroy itself.
Who:   Route handlers call it; they never build SQL themselves.

Transactions:
    Every operation takes an optional `transaction` (an AsyncConnection
    inside BEGIN, see Database.transaction). Mutations issued by
    transactional handlers always pass it; reads without one borrow a
    pooled connection for the duration of the query.

Identifiers:
    Path parameters arrive as strings. They are parsed into the primary key
    column's Python type before querying (ISO 8601 for dates and times); a
    value that cannot be parsed cannot match any row. Types without a
    parser are compared as given.
"""

import logging
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import Table, func, select
from sqlalchemy.ext.asyncio import AsyncConnection

from crudtastic.database import Database
from crudtastic.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_UNCOERCIBLE = object()

# Column Python type -> parser for path and query values
_PARSERS = {
    int: int,
    float: float,
    Decimal: Decimal,
    str: str,
    uuid.UUID: lambda value: uuid.UUID(str(value)),
    date: date.fromisoformat,
    datetime: datetime.fromisoformat,
    time: time.fromisoformat,
}


class TableModel:
    """
    Data model accessor for one table.

    Attributes:
        table:        Reflected SQLAlchemy Table
        database:     Shared Database (engine owner)
        primary_key:  Name of the single primary key column
    """

    def __init__(self, table: Table, database: Database):
        pk_columns = list(table.primary_key.columns)
        if len(pk_columns) != 1:
            raise ValueError(
                f"Table '{table.name}' needs exactly one primary key column, "
                f"found {len(pk_columns)}"
            )
        self.table = table
        self.database = database
        self.primary_key = pk_columns[0].name

    @property
    def name(self) -> str:
        return self.table.name

    @property
    def columns(self) -> List[str]:
        return [c.name for c in self.table.columns]

    def __repr__(self) -> str:
        return f"<TableModel({self.name}, pk={self.primary_key})>"

    # ── Collection-level operations ───────────────────────────────────────

    async def fetch_all(self, transaction: Optional[AsyncConnection] = None) -> List["Record"]:
        async with self.database.connection(transaction) as conn:
            result = await conn.execute(select(self.table))
            rows = result.mappings().all()
        return [self._from_row(row) for row in rows]

    async def fetch(
        self, identifier: Any, transaction: Optional[AsyncConnection] = None
    ) -> "Record":
        """Load exactly one record by primary key or raise NotFoundError."""
        value = self.coerce(self.primary_key, identifier)
        if value is _UNCOERCIBLE:
            raise NotFoundError(resource=self.name, resource_id=identifier)

        pk = self.table.c[self.primary_key]
        async with self.database.connection(transaction) as conn:
            result = await conn.execute(select(self.table).where(pk == value))
            row = result.mappings().first()
        if row is None:
            raise NotFoundError(resource=self.name, resource_id=identifier)
        return self._from_row(row)

    async def count_where(
        self, field: str, value: Any, transaction: Optional[AsyncConnection] = None
    ) -> int:
        self._check_columns([field])
        coerced = self.coerce(field, value)
        if coerced is _UNCOERCIBLE:
            return 0

        stmt = select(func.count()).select_from(self.table).where(self.table.c[field] == coerced)
        async with self.database.connection(transaction) as conn:
            result = await conn.execute(stmt)
            return int(result.scalar_one())

    async def count(self, transaction: Optional[AsyncConnection] = None) -> int:
        stmt = select(func.count()).select_from(self.table)
        async with self.database.connection(transaction) as conn:
            result = await conn.execute(stmt)
            return int(result.scalar_one())

    def build(self, attributes: Optional[Mapping[str, Any]] = None) -> "Record":
        """A new, unsaved record."""
        record = Record(self)
        if attributes:
            record.set(attributes)
        return record

    # ── Helpers ───────────────────────────────────────────────────────────

    def coerce(self, field: str, value: Any) -> Any:
        """
        Convert `value` to the column's Python type, or _UNCOERCIBLE.

        Only types with a string parser are converted; anything else is
        passed through for the database to compare.
        """
        column = self.table.c[field]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value
        if value is None or isinstance(value, python_type):
            return value
        parse = _PARSERS.get(python_type)
        if parse is None:
            return value
        try:
            return parse(value)
        except (TypeError, ValueError, ArithmeticError):
            return _UNCOERCIBLE

    def _check_columns(self, names: Iterable[str]) -> None:
        unknown = sorted(set(names) - set(self.columns))
        if unknown:
            raise ValidationError(
                message=f"Unknown column(s) for '{self.name}': {', '.join(unknown)}",
                field=unknown[0],
                context={"table": self.name, "unknown": unknown},
            )

    def _from_row(self, row: Mapping[str, Any]) -> "Record":
        return Record(self, dict(row), persisted=True)


class Record:
    """
    One row of a table.

    `set()` only changes memory; `save()` writes the pending changes.
    """

    def __init__(
        self,
        model: TableModel,
        attributes: Optional[Dict[str, Any]] = None,
        persisted: bool = False,
    ):
        self.model = model
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self.persisted = persisted
        self._changed: Dict[str, Any] = {}

    @property
    def id(self) -> Any:
        return self.attributes.get(self.model.primary_key)

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set(self, attributes: Mapping[str, Any]) -> "Record":
        """Merge attributes in memory; absent fields keep their value."""
        self.model._check_columns(attributes.keys())
        for key, value in attributes.items():
            self.attributes[key] = value
            self._changed[key] = value
        return self

    async def save(self, transaction: Optional[AsyncConnection] = None) -> "Record":
        """INSERT a new record or UPDATE the changed columns of a persisted one."""
        table = self.model.table
        async with self.model.database.connection(transaction) as conn:
            if not self.persisted:
                stmt = table.insert().values(**self.attributes).returning(*table.c)
            else:
                if not self._changed:
                    return self
                pk = table.c[self.model.primary_key]
                stmt = (
                    table.update()
                    .where(pk == self.id)
                    .values(**self._changed)
                    .returning(*table.c)
                )
            result = await conn.execute(stmt)
            row = result.mappings().one()

        self.attributes = dict(row)
        self.persisted = True
        self._changed = {}
        logger.debug("Saved %s %s", self.model.name, self.id)
        return self

    async def destroy(self, transaction: Optional[AsyncConnection] = None) -> None:
        if not self.persisted:
            raise NotFoundError(resource=self.model.name)
        table = self.model.table
        pk = table.c[self.model.primary_key]
        async with self.model.database.connection(transaction) as conn:
            result = await conn.execute(table.delete().where(pk == self.id))
        if result.rowcount == 0:
            raise NotFoundError(resource=self.model.name, resource_id=self.id)
        self.persisted = False
        logger.debug("Destroyed %s %s", self.model.name, self.id)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.model is other.model and self.attributes == other.attributes

    def __repr__(self) -> str:
        return f"<Record({self.model.name}, {self.model.primary_key}={self.id!r})>"
