"""
Crudtastic: Schema Introspection
================================

What:  Discovers the tables to expose as REST resources.
How:   SQLAlchemy reflection (`MetaData.reflect`) run on the async engine via
       `AsyncConnection.run_sync`. Excluded tables are dropped; tables that
       lack a single-column primary key are skipped with a warning because
       show/update/destroy address rows by one id.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import MetaData, Table
from sqlalchemy.exc import SQLAlchemyError

from crudtastic.database import Database
from crudtastic.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Schema:
    def __init__(
        self,
        database: Database,
        schema: Optional[str] = None,
        exclude: Sequence[str] = (),
    ):
        self.database = database
        self.schema = schema
        self.exclude = set(exclude)

    async def introspect(self) -> List[Table]:
        """Reflect the database and return exposable tables sorted by name."""
        metadata = MetaData(schema=self.schema)
        try:
            async with self.database.engine.connect() as conn:
                await conn.run_sync(lambda sync_conn: metadata.reflect(bind=sync_conn))
        except SQLAlchemyError as exc:
            raise DatabaseError(
                message="Could not reflect the database schema",
                context={"schema": self.schema, "error": str(exc)},
            ) from exc

        tables = []
        for table in sorted(metadata.tables.values(), key=lambda t: t.name):
            if table.name in self.exclude:
                logger.debug("Skipping excluded table %s", table.name)
                continue
            if len(table.primary_key.columns) != 1:
                logger.warning(
                    "Skipping table %s: needs a single-column primary key", table.name
                )
                continue
            tables.append(table)

        logger.info("Introspected %d table(s): %s", len(tables), ", ".join(t.name for t in tables))
        return tables
