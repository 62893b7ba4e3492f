"""A reflected table exposed as a REST resource."""

from sqlalchemy import Table

from crudtastic.database import Database
from crudtastic.models.table_model import TableModel


class RestfulResource:
    def __init__(self, table: Table, database: Database):
        self.table = table
        self.model = TableModel(table, database)

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def path(self) -> str:
        return f"/{self.table.name}"

    def route_name(self, handler_name: str) -> str:
        """Route names are `<table>.<handler>`, e.g. `books.show`."""
        return f"{self.table_name}.{handler_name}"

    def __repr__(self) -> str:
        return f"<RestfulResource({self.path})>"
