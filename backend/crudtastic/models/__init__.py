from crudtastic.models.table_model import Record, TableModel

__all__ = ["Record", "TableModel"]
