# Supabase schema for the persisted tenant graphs
from app.utils.supabase_utils import TENANT_PROJECTS_TABLE

SUPABASE_SCHEMA = {
    "tables": [
        {
            "name": TENANT_PROJECTS_TABLE,
            "columns": [
                {"name": "key", "type": "text", "primaryKey": True},
                {"name": "data", "type": "text", "notNull": True},
                {"name": "created_at", "type": "timestamp with time zone", "notNull": True, "default": "now()"},
                {"name": "updated_at", "type": "timestamp with time zone", "notNull": True, "default": "now()"},
            ]
        }
    ],
    "indexes": [
        {"table": TENANT_PROJECTS_TABLE, "columns": ["updated_at"], "method": "btree"},
    ],
}


def column_definition(column: dict) -> str:
    """Render one column of SUPABASE_SCHEMA as SQL."""
    column_def = f"{column['name']} {column['type']}"

    if column.get("primaryKey"):
        column_def += " PRIMARY KEY"
    if column.get("notNull"):
        column_def += " NOT NULL"
    if column.get("unique"):
        column_def += " UNIQUE"

    # Handle DEFAULT expressions
    if column.get("default") is not None:
        default_value = column["default"]
        if default_value in ("now()", "gen_random_uuid()"):
            column_def += f" DEFAULT {default_value}"
        elif isinstance(default_value, str):
            column_def += f" DEFAULT '{default_value}'"
        else:
            column_def += f" DEFAULT {default_value}"

    return column_def


def create_table_sql(table: dict) -> str:
    columns = ", ".join(column_definition(column) for column in table["columns"])
    return f"CREATE TABLE IF NOT EXISTS {table['name']} ({columns});"


def create_index_sql(index: dict) -> str:
    table_name = index["table"]
    index_name = f"idx_{table_name}_{'_'.join(index['columns'])}"
    return (
        f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name} "
        f"USING {index['method']} ({','.join(index['columns'])})"
    )
