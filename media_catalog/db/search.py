"""
Trigger-maintained full-text search vectors.

Each searchable table gets a plpgsql function and a BEFORE INSERT OR UPDATE
trigger that rebuilds search_vector from the table's descriptive columns:

    NEW.search_vector := to_tsvector('english', concat_ws(' ', NEW.title, ...));

install_search_trigger() hooks the DDL onto the table so metadata.create_all
creates it; the Alembic migration emits the same statements.
"""

from typing import Sequence

from sqlalchemy import DDL, Table, event


def _function_name(table_name: str) -> str:
    return f"{table_name}_search_vector_update"


def _trigger_name(table_name: str) -> str:
    return f"tsvector_update_{table_name}"


def search_document(columns: Sequence[str], array_columns: Sequence[str] = ()) -> str:
    """SQL expression concatenating the NEW row's searchable columns."""
    parts = [f"NEW.{column}::text" for column in columns]
    parts += [f"array_to_string(NEW.{column}, ' ')" for column in array_columns]
    return f"concat_ws(' ', {', '.join(parts)})"


def create_search_trigger_sql(table_name: str, document: str) -> list[str]:
    function_name = _function_name(table_name)
    return [
        f"""
        CREATE OR REPLACE FUNCTION {function_name}() RETURNS trigger AS $$
        BEGIN
            NEW.search_vector := to_tsvector('english', {document});
            RETURN NEW;
        END
        $$ LANGUAGE plpgsql;
        """,
        f"""
        CREATE TRIGGER {_trigger_name(table_name)}
        BEFORE INSERT OR UPDATE ON {table_name}
        FOR EACH ROW EXECUTE FUNCTION {function_name}();
        """,
        f"""
        CREATE INDEX IF NOT EXISTS ix_{table_name}_search_vector_gin
        ON {table_name} USING GIN (search_vector);
        """,
    ]


def drop_search_trigger_sql(table_name: str) -> list[str]:
    return [
        f"DROP INDEX IF EXISTS ix_{table_name}_search_vector_gin",
        f"DROP TRIGGER IF EXISTS {_trigger_name(table_name)} ON {table_name}",
        f"DROP FUNCTION IF EXISTS {_function_name(table_name)}()",
    ]


def install_search_trigger(
    table: Table,
    columns: Sequence[str],
    array_columns: Sequence[str] = (),
) -> None:
    """Attach the trigger DDL to `table` for metadata.create_all (PostgreSQL only)."""
    document = search_document(columns, array_columns)
    for statement in create_search_trigger_sql(table.name, document):
        event.listen(
            table,
            "after_create",
            DDL(statement).execute_if(dialect="postgresql"),
        )
