"""
============================
SQL Query Builder Utilities.
============================

Low-level building blocks for the read side of the medallion loads.
Builders follow the _builder naming convention.

Query Builders:
- select_builder: Build SELECT statements with explicit column lists

Metadata Query Functions:
- check_table_exists_sql: Check if a table exists in a schema

Usage:
    from sql.query_builder import select_builder

    query = select_builder(
        schema='bronze',
        table='crm_cust_info',
        columns=['cst_id', 'cst_key', 'cst_create_date']
    )
"""

from typing import List, Optional, Union


def select_builder(
    schema: str,
    table: str,
    columns: Union[List[str], str] = "*",
    where_conditions: Optional[List[str]] = None,
    order_by: Optional[List[str]] = None,
    limit: Optional[int] = None
) -> str:
    """
    Build a SELECT statement.

    Args:
        schema: Schema name
        table: Table name
        columns: Column list or "*"
        where_conditions: Conditions joined with AND
        order_by: ORDER BY expressions
        limit: Maximum number of rows

    Returns:
        SQL SELECT statement

    Example:
        >>> select_builder('silver', 'crm_prd_info', ['prd_key'], limit=5)
        'SELECT "prd_key"\\nFROM "silver"."crm_prd_info"\\nLIMIT 5'
    """
    if isinstance(columns, str):
        column_list = columns
    else:
        if not columns:
            raise ValueError("columns must not be empty")
        column_list = ", ".join(f'"{col}"' for col in columns)

    parts = [f"SELECT {column_list}", f'FROM "{schema}"."{table}"']

    if where_conditions:
        parts.append("WHERE " + " AND ".join(where_conditions))
    if order_by:
        parts.append("ORDER BY " + ", ".join(order_by))
    if limit is not None:
        parts.append(f"LIMIT {int(limit)}")

    return "\n".join(parts)


def check_table_exists_sql(schema_name: str, table_name: str) -> str:
    """
    Generate SQL returning a single boolean: does schema.table exist.

    Args:
        schema_name: Schema name
        table_name: Table name

    Returns:
        SQL query string
    """
    return f"""
    SELECT EXISTS (
        SELECT 1 FROM information_schema.tables
        WHERE table_schema = '{schema_name}'
          AND table_name = '{table_name}'
    );
    """
