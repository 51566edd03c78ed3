"""
===========================================
Data Manipulation Language (DML) Utilities.
===========================================

Reusable functions producing the DML statements used by the full-refresh
medallion loads. Inserts go through ``DataFrame.to_sql``; this module only
covers the clearing side of truncate-and-load.

Functions:
- truncate_table_sql: Generate a TRUNCATE TABLE statement

Usage:
    from sql.dml import truncate_table_sql

    truncate_sql = truncate_table_sql(schema='silver', table='crm_cust_info')
    # TRUNCATE TABLE "silver"."crm_cust_info";
"""


def truncate_table_sql(schema: str, table: str, restart_identity: bool = False) -> str:
    """
    Generate TRUNCATE TABLE statement.

    Args:
        schema: Schema name
        table: Table name
        restart_identity: Reset owned sequences (PostgreSQL RESTART IDENTITY)

    Returns:
        SQL TRUNCATE statement

    Raises:
        ValueError: If schema or table is empty
    """
    if not schema or not table:
        raise ValueError("Both schema and table names are required")

    sql = f'TRUNCATE TABLE "{schema}"."{table}"'
    if restart_identity:
        sql += " RESTART IDENTITY"
    return sql + ";"
