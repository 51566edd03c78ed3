"""
====================================================
SQL utilities package for data warehouse operations.
====================================================

Pure functions producing the SQL strings executed by the medallion loaders.

The package follows a clear organization:
    - dml.py: Data Manipulation Language (TRUNCATE)
    - query_builder.py: Query builders and metadata queries (_builder suffix)

Example:
    >>> from sql.dml import truncate_table_sql
    >>> from sql.query_builder import select_builder
    >>>
    >>> truncate_table_sql('silver', 'crm_cust_info')
    'TRUNCATE TABLE "silver"."crm_cust_info";'
"""

__version__ = "1.1.0"
__all__ = [
    'truncate_table_sql',
    'select_builder', 'check_table_exists_sql',
]

from .dml import truncate_table_sql
from .query_builder import check_table_exists_sql, select_builder
