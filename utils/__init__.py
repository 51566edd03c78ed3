"""
==========================
Utility Functions Package.
==========================

Reusable helpers for database connectivity shared by the medallion loaders
and the CLI orchestrator.

Modules:
    database_utils: PostgreSQL connectivity, health and existence checks
"""

__version__ = "1.1.0"
__all__ = [
    'wait_for_database',
    'check_database_available',
    'verify_database_exists',
    'create_sqlalchemy_engine',
    'table_exists',
    'verify_connection'
]

from .database_utils import (
    check_database_available,
    create_sqlalchemy_engine,
    table_exists,
    verify_connection,
    verify_database_exists,
    wait_for_database,
)
