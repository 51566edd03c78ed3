"""
========================================
ORM Models for Data Warehouse
========================================

Centralized SQLAlchemy model definitions for the medallion pipeline.

Modules:
    logs_models: Audit logging and process tracking models (``logs`` schema)
    warehouse_models: Bronze and Silver table layouts for the six CRM/ERP entities

Example:
    >>> from models import ProcessLog, SILVER_TABLES
    >>> SILVER_TABLES['crm_cust_info'].fullname
    'silver.crm_cust_info'
"""

__version__ = "0.2.0"
__all__ = [
    # Logs schema models
    'ProcessLog',
    'ErrorLog',
    'PerformanceMetrics',
    'Base',
    # Warehouse layouts
    'BRONZE_TABLES',
    'SILVER_TABLES',
    'column_names',
    'column_types',
]

from .logs_models import Base, ErrorLog, PerformanceMetrics, ProcessLog
from .warehouse_models import BRONZE_TABLES, SILVER_TABLES, column_names, column_types
