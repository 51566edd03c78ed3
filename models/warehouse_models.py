"""
===========================================================
Table layouts for the Bronze and Silver layers
===========================================================

SQLAlchemy Core ``Table`` definitions for the six CRM/ERP entities in both
medallion layers. The tables themselves are created outside this project;
these objects supply column order and column types when reading and writing.

Bronze tables mirror the CSV extracts column for column. Silver tables hold
the cleansed shape, including the derived product columns (``cat_id``,
``prd_end_dt``) and the decoded sales dates.

Example:
    >>> from models.warehouse_models import SILVER_TABLES, column_names
    >>>
    >>> column_names(SILVER_TABLES['crm_prd_info'])
    ['prd_id', 'cat_id', 'prd_key', 'prd_nm', 'prd_cost', 'prd_line', 'prd_start_dt', 'prd_end_dt']
"""

from typing import Dict, List

from sqlalchemy import Column, Date, DateTime, Integer, MetaData, String, Table

metadata = MetaData()


def _bronze_tables(schema: str) -> Dict[str, Table]:
    return {
        'crm_cust_info': Table(
            'crm_cust_info', metadata,
            Column('cst_id', Integer),
            Column('cst_key', String(50)),
            Column('cst_firstname', String(50)),
            Column('cst_lastname', String(50)),
            Column('cst_marital_status', String(50)),
            Column('cst_gndr', String(50)),
            Column('cst_create_date', Date),
            schema=schema,
        ),
        'crm_prd_info': Table(
            'crm_prd_info', metadata,
            Column('prd_id', Integer),
            Column('prd_key', String(50)),
            Column('prd_nm', String(50)),
            Column('prd_cost', Integer),
            Column('prd_line', String(50)),
            Column('prd_start_dt', DateTime),
            Column('prd_end_dt', DateTime),
            schema=schema,
        ),
        'crm_sales_details': Table(
            'crm_sales_details', metadata,
            Column('sls_ord_num', String(50)),
            Column('sls_prd_key', String(50)),
            Column('sls_cust_id', Integer),
            Column('sls_order_dt', Integer),
            Column('sls_ship_dt', Integer),
            Column('sls_due_dt', Integer),
            Column('sls_sales', Integer),
            Column('sls_quantity', Integer),
            Column('sls_price', Integer),
            schema=schema,
        ),
        'erp_cust_az12': Table(
            'erp_cust_az12', metadata,
            Column('cid', String(50)),
            Column('bdate', Date),
            Column('gen', String(50)),
            schema=schema,
        ),
        'erp_loc_a101': Table(
            'erp_loc_a101', metadata,
            Column('cid', String(50)),
            Column('cntry', String(50)),
            schema=schema,
        ),
        'erp_px_cat_g1v2': Table(
            'erp_px_cat_g1v2', metadata,
            Column('id', String(50)),
            Column('cat', String(50)),
            Column('subcat', String(50)),
            Column('maintenance', String(50)),
            schema=schema,
        ),
    }


def _silver_tables(schema: str) -> Dict[str, Table]:
    return {
        'crm_cust_info': Table(
            'crm_cust_info', metadata,
            Column('cst_id', Integer),
            Column('cst_key', String(50)),
            Column('cst_firstname', String(50)),
            Column('cst_lastname', String(50)),
            Column('cst_marital_status', String(50)),
            Column('cst_gndr', String(50)),
            Column('cst_create_date', Date),
            schema=schema,
        ),
        'crm_prd_info': Table(
            'crm_prd_info', metadata,
            Column('prd_id', Integer),
            Column('cat_id', String(50)),
            Column('prd_key', String(50)),
            Column('prd_nm', String(50)),
            Column('prd_cost', Integer),
            Column('prd_line', String(50)),
            Column('prd_start_dt', Date),
            Column('prd_end_dt', Date),
            schema=schema,
        ),
        'crm_sales_details': Table(
            'crm_sales_details', metadata,
            Column('sls_ord_num', String(50)),
            Column('sls_prd_key', String(50)),
            Column('sls_cust_id', Integer),
            Column('sls_order_dt', Date),
            Column('sls_ship_dt', Date),
            Column('sls_due_dt', Date),
            Column('sls_sales', Integer),
            Column('sls_quantity', Integer),
            Column('sls_price', Integer),
            schema=schema,
        ),
        'erp_cust_az12': Table(
            'erp_cust_az12', metadata,
            Column('cid', String(50)),
            Column('bdate', Date),
            Column('gen', String(50)),
            schema=schema,
        ),
        'erp_loc_a101': Table(
            'erp_loc_a101', metadata,
            Column('cid', String(50)),
            Column('cntry', String(50)),
            schema=schema,
        ),
        'erp_px_cat_g1v2': Table(
            'erp_px_cat_g1v2', metadata,
            Column('id', String(50)),
            Column('cat', String(50)),
            Column('subcat', String(50)),
            Column('maintenance', String(50)),
            schema=schema,
        ),
    }


BRONZE_TABLES: Dict[str, Table] = _bronze_tables('bronze')
SILVER_TABLES: Dict[str, Table] = _silver_tables('silver')


def column_names(table: Table) -> List[str]:
    """Return the column names of a table in declaration order."""
    return [column.name for column in table.columns]


def column_types(table: Table) -> Dict[str, object]:
    """Return a column name → SQLAlchemy type mapping (for ``DataFrame.to_sql``)."""
    return {column.name: column.type for column in table.columns}
