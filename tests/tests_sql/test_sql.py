"""
=============================================
Pytest suite for sql/dml.py and query_builder.py
=============================================

Sections:
---------
1. Unit tests - TRUNCATE and SELECT generation
2. Edge case tests - Invalid arguments

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_sql.py -v
"""

import pytest

from sql.dml import truncate_table_sql
from sql.query_builder import check_table_exists_sql, select_builder

# =============================================================================
# SECTION 1: UNIT TESTS
# =============================================================================

@pytest.mark.unit
def test_truncate_table_sql():
    """
    Unit test: TRUNCATE quotes schema and table, optionally restarting identities.
    """
    assert truncate_table_sql('silver', 'crm_cust_info') == 'TRUNCATE TABLE "silver"."crm_cust_info";'
    assert truncate_table_sql('bronze', 'erp_loc_a101', restart_identity=True) == \
        'TRUNCATE TABLE "bronze"."erp_loc_a101" RESTART IDENTITY;'


@pytest.mark.unit
def test_select_builder_full():
    """
    Unit test: every clause is emitted in order.
    """
    sql = select_builder(
        'silver', 'crm_prd_info',
        columns=['prd_key', 'prd_start_dt'],
        where_conditions=['prd_cost > 0', 'prd_end_dt IS NULL'],
        order_by=['prd_key', 'prd_start_dt'],
        limit=5
    )

    assert sql == (
        'SELECT "prd_key", "prd_start_dt"\n'
        'FROM "silver"."crm_prd_info"\n'
        'WHERE prd_cost > 0 AND prd_end_dt IS NULL\n'
        'ORDER BY prd_key, prd_start_dt\n'
        'LIMIT 5'
    )


@pytest.mark.unit
def test_check_table_exists_sql():
    """
    Unit test: existence check filters information_schema by schema and table.
    """
    sql = check_table_exists_sql('bronze', 'crm_sales_details')

    assert 'information_schema.tables' in sql
    assert "table_schema = 'bronze'" in sql
    assert "table_name = 'crm_sales_details'" in sql


# =============================================================================
# SECTION 2: EDGE CASE TESTS
# =============================================================================

@pytest.mark.edge_case
def test_truncate_table_sql_requires_names():
    """
    Edge case: an empty schema or table name is rejected.
    """
    with pytest.raises(ValueError):
        truncate_table_sql('', 'crm_cust_info')


@pytest.mark.edge_case
def test_select_builder_empty_columns():
    """
    Edge case: an empty column list is rejected.
    """
    with pytest.raises(ValueError, match='columns'):
        select_builder('bronze', 'crm_cust_info', columns=[])
