"""
==================================================
Comprehensive pytest suite for bronze.py
==================================================

Tests for the BronzeManager class and bronze layer CSV ingestion.

Sections:
---------
1. Unit tests - Source registry and CSV reading
2. Integration tests - Single table loads
3. System tests - Full bronze batch
4. Edge case tests - Missing files, bad columns, fail-fast
5. Smoke tests - CLI entry point

Available markers:
------------------
unit, integration, system, edge_case, smoke

How to Execute:
---------------
All tests:          pytest tests/tests_medallion/test_bronze.py -v
By category:        pytest tests/tests_medallion/test_bronze.py -m unit
"""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from medallion.base import LayerManagerError
from medallion.bronze import (
    BRONZE_SOURCES,
    BronzeLoadError,
    BronzeManager,
    BronzeSource,
    read_source_csv,
)

# =============================================================================
# SECTION 1: UNIT TESTS - Source registry and CSV reading
# =============================================================================

@pytest.mark.unit
def test_bronze_sources_mapping():
    """
    Unit test: the six extracts map to their staging tables in load order.
    """
    assert [(s.table, s.relative_path) for s in BRONZE_SOURCES] == [
        ('crm_cust_info', 'source_crm/cust_info.csv'),
        ('crm_prd_info', 'source_crm/prd_info.csv'),
        ('crm_sales_details', 'source_crm/sales_details.csv'),
        ('erp_cust_az12', 'source_erp/CUST_AZ12.csv'),
        ('erp_loc_a101', 'source_erp/LOC_A101.csv'),
        ('erp_px_cat_g1v2', 'source_erp/PX_CAT_G1V2.csv'),
    ]


@pytest.mark.unit
def test_read_source_csv_parses_integer_columns(source_csv_dir):
    """
    Unit test: integer columns are nullable integers, text is kept verbatim.

    Verifies:
    - cst_id is Int64 with the null id preserved
    - Leading/trailing spaces in names survive
    """
    frame = read_source_csv(source_csv_dir / 'source_crm/cust_info.csv', 'crm_cust_info')

    assert str(frame['cst_id'].dtype) == 'Int64'
    assert frame['cst_id'].isna().sum() == 1
    assert frame['cst_firstname'].tolist()[0] == ' Jon'


@pytest.mark.unit
def test_read_source_csv_orders_and_filters_columns(tmp_path):
    """
    Unit test: columns follow the table order; extra CSV columns are dropped.
    """
    csv_path = tmp_path / 'LOC_A101.csv'
    pd.DataFrame({'extra': [1], 'cntry': ['DE'], 'cid': ['AW-1']}).to_csv(csv_path, index=False)

    frame = read_source_csv(csv_path, 'erp_loc_a101')

    assert list(frame.columns) == ['cid', 'cntry']


@pytest.mark.unit
def test_read_source_csv_keeps_literal_na_strings(tmp_path):
    """
    Unit test: text that pandas would treat as missing is kept as text.

    Verifies:
    - 'NA' and 'N/A' country values survive the read
    - Only an empty cell becomes null
    - Text keys keep leading zeros
    """
    csv_path = tmp_path / 'LOC_A101.csv'
    csv_path.write_text('cid,cntry\nAW-00011000,NA\nAW-00011001,N/A\n007,\n')

    frame = read_source_csv(csv_path, 'erp_loc_a101')

    assert frame['cntry'].tolist()[:2] == ['NA', 'N/A']
    assert pd.isna(frame['cntry'].iloc[2])
    assert frame['cid'].tolist() == ['AW-00011000', 'AW-00011001', '007']


# =============================================================================
# SECTION 2: INTEGRATION TESTS - Single table loads
# =============================================================================

@pytest.mark.integration
def test_load_table_truncates_then_inserts(fake_store_factory, bronze_manager_factory, source_csv_dir):
    """
    Integration test: a table load clears the staging table, then inserts the file.

    Verifies:
    - clear before write
    - bronze column types passed to the insert
    - Result dictionary
    """
    store = fake_store_factory()
    manager = bronze_manager_factory(store, source_csv_dir)

    result = manager.load_table(BRONZE_SOURCES[4])

    assert store.calls == [('clear', 'bronze', 'erp_loc_a101'), ('write', 'bronze', 'erp_loc_a101')]
    assert result['rows_loaded'] == 6
    assert result['table_name'] == 'bronze.erp_loc_a101'
    assert store.tables[('bronze', 'erp_loc_a101')]['cntry'].tolist()[1] == 'US'


@pytest.mark.integration
def test_load_table_audit_rows(fake_store_factory, bronze_manager_factory, source_csv_dir,
                               mock_process_logger):
    """
    Integration test: the table load is recorded as a bronze process.
    """
    manager = bronze_manager_factory(fake_store_factory(), source_csv_dir)

    result = manager.load_table(BRONZE_SOURCES[0])

    start_kwargs = mock_process_logger.start_process.call_args.kwargs
    assert start_kwargs['process_name'] == 'bronze_ingestion_crm_cust_info'
    assert start_kwargs['target_layer'] == 'bronze'
    end_kwargs = mock_process_logger.end_process.call_args.kwargs
    assert end_kwargs['log_id'] == result['process_log_id']
    assert end_kwargs['status'] == 'SUCCESS'
    assert end_kwargs['rows_inserted'] == 5


# =============================================================================
# SECTION 3: SYSTEM TESTS - Full bronze batch
# =============================================================================

@pytest.mark.system
def test_load_all_data(fake_store_factory, bronze_manager_factory, source_csv_dir):
    """
    System test: all six extracts are loaded in order.
    """
    store = fake_store_factory()
    manager = bronze_manager_factory(store, source_csv_dir)

    result = manager.load_all_data()

    assert list(result['tables']) == [s.table for s in BRONZE_SOURCES]
    assert result['rows_loaded'] == 5 + 5 + 4 + 4 + 6 + 3
    written = [table for op, _, table in store.calls if op == 'write']
    assert written == [s.table for s in BRONZE_SOURCES]


# =============================================================================
# SECTION 4: EDGE CASE TESTS - Missing files, bad columns, fail-fast
# =============================================================================

@pytest.mark.edge_case
def test_load_table_missing_file(fake_store_factory, bronze_manager_factory, tmp_path,
                                 mock_error_logger):
    """
    Edge case: a missing CSV fails the table without clearing it.

    Verifies:
    - BronzeLoadError with FileNotFoundError code
    - No truncate issued
    - Error row written
    """
    store = fake_store_factory()
    manager = bronze_manager_factory(store, tmp_path)

    with pytest.raises(BronzeLoadError) as exc_info:
        manager.load_table(BRONZE_SOURCES[0])

    assert exc_info.value.table == 'crm_cust_info'
    assert exc_info.value.error_code == 'FileNotFoundError'
    assert store.calls == []
    mock_error_logger.log_exception.assert_called_once()


@pytest.mark.edge_case
def test_read_source_csv_missing_column(tmp_path):
    """
    Edge case: a CSV without a table column is rejected.
    """
    csv_path = tmp_path / 'PX_CAT_G1V2.csv'
    pd.DataFrame({'id': ['AC_BR'], 'cat': ['Accessories']}).to_csv(csv_path, index=False)

    with pytest.raises(ValueError, match='subcat'):
        read_source_csv(csv_path, 'erp_px_cat_g1v2')


@pytest.mark.edge_case
def test_load_all_data_stops_at_first_failure(fake_store_factory, bronze_manager_factory, source_csv_dir):
    """
    Edge case: a failing table stops the batch; later tables are untouched.
    """
    store = fake_store_factory(fail_on={('write', 'bronze', 'crm_sales_details'): RuntimeError('disk full')})
    manager = bronze_manager_factory(store, source_csv_dir)

    with pytest.raises(BronzeLoadError) as exc_info:
        manager.load_all_data()

    assert exc_info.value.table == 'crm_sales_details'
    touched = {table for _, _, table in store.calls}
    assert touched == {'crm_cust_info', 'crm_prd_info', 'crm_sales_details'}


@pytest.mark.edge_case
def test_bronze_manager_init_no_database():
    """
    Edge case: BronzeManager refuses to start without the warehouse database.
    """
    with patch('medallion.base.verify_database_exists', return_value=False):
        with pytest.raises(LayerManagerError, match='does not exist'):
            BronzeManager()


@pytest.mark.edge_case
def test_custom_source_list(fake_store_factory, bronze_manager_factory, source_csv_dir):
    """
    Edge case: a custom source list limits what is loaded.
    """
    store = fake_store_factory()
    sources = [BronzeSource('erp_px_cat_g1v2', 'ERP', 'source_erp/PX_CAT_G1V2.csv')]
    manager = bronze_manager_factory(store, source_csv_dir, sources=sources)

    result = manager.load_all_data()

    assert list(result['tables']) == ['erp_px_cat_g1v2']


# =============================================================================
# SECTION 5: SMOKE TESTS - CLI entry point
# =============================================================================

@pytest.mark.smoke
def test_bronze_main_success():
    """
    Smoke test: python -m medallion.bronze exits 0 on success.
    """
    from medallion import bronze

    mock_manager = MagicMock()
    mock_manager.load_all_data.return_value = {
        'tables': {'crm_cust_info': {'rows_loaded': 5, 'duration_seconds': 0.1}}
    }

    with patch('core.logger.setup_logging'), \
         patch.object(bronze, 'BronzeManager', return_value=mock_manager):
        assert bronze.main() == 0

    mock_manager.close.assert_called_once()


@pytest.mark.smoke
def test_bronze_main_init_failure():
    """
    Smoke test: a missing warehouse database exits 1.
    """
    from medallion import bronze

    with patch('core.logger.setup_logging'), \
         patch.object(bronze, 'BronzeManager', side_effect=LayerManagerError('missing')):
        assert bronze.main() == 1
