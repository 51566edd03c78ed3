"""
Shared fixtures and mocking helpers for medallion layer tests.

Key fixtures:
- bronze_frames: one raw DataFrame per CRM/ERP entity
- fake_store_factory: in-memory WarehouseStore stand-in with failure injection
- silver_manager_factory / bronze_manager_factory: managers wired to mocks
- mock_engine_factory: creates mock SQLAlchemy engines
"""

from datetime import datetime
from unittest.mock import MagicMock

import pandas as pd
import pytest

AS_OF = datetime(2026, 1, 1)


class FakeWarehouseStore:
    """
    In-memory stand-in for medallion.storage.WarehouseStore.

    Tables are kept in ``tables`` keyed by (schema, table). ``fail_on`` maps
    (operation, schema, table) to an exception raised by that call, where
    operation is 'read', 'clear' or 'write'. Every call is appended to
    ``calls``.
    """

    def __init__(self, tables=None, fail_on=None):
        self.engine = MagicMock()
        self.tables = {key: frame.copy() for key, frame in (tables or {}).items()}
        self.fail_on = fail_on or {}
        self.calls = []

    def _record(self, operation, schema, table):
        self.calls.append((operation, schema, table))
        exc = self.fail_on.get((operation, schema, table))
        if exc is not None:
            raise exc

    def read_table(self, schema, table, columns=None):
        self._record('read', schema, table)
        return self.tables[(schema, table)].copy()

    def clear_table(self, schema, table):
        self._record('clear', schema, table)
        existing = self.tables.get((schema, table))
        self.tables[(schema, table)] = existing.iloc[0:0].copy() if existing is not None else pd.DataFrame()

    def write_table(self, schema, table, frame, dtype=None):
        self._record('write', schema, table)
        existing = self.tables.get((schema, table))
        if existing is None or existing.empty:
            self.tables[(schema, table)] = frame.copy()
        else:
            self.tables[(schema, table)] = pd.concat([existing, frame], ignore_index=True)
        return len(frame)


@pytest.fixture
def as_of():
    """Fixed load time used by transforms under test."""
    return AS_OF


@pytest.fixture
def bronze_frames():
    """
    Raw Bronze snapshots for all six entities.

    Returns:
        dict: Table name → DataFrame shaped like the bronze table
    """
    return {
        'crm_cust_info': pd.DataFrame({
            'cst_id': [11000, 11001, 29466, 29466, None],
            'cst_key': ['AW00011000', 'AW00011001', 'AW00029466', 'AW00029466', 'PO25'],
            'cst_firstname': [' Jon', 'Eugene', None, 'Lance', None],
            'cst_lastname': ['Yang ', 'Huang', None, 'Jimenez', None],
            'cst_marital_status': ['M', 'S', None, 'M', None],
            'cst_gndr': ['M', 'M', None, None, None],
            'cst_create_date': ['2025-10-06', '2025-10-06', '2026-01-25', '2026-01-27', None],
        }),
        'crm_prd_info': pd.DataFrame({
            'prd_id': [210, 211, 212, 213, 214],
            'prd_key': ['CO-RF-FR-R92B-58', 'CO-RF-FR-R92R-58', 'AC-HE-HL-U509-R',
                        'AC-HE-HL-U509-R', 'AC-HE-HL-U509-R'],
            'prd_nm': ['HL Road Frame - Black- 58', 'HL Road Frame - Red- 58',
                       'Sport-100 Helmet- Red', 'Sport-100 Helmet- Red', 'Sport-100 Helmet- Red'],
            'prd_cost': [None, 1431, 12, 14, 13],
            'prd_line': ['R ', 'R', 'S', 'S', 's'],
            'prd_start_dt': pd.to_datetime(['2003-07-01', '2003-07-01', '2011-07-01',
                                            '2012-07-01', '2013-07-01']),
            'prd_end_dt': pd.to_datetime([None, None, '2007-12-28', '2008-12-27', None]),
        }),
        'crm_sales_details': pd.DataFrame({
            'sls_ord_num': ['SO43697', 'SO43698', 'SO43699', 'SO43700'],
            'sls_prd_key': ['BK-R93R-62', 'BK-M82S-44', 'BK-M82S-44', 'BK-R50B-62'],
            'sls_cust_id': [21768, 28389, 25863, 14501],
            'sls_order_dt': [20101229, 0, 2010123, 20101229],
            'sls_ship_dt': [20110105, 20110105, 20110105, 20110105],
            'sls_due_dt': [20110110, 20110110, 20110110, 20110110],
            'sls_sales': pd.array([3578, 999, 30, None], dtype='Int64'),
            'sls_quantity': pd.array([1, 3, 3, 2], dtype='Int64'),
            'sls_price': pd.array([3578, 10, None, 50], dtype='Int64'),
        }),
        'erp_cust_az12': pd.DataFrame({
            'cid': ['NASAW00011000', 'AW00011001', 'nasAW00011002', 'NASAW00011003'],
            'bdate': ['1971-10-06', '2050-01-01', None, '1969-02-05'],
            'gen': ['Male', 'F ', None, 'FEMALE\r'],
        }),
        'erp_loc_a101': pd.DataFrame({
            'cid': ['AW-00011000', 'AW-00011001', 'AW-00011002', 'AW-00011003', 'AW-00011004', 'AW-00011005'],
            'cntry': ['Australia', 'US', 'DE\r\n', '', None, 'USA'],
        }),
        'erp_px_cat_g1v2': pd.DataFrame({
            'id': ['AC_BR', 'AC_BC', 'CO_PE'],
            'cat': ['Accessories', 'Accessories', 'Components'],
            'subcat': ['Bike Racks', 'Bottles and Cages', 'Pedals'],
            'maintenance': ['Yes', 'No\r', ''],
        }),
    }


@pytest.fixture
def fake_store_factory(bronze_frames):
    """
    Factory creating FakeWarehouseStore instances loaded with bronze_frames.

    Example:
        >>> store = fake_store_factory(fail_on={('write', 'silver', 'crm_prd_info'): RuntimeError('x')})
    """
    def factory(silver_tables=None, fail_on=None, bronze_overrides=None):
        frames = dict(bronze_frames)
        frames.update(bronze_overrides or {})
        tables = {('bronze', name): frame for name, frame in frames.items()}
        for name, frame in (silver_tables or {}).items():
            tables[('silver', name)] = frame
        return FakeWarehouseStore(tables=tables, fail_on=fail_on)

    return factory


@pytest.fixture
def mock_engine_factory():
    """
    Factory to create mock SQLAlchemy engines.

    Both ``connect()`` and ``begin()`` return the same mock connection, so
    tests can assert on ``conn.execute`` whichever one the code under test used.
    """
    def factory(execute_side_effect=None):
        mock_conn = MagicMock()
        if execute_side_effect is not None:
            mock_conn.execute.side_effect = execute_side_effect
        mock_conn.__enter__.return_value = mock_conn
        mock_conn.__exit__.return_value = False

        mock_engine = MagicMock()
        mock_engine.connect.return_value = mock_conn
        mock_engine.begin.return_value = mock_conn
        mock_engine._mock_conn = mock_conn
        return mock_engine

    return factory


@pytest.fixture
def mock_process_logger():
    """
    Mock ProcessLogger returning increasing process log IDs.
    """
    mock = MagicMock()
    mock.start_process.side_effect = iter(range(100, 200))
    return mock


@pytest.fixture
def mock_error_logger():
    """Mock ErrorLogger for testing error handling."""
    return MagicMock()


@pytest.fixture
def mock_performance_monitor():
    """
    Mock PerformanceMonitor for testing performance tracking.
    """
    mock = MagicMock()
    mock.monitor_process.return_value.__enter__.return_value = MagicMock()
    mock.monitor_process.return_value.__exit__.return_value = False
    return mock


@pytest.fixture
def silver_manager_factory(mock_process_logger, mock_error_logger, mock_performance_monitor):
    """
    Factory that creates a SilverManager over a given store with mocked audit writers.

    Example:
        >>> manager = silver_manager_factory(store, monitor_performance=True)
    """
    def factory(store, audit=True, monitor_performance=False, strict_dates=False, **kwargs):
        from medallion.silver import SilverManager

        return SilverManager(
            store=store,
            bronze_schema='bronze',
            silver_schema='silver',
            strict_dates=strict_dates,
            audit=audit,
            process_logger=mock_process_logger if audit else None,
            error_logger=mock_error_logger if audit else None,
            perf_monitor=mock_performance_monitor if monitor_performance else None,
            **kwargs
        )

    return factory


@pytest.fixture
def bronze_manager_factory(mock_process_logger, mock_error_logger, mock_performance_monitor):
    """
    Factory that creates a BronzeManager over a given store and data directory.
    """
    def factory(store, data_dir, audit=True, monitor_performance=False, **kwargs):
        from medallion.bronze import BronzeManager

        return BronzeManager(
            store=store,
            bronze_schema='bronze',
            data_dir=data_dir,
            audit=audit,
            process_logger=mock_process_logger if audit else None,
            error_logger=mock_error_logger if audit else None,
            perf_monitor=mock_performance_monitor if monitor_performance else None,
            **kwargs
        )

    return factory


@pytest.fixture
def source_csv_dir(tmp_path, bronze_frames):
    """
    Writes bronze_frames as the six CSV extracts under tmp_path.

    Returns:
        Path: Directory containing source_crm/ and source_erp/
    """
    from medallion.bronze import BRONZE_SOURCES

    for source in BRONZE_SOURCES:
        path = tmp_path / source.relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        bronze_frames[source.table].to_csv(path, index=False)
    return tmp_path
