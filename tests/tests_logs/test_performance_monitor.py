"""
=======================================================
Comprehensive pytest suite for performance_monitor.py
=======================================================

Sections:
---------
1. Unit tests - record_metric
2. Integration tests - monitor_process with patched psutil
3. Edge case tests - psutil denied, metric write failures

Available markers:
------------------
unit, integration, edge_case

How to Execute:
---------------
All tests:          pytest tests/tests_logs/test_performance_monitor.py -v
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import psutil
import pytest

from logs.performance_monitor import (
    BYTES_PER_MB,
    PerformanceMonitor,
    PerformanceMonitorError,
)
from models.logs_models import PerformanceMetrics


def fake_process(cpu_times, rss_values):
    """Mock psutil.Process() returning successive cpu_times/memory_info readings."""
    process = MagicMock()
    process.cpu_times.side_effect = [SimpleNamespace(user=u, system=s) for u, s in cpu_times]
    process.memory_info.side_effect = [SimpleNamespace(rss=rss) for rss in rss_values]
    return process


# =============================================================================
# SECTION 1: UNIT TESTS - record_metric
# =============================================================================

@pytest.mark.unit
def test_record_metric_writes_row(writer_factory, mock_session):
    """
    Unit test: record_metric adds a PerformanceMetrics row and returns its id.
    """
    monitor = writer_factory(PerformanceMonitor)

    metric_id = monitor.record_metric(21, 'rows_per_second', 8021.4, 'rows/sec', 'silver.crm_cust_info')

    assert metric_id == 1
    row = mock_session.added[0]
    assert isinstance(row, PerformanceMetrics)
    assert row.process_log_id == 21
    assert row.metric_name == 'rows_per_second'
    assert row.metric_unit == 'rows/sec'
    assert row.additional_context == 'silver.crm_cust_info'


# =============================================================================
# SECTION 2: INTEGRATION TESTS - monitor_process
# =============================================================================

@pytest.mark.integration
def test_monitor_process_records_resource_metrics(writer_factory, mock_session):
    """
    Integration test: a monitored block records time, CPU and memory metrics.

    Verifies:
    - Custom metrics recorded inside the block
    - execution_time, cpu_time, memory_delta and peak_memory recorded on exit
    """
    monitor = writer_factory(PerformanceMonitor)
    process = fake_process([(1.0, 0.5), (3.0, 1.0)], [100 * BYTES_PER_MB, 150 * BYTES_PER_MB])

    with patch('logs.performance_monitor.psutil.Process', return_value=process):
        with monitor.monitor_process(process_log_id=9) as pm:
            pm.record_metric('load_duration', 2.5, 'seconds', 'silver.erp_loc_a101')

    metrics = {row.metric_name: row for row in mock_session.added}
    assert list(metrics) == ['load_duration', 'execution_time', 'cpu_time', 'memory_delta', 'peak_memory']
    assert metrics['cpu_time'].metric_value == pytest.approx(2.5)
    assert metrics['memory_delta'].metric_value == pytest.approx(50.0)
    assert metrics['peak_memory'].metric_value == pytest.approx(150.0)
    assert all(row.process_log_id == 9 for row in mock_session.added)


@pytest.mark.integration
def test_monitor_process_records_on_error(writer_factory, mock_session):
    """
    Integration test: metrics are still recorded when the block raises.
    """
    monitor = writer_factory(PerformanceMonitor)
    process = fake_process([(0, 0), (0, 0)], [1, 1])

    with patch('logs.performance_monitor.psutil.Process', return_value=process):
        with pytest.raises(RuntimeError):
            with monitor.monitor_process(process_log_id=10):
                raise RuntimeError('load failed')

    assert 'execution_time' in [row.metric_name for row in mock_session.added]


# =============================================================================
# SECTION 3: EDGE CASE TESTS
# =============================================================================

@pytest.mark.edge_case
def test_monitor_process_access_denied(writer_factory, mock_session):
    """
    Edge case: without psutil access only execution_time is recorded.
    """
    monitor = writer_factory(PerformanceMonitor)

    with patch('logs.performance_monitor.psutil.Process', side_effect=psutil.AccessDenied()):
        with monitor.monitor_process(process_log_id=11):
            pass

    assert [row.metric_name for row in mock_session.added] == ['execution_time']


@pytest.mark.edge_case
def test_record_metric_database_error(failing_writer_factory):
    """
    Edge case: a database failure surfaces as PerformanceMonitorError.
    """
    with pytest.raises(PerformanceMonitorError, match='Failed to record metric'):
        failing_writer_factory(PerformanceMonitor).record_metric(1, 'load_duration', 1.0)


@pytest.mark.edge_case
def test_monitor_process_metric_failure_does_not_mask_error(failing_writer_factory):
    """
    Edge case: a failed final metric write never replaces the block's exception.
    """
    monitor = failing_writer_factory(PerformanceMonitor)

    with patch('logs.performance_monitor.psutil.Process', side_effect=psutil.AccessDenied()):
        with pytest.raises(KeyError):
            with monitor.monitor_process(process_log_id=12):
                raise KeyError('crm_cust_info')
