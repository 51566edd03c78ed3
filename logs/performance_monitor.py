"""
================================================================
Performance monitoring and metrics collection for medallion loads.
================================================================

Records timing and resource metrics to ``logs.performance_metrics``:
per-entity load duration and throughput, plus execution time, CPU time and
memory use of a whole layer load.

Classes:
    PerformanceMonitor: Record metrics for a process
    ProcessMonitor: Context-managed timer collecting resource usage via psutil

Example:
    >>> from logs.performance_monitor import PerformanceMonitor
    >>>
    >>> monitor = PerformanceMonitor(engine=engine)
    >>> with monitor.monitor_process(process_log_id=123) as pm:
    ...     # ... load tables ...
    ...     pm.record_metric('load_duration', 2.5, 'seconds', 'silver.crm_cust_info')
"""

import logging
import time
from contextlib import contextmanager

import psutil
from sqlalchemy.exc import SQLAlchemyError

from logs.base import LogsDatabaseClient
from models.logs_models import PerformanceMetrics

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class PerformanceMonitorError(Exception):
    """Exception raised when a metric row cannot be written."""
    pass


class PerformanceMonitor(LogsDatabaseClient):
    """Performance metric recording backed by ``logs.performance_metrics``.

    Example:
        >>> monitor = PerformanceMonitor(host='localhost', database='warehouse')
        >>> monitor.record_metric(123, 'rows_per_second', 8021.4, 'rows/sec')
    """

    def record_metric(
        self,
        process_log_id: int,
        metric_name: str,
        metric_value: float,
        metric_unit: str = None,
        additional_context: str = None
    ) -> int:
        """
        Record a performance metric.

        Args:
            process_log_id: Associated process log ID
            metric_name: Name of the metric
            metric_value: Numeric value
            metric_unit: Unit of measurement
            additional_context: Additional context (e.g. table name)

        Returns:
            Metric ID

        Raises:
            PerformanceMonitorError: If the row cannot be written
        """
        try:
            with self._get_session() as session:
                metric = PerformanceMetrics(
                    process_log_id=process_log_id,
                    metric_name=metric_name,
                    metric_value=metric_value,
                    metric_unit=metric_unit,
                    additional_context=additional_context
                )

                session.add(metric)
                session.flush()

                logger.debug(f"Recorded metric '{metric_name}': {metric_value} {metric_unit or ''}")
                return metric.metric_id

        except SQLAlchemyError as e:
            logger.error(f"Failed to record metric: {e}")
            raise PerformanceMonitorError(f"Failed to record metric: {e}")

    @contextmanager
    def monitor_process(self, process_log_id: int):
        """
        Context manager timing a process and recording its resource usage.

        Args:
            process_log_id: Process log ID to associate metrics with

        Yields:
            ProcessMonitor instance for recording extra metrics
        """
        monitor = ProcessMonitor(self, process_log_id)
        monitor.start()
        try:
            yield monitor
        finally:
            try:
                monitor.end()
            except PerformanceMonitorError as e:
                logger.warning(f"Final process metrics not recorded: {e}")


class ProcessMonitor:
    """
    Tracks one process between start() and end().

    Used through PerformanceMonitor.monitor_process().
    """

    def __init__(self, performance_monitor: PerformanceMonitor, process_log_id: int):
        self.performance_monitor = performance_monitor
        self.process_log_id = process_log_id
        self.start_time = None
        self.start_cpu_times = None
        self.start_memory = None

    def start(self):
        self.start_time = time.time()

        try:
            process = psutil.Process()
            self.start_cpu_times = process.cpu_times()
            self.start_memory = process.memory_info()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            logger.warning("Could not access process metrics")

    def end(self):
        """Record execution_time, cpu_time, memory_delta and peak_memory."""
        if self.start_time is None:
            return

        self.record_metric('execution_time', time.time() - self.start_time, 'seconds')

        try:
            process = psutil.Process()
            end_cpu_times = process.cpu_times()
            end_memory = process.memory_info()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            logger.warning("Could not collect final process metrics")
            return

        if self.start_cpu_times:
            cpu_usage = (
                (end_cpu_times.user - self.start_cpu_times.user) +
                (end_cpu_times.system - self.start_cpu_times.system)
            )
            self.record_metric('cpu_time', cpu_usage, 'seconds')

        if self.start_memory:
            self.record_metric(
                'memory_delta',
                (end_memory.rss - self.start_memory.rss) / BYTES_PER_MB,
                'MB'
            )
            self.record_metric(
                'peak_memory',
                max(end_memory.rss, self.start_memory.rss) / BYTES_PER_MB,
                'MB'
            )

    def record_metric(
        self,
        metric_name: str,
        metric_value: float,
        metric_unit: str = None,
        additional_context: str = None
    ):
        """Record a custom metric during process execution."""
        self.performance_monitor.record_metric(
            process_log_id=self.process_log_id,
            metric_name=metric_name,
            metric_value=metric_value,
            metric_unit=metric_unit,
            additional_context=additional_context
        )
