"""
=========================================
Shared plumbing for the layer managers.
=========================================

``BronzeManager`` and ``SilverManager`` share the same warehouse connection
handling and the same best-effort audit trail: a failure to write a
process, error or metric row is logged as a warning and never replaces the
load outcome.
"""

from typing import Any, Dict, Optional

from sqlalchemy.engine import Engine

from core.config import config
from core.logger import get_logger
from logs.audit_logger import AuditLoggerError, ProcessLogger
from logs.error_handler import ErrorHandlerError, ErrorLogger
from logs.performance_monitor import PerformanceMonitor, PerformanceMonitorError
from medallion.storage import WarehouseStore
from utils.database_utils import create_sqlalchemy_engine, verify_database_exists

logger = get_logger(__name__)

AUDIT_ERRORS = (AuditLoggerError, ErrorHandlerError, PerformanceMonitorError)


class LayerManagerError(Exception):
    """Exception raised when a layer manager cannot be initialized."""
    pass


def error_code_of(exc: BaseException) -> str:
    """PostgreSQL SQLSTATE from the exception chain, else the exception class name."""
    current = exc
    while current is not None:
        pgcode = getattr(getattr(current, 'orig', None), 'pgcode', None)
        if pgcode:
            return pgcode
        current = current.__cause__
    return getattr(exc, 'error_code', None) or type(exc).__name__


class LayerManager:
    """
    Base class for one medallion layer's loader.

    Attributes:
        layer: Target layer name written to audit rows
        store: WarehouseStore used for every read, truncate and insert
        process_logger: ProcessLogger, or None when audit logging is off
        error_logger: ErrorLogger, or None when audit logging is off
        perf_monitor: PerformanceMonitor, or None when monitoring is off
    """

    layer = 'unknown'

    def __init__(
        self,
        store: Optional[WarehouseStore] = None,
        engine: Optional[Engine] = None,
        audit: bool = True,
        monitor_performance: bool = False,
        process_logger: Optional[ProcessLogger] = None,
        error_logger: Optional[ErrorLogger] = None,
        perf_monitor: Optional[PerformanceMonitor] = None
    ):
        """
        Without ``store`` or ``engine`` a pooled engine to the warehouse
        database from ``core.config`` is created; the database must exist.

        Raises:
            LayerManagerError: If the warehouse database doesn't exist
        """
        self._owns_engine = False

        if store is None:
            if engine is None:
                if not verify_database_exists(config.warehouse_db_name):
                    raise LayerManagerError(
                        f"Warehouse database '{config.warehouse_db_name}' does not exist"
                    )
                engine = create_sqlalchemy_engine(use_warehouse=True)
                self._owns_engine = True
                logger.info(f"✅ Connected to {config.warehouse_db_name}")
            store = WarehouseStore(engine, chunksize=config.pipeline.write_chunksize)
        self.store = store

        self.process_logger = process_logger
        self.error_logger = error_logger
        self.perf_monitor = perf_monitor
        if audit:
            if self.process_logger is None:
                self.process_logger = ProcessLogger(engine=self.store.engine)
            if self.error_logger is None:
                self.error_logger = ErrorLogger(engine=self.store.engine)
        if monitor_performance and self.perf_monitor is None:
            self.perf_monitor = PerformanceMonitor(engine=self.store.engine)

    def _audit_start(self, process_name: str, description: str, source_system: str = None,
                     metadata: Dict[str, Any] = None) -> Optional[int]:
        if self.process_logger is None:
            return None
        try:
            return self.process_logger.start_process(
                process_name=process_name,
                process_description=description,
                source_system=source_system,
                target_layer=self.layer,
                metadata=metadata
            )
        except AUDIT_ERRORS as e:
            logger.warning(f"Audit start failed for {process_name}: {e}")
            return None

    def _audit_end(self, process_log_id: Optional[int], status: str, **counts) -> None:
        if self.process_logger is None or process_log_id is None:
            return
        try:
            self.process_logger.end_process(log_id=process_log_id, status=status, **counts)
        except AUDIT_ERRORS as e:
            logger.warning(f"Audit end failed for process {process_log_id}: {e}")

    def _audit_error(self, process_log_id: Optional[int], exc: Exception, table_name: str,
                     recovery_suggestion: str) -> None:
        if self.error_logger is None or process_log_id is None:
            return
        try:
            self.error_logger.log_exception(
                process_log_id=process_log_id,
                exception=exc,
                context={'table_name': table_name},
                recovery_suggestion=recovery_suggestion
            )
        except AUDIT_ERRORS as e:
            logger.warning(f"Error logging failed for {table_name}: {e}")

    def _record_metric(self, process_log_id: Optional[int], name: str, value: float,
                       unit: str, context: str = None) -> None:
        if self.perf_monitor is None or process_log_id is None:
            return
        try:
            self.perf_monitor.record_metric(process_log_id, name, value, unit, context)
        except AUDIT_ERRORS as e:
            logger.warning(f"Metric '{name}' not recorded: {e}")

    def _record_throughput(self, process_log_id: Optional[int], seconds: float, rows: int,
                           context: str) -> None:
        self._record_metric(process_log_id, 'load_duration', seconds, 'seconds', context)
        if seconds > 0:
            self._record_metric(process_log_id, 'rows_per_second', rows / seconds, 'rows/sec', context)

    def close(self):
        """Dispose the engine if this manager created it."""
        if self._owns_engine:
            self.store.engine.dispose()
            logger.info("🔌 Database connections closed")
