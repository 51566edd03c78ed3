"""
===========================================================
ORM Models for Logging Infrastructure
===========================================================

SQLAlchemy ORM model definitions for the ``logs`` schema.

Models:
    ProcessLog: One row per layer load or entity load (start/end/status)
    ErrorLog: Load failures with error code, table and recovery suggestion
    PerformanceMetrics: Timing and resource metrics attached to a process

Example:
    >>> from models.logs_models import ProcessLog
    >>>
    >>> process_log = ProcessLog(
    ...     process_name='silver_load_crm_cust_info',
    ...     source_system='CRM',
    ...     target_layer='silver'
    ... )
    >>> session.add(process_log)
    >>> session.commit()
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class ProcessLog(Base):
    """Process execution log for layer and entity loads.

    Attributes:
        log_id: Unique identifier for each process log entry
        process_name: Name of the process (e.g. silver_load, silver_load_crm_prd_info)
        process_description: What the process does
        start_time: Process start timestamp
        end_time: Process completion timestamp
        status: RUNNING/SUCCESS/FAILED
        rows_processed: Number of source rows read
        rows_inserted: Number of rows written to the target
        rows_deleted: Number of rows removed by filtering or deduplication
        source_system: CRM or ERP
        target_layer: bronze or silver
        error_message: Error message if process failed
        process_metadata: Additional JSON metadata
        created_by: User or system that initiated the process
    """
    __tablename__ = 'process_log'
    __table_args__ = {'schema': 'logs'}

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    process_name = Column(String(100), nullable=False)
    process_description = Column(Text)
    start_time = Column(DateTime, nullable=False, default=func.now())
    end_time = Column(DateTime)
    status = Column(String(20), nullable=False, default='RUNNING',
                    comment='Process status: RUNNING, SUCCESS, FAILED')
    rows_processed = Column(Integer)
    rows_inserted = Column(Integer)
    rows_deleted = Column(Integer)
    source_system = Column(String(50))
    target_layer = Column(String(20))
    error_message = Column(Text)
    process_metadata = Column(JSONB)
    created_by = Column(String(50), nullable=False, default='system')

    error_logs = relationship("ErrorLog", back_populates="process")


class ErrorLog(Base):
    """Error log entries raised while loading a layer.

    Attributes:
        error_id: Unique identifier for each error log entry
        process_log_id: Process that generated the error
        error_timestamp: When the error occurred
        error_level: WARNING, ERROR or CRITICAL
        error_code: Exception class name or application error code
        error_message: Human-readable error message
        error_detail: Stack trace
        table_name: Table being loaded when the error occurred
        row_context: JSON context captured at failure time
        recovery_suggestion: Suggested steps to resolve the error
        is_resolved: Whether the error has been resolved
    """
    __tablename__ = 'error_log'
    __table_args__ = {'schema': 'logs'}

    error_id = Column(Integer, primary_key=True, autoincrement=True)
    process_log_id = Column(Integer, ForeignKey('logs.process_log.log_id'))
    error_timestamp = Column(DateTime, nullable=False, default=func.now())
    error_level = Column(String(10), nullable=False, default='ERROR')
    error_code = Column(String(50))
    error_message = Column(Text, nullable=False)
    error_detail = Column(Text)
    table_name = Column(String(100))
    row_context = Column(Text)
    recovery_suggestion = Column(Text)
    is_resolved = Column(Boolean, default=False)

    process = relationship("ProcessLog", back_populates="error_logs")


class PerformanceMetrics(Base):
    """Performance metrics recorded against a process.

    Attributes:
        metric_id: Unique identifier for each metric entry
        process_log_id: Process being measured
        metric_name: e.g. load_duration, rows_per_second, cpu_time
        metric_value: Numeric value of the metric
        metric_unit: seconds, MB, rows/sec, ...
        measurement_timestamp: When the metric was captured
        additional_context: Free-text context (usually the table name)
    """
    __tablename__ = 'performance_metrics'
    __table_args__ = {'schema': 'logs'}

    metric_id = Column(Integer, primary_key=True, autoincrement=True)
    process_log_id = Column(Integer, ForeignKey('logs.process_log.log_id'))
    metric_name = Column(String(100), nullable=False)
    metric_value = Column(Numeric(15, 4))
    metric_unit = Column(String(20))
    measurement_timestamp = Column(DateTime, nullable=False, default=func.now())
    additional_context = Column(Text)
