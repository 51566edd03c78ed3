"""
=============================================================
Audit logging and monitoring for the medallion pipeline.
=============================================================

Database-backed audit trail for Bronze and Silver loads, written to the
warehouse ``logs`` schema. This is separate from ``core.logger``, which
handles console/file output and is always available.

Modules:
    base: Shared engine/session handling
    audit_logger: Process start/end logging
    error_handler: Error rows with codes and recovery suggestions
    performance_monitor: Timing and resource metrics

Example:
    >>> from logs.audit_logger import ProcessLogger
    >>> from logs.performance_monitor import PerformanceMonitor
    >>>
    >>> process_logger = ProcessLogger(engine=engine)
    >>> process_id = process_logger.start_process('silver_load', target_layer='silver')
    >>> PerformanceMonitor(engine=engine).record_metric(process_id, 'load_duration', 4.2, 'seconds')
    >>> process_logger.end_process(process_id, 'SUCCESS')
"""

__version__ = "0.2.0"
__all__ = ['ProcessLogger', 'ErrorLogger', 'PerformanceMonitor']

# Import modules directly when needed:
#   from logs.audit_logger import ProcessLogger
#   from logs.error_handler import ErrorLogger
#   from logs.performance_monitor import PerformanceMonitor
