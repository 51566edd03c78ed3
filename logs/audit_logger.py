"""
===========================================================
Process audit logging for medallion loads.
===========================================================

Records one ``logs.process_log`` row per layer load and per entity load:
start time, end time, final status and row counts.

Classes:
    ProcessLogger: Log process start/end and row metrics

Example:
    >>> from logs.audit_logger import ProcessLogger
    >>>
    >>> process_logger = ProcessLogger(
    ...     host='localhost',
    ...     user='postgres',
    ...     password='pwd',
    ...     database='warehouse'
    ... )
    >>> process_id = process_logger.start_process(
    ...     process_name='silver_load',
    ...     process_description='Full refresh of the silver layer',
    ...     target_layer='silver'
    ... )
    >>> # ... load tables ...
    >>> process_logger.end_process(process_id, status='SUCCESS', rows_inserted=18484)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from logs.base import LogsDatabaseClient
from models.logs_models import ProcessLog

logger = logging.getLogger(__name__)


class AuditLoggerError(Exception):
    """Exception raised when a process log row cannot be written or found."""
    pass


class ProcessLogger(LogsDatabaseClient):
    """Process execution logging backed by ``logs.process_log``.

    Example:
        >>> audit = ProcessLogger(engine=engine)
        >>> pid = audit.start_process('silver_load_crm_cust_info', target_layer='silver')
        >>> audit.end_process(pid, 'SUCCESS', rows_processed=18494, rows_inserted=18484)
    """

    def start_process(
        self,
        process_name: str,
        process_description: str = None,
        source_system: str = None,
        target_layer: str = None,
        created_by: str = 'system',
        metadata: Dict[str, Any] = None
    ) -> int:
        """
        Log the start of a process.

        Args:
            process_name: Name of the process
            process_description: Description of what the process does
            source_system: Source system identifier (CRM/ERP)
            target_layer: Target medallion layer
            created_by: User or system initiating the process
            metadata: Additional metadata (stored as JSONB)

        Returns:
            Process log ID for tracking

        Raises:
            AuditLoggerError: If the row cannot be written
        """
        try:
            with self._get_session() as session:
                process_log = ProcessLog(
                    process_name=process_name,
                    process_description=process_description,
                    source_system=source_system,
                    target_layer=target_layer,
                    created_by=created_by,
                    process_metadata=metadata
                )

                session.add(process_log)
                session.flush()

                log_id = process_log.log_id
                logger.debug(f"Started process '{process_name}' with log_id {log_id}")
                return log_id

        except SQLAlchemyError as e:
            logger.error(f"Failed to log process start: {e}")
            raise AuditLoggerError(f"Failed to log process start: {e}")

    def end_process(
        self,
        log_id: int,
        status: str,
        rows_processed: int = None,
        rows_inserted: int = None,
        rows_deleted: int = None,
        error_message: str = None
    ) -> None:
        """
        Log the completion of a process.

        Args:
            log_id: Process log ID from start_process
            status: Final status (SUCCESS, FAILED)
            rows_processed: Number of source rows read
            rows_inserted: Number of rows written
            rows_deleted: Number of rows dropped by cleansing
            error_message: Error message if status is FAILED

        Raises:
            AuditLoggerError: If the process row is missing or cannot be updated
        """
        try:
            with self._get_session() as session:
                process_log = session.query(ProcessLog).filter_by(log_id=log_id).first()
                if not process_log:
                    raise AuditLoggerError(f"Process log with ID {log_id} not found")

                process_log.end_time = datetime.now(timezone.utc)
                process_log.status = status
                process_log.rows_processed = rows_processed
                process_log.rows_inserted = rows_inserted
                process_log.rows_deleted = rows_deleted
                process_log.error_message = error_message

                logger.debug(f"Completed process '{process_log.process_name}' with status {status}")

        except SQLAlchemyError as e:
            logger.error(f"Failed to log process end: {e}")
            raise AuditLoggerError(f"Failed to log process end: {e}")
