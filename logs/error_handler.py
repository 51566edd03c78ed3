"""
==============================================
Error logging for medallion loads.
==============================================

Writes load failures to ``logs.error_log`` with the context an operator
needs to diagnose them: error code, failing table, stack trace and a
recovery suggestion.

There is no retry or recovery logic here: a failed entity load is terminal
for the batch, and the error row is the record of why.

Classes:
    ErrorLogger: Centralized error logging with context and recovery suggestions

Example:
    >>> from logs.error_handler import ErrorLogger
    >>>
    >>> error_logger = ErrorLogger(engine=engine)
    >>> try:
    ...     manager.load_all()
    ... except SilverLoadError as e:
    ...     error_logger.log_exception(
    ...         process_log_id=123,
    ...         exception=e,
    ...         context={'table_name': 'silver.crm_sales_details'},
    ...         recovery_suggestion="Check bronze.crm_sales_details for malformed rows"
    ...     )
"""

import json
import logging
import traceback
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from logs.base import LogsDatabaseClient
from models.logs_models import ErrorLog

logger = logging.getLogger(__name__)


class ErrorHandlerError(Exception):
    """Exception raised when an error row cannot be written."""
    pass


class ErrorLogger(LogsDatabaseClient):
    """Error logging backed by ``logs.error_log``.

    Example:
        >>> error_logger = ErrorLogger(host='localhost', database='warehouse')
        >>> error_id = error_logger.log_error(
        ...     process_log_id=123,
        ...     error_message="Truncate failed",
        ...     table_name="silver.crm_prd_info",
        ...     recovery_suggestion="Check table locks"
        ... )
    """

    def log_error(
        self,
        process_log_id: int,
        error_message: str,
        error_level: str = 'ERROR',
        error_code: str = None,
        error_detail: str = None,
        table_name: str = None,
        row_context: str = None,
        recovery_suggestion: str = None
    ) -> int:
        """
        Log an error with detailed context.

        Args:
            process_log_id: Associated process log ID
            error_message: Human-readable error message
            error_level: Error severity level
            error_code: Application-specific error code
            error_detail: Detailed error information (stack trace)
            table_name: Table involved in the error
            row_context: JSON context
            recovery_suggestion: Suggested resolution steps

        Returns:
            Error log ID

        Raises:
            ErrorHandlerError: If the row cannot be written
        """
        try:
            with self._get_session() as session:
                error_log = ErrorLog(
                    process_log_id=process_log_id,
                    error_level=error_level,
                    error_code=error_code,
                    error_message=error_message,
                    error_detail=error_detail,
                    table_name=table_name,
                    row_context=row_context,
                    recovery_suggestion=recovery_suggestion
                )

                session.add(error_log)
                session.flush()

                error_id = error_log.error_id
                logger.debug(f"Logged error {error_id}: {error_message}")
                return error_id

        except SQLAlchemyError as e:
            logger.error(f"Failed to log error: {e}")
            raise ErrorHandlerError(f"Failed to log error: {e}")

    def log_exception(
        self,
        process_log_id: int,
        exception: Exception,
        context: Dict[str, Any] = None,
        recovery_suggestion: str = None
    ) -> int:
        """
        Log a Python exception with context.

        The error code is the exception's ``error_code`` attribute when it has
        one, otherwise its class name.

        Args:
            process_log_id: Associated process log ID
            exception: Python exception to log
            context: Additional context; ``table_name`` is lifted into its own column
            recovery_suggestion: Suggested resolution steps

        Returns:
            Error log ID
        """
        error_detail = ''.join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        )
        error_code = getattr(exception, 'error_code', None) or type(exception).__name__

        return self.log_error(
            process_log_id=process_log_id,
            error_message=str(exception),
            error_code=error_code,
            error_detail=error_detail,
            table_name=context.get('table_name') if context else None,
            row_context=json.dumps(context, default=str) if context else None,
            recovery_suggestion=recovery_suggestion
        )
