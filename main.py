"""
=========================================================
Main orchestrator for the retail warehouse medallion loads.
=========================================================

Top-level entry point for running the Bronze and Silver layer loads, alone
or chained, with database audit logging and optional performance metrics.

Architecture:
    1. Database Connectivity (utils.database_utils)
    2. Application Logging (core.logger) - ALWAYS AVAILABLE
    3. Audit Logging (logs.audit_logger, logs.error_handler) - OPTIONAL (--no-audit)
    4. Performance Monitoring (logs.performance_monitor) - OPTIONAL (--monitor)
    5. Medallion Layer Processing (medallion.bronze, medallion.silver)

Key Design Principles:
    - Tables and the logs schema are created outside this project
    - One engine and one set of audit writers shared by both layers
    - main.py is a thin CLI wrapper

Usage:
    # Land the CSV extracts into bronze
    python main.py --bronze

    # Rebuild silver from bronze
    python main.py --silver

    # Bronze then silver, with performance metrics
    python main.py --full-pipeline --monitor

Example:
    >>> from main import DataWarehouseOrchestrator
    >>>
    >>> orchestrator = DataWarehouseOrchestrator(monitor_performance=True)
    >>> orchestrator.verify_prerequisites()
    >>> orchestrator.run_full_pipeline()
"""

import argparse
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.engine import Engine

# Core infrastructure
from core.config import config
from core.logger import get_logger, log_banner

# Audit logging infrastructure
from logs.audit_logger import ProcessLogger
from logs.error_handler import ErrorLogger
from logs.performance_monitor import PerformanceMonitor

# Medallion layers
from medallion.bronze import BronzeLoadError, BronzeManager
from medallion.silver import SilverLoadError, SilverManager
from medallion.storage import WarehouseStore
from models.warehouse_models import BRONZE_TABLES, SILVER_TABLES

# Database connectivity
from utils.database_utils import (
    create_sqlalchemy_engine,
    get_database_connection_info,
    table_exists,
    verify_connection,
    verify_database_exists,
    wait_for_database,
)

logger = get_logger(__name__)


class OrchestratorError(Exception):
    """Exception raised for orchestrator operation errors."""
    pass


class DataWarehouseOrchestrator:
    """
    Top-level orchestrator for the medallion loads.

    Attributes:
        monitor_performance: Enable performance monitoring
        audit: Write process/error rows to the logs schema
        engine: Shared SQLAlchemy engine (available after initialization)
        store: Shared WarehouseStore (available after initialization)
        process_logger: ProcessLogger instance (None with audit off)
        error_logger: ErrorLogger instance (None with audit off)
        perf_monitor: PerformanceMonitor instance (None with monitoring off)

    Example:
        >>> orchestrator = DataWarehouseOrchestrator(audit=False)
        >>> orchestrator.run_silver_transformation()
    """

    def __init__(self, monitor_performance: bool = False, audit: bool = True):
        """
        Initialize the data warehouse orchestrator.

        Args:
            monitor_performance: Enable performance monitoring for all operations
            audit: Record process and error rows in the logs schema
        """
        self.monitor_performance = monitor_performance
        self.audit = audit

        self.engine: Optional[Engine] = None
        self.store: Optional[WarehouseStore] = None
        self.process_logger: Optional[ProcessLogger] = None
        self.error_logger: Optional[ErrorLogger] = None
        self.perf_monitor: Optional[PerformanceMonitor] = None

        log_banner(logger, "Retail Warehouse - Medallion Orchestrator")

    def verify_prerequisites(self) -> bool:
        """
        Verify all prerequisites for warehouse operations.

        Checks:
            1. PostgreSQL server connectivity
            2. Database availability with retry logic
            3. Warehouse database existence
            4. Bronze and Silver table existence

        Returns:
            True if all prerequisites met

        Raises:
            OrchestratorError: If critical prerequisites are missing
        """
        logger.info("🔍 Verifying prerequisites...")

        conn_info = get_database_connection_info()
        logger.info(f"📍 PostgreSQL Server: {conn_info['host']}:{conn_info['port']}")
        logger.info(f"👤 User: {conn_info['user']}")
        logger.info(f"🏢 Warehouse Database: {conn_info['warehouse_database']}")

        success, message = verify_connection()
        if not success:
            logger.error(f"❌ {message}")
            raise OrchestratorError(
                f"PostgreSQL connection failed: {message}. "
                f"Please ensure PostgreSQL is running at {conn_info['host']}:{conn_info['port']}"
            )
        logger.info(f"✅ {message}")

        try:
            wait_for_database(max_retries=5, retry_delay=2)
        except Exception as e:
            raise OrchestratorError(f"Prerequisite verification failed: {e}") from e

        if not verify_database_exists(config.warehouse_db_name):
            raise OrchestratorError(
                f"Warehouse database '{config.warehouse_db_name}' does not exist"
            )

        self.verify_tables()

        logger.info("✅ All prerequisites verified successfully")
        return True

    def verify_tables(self) -> None:
        """
        Check that every Bronze and Silver table exists in the warehouse.

        Raises:
            OrchestratorError: Listing the missing tables
        """
        self.initialize_logging_infrastructure()
        layers = (
            (config.pipeline.bronze_schema, BRONZE_TABLES),
            (config.pipeline.silver_schema, SILVER_TABLES),
        )
        missing = [
            f"{schema}.{name}"
            for schema, tables in layers
            for name in tables
            if not table_exists(self.engine, schema, name)
        ]
        if missing:
            raise OrchestratorError(f"Missing warehouse tables: {', '.join(missing)}")
        logger.info(f"✅ All {len(BRONZE_TABLES) + len(SILVER_TABLES)} layer tables present")

    def initialize_logging_infrastructure(self) -> None:
        """
        Create the shared engine, table store and audit writers.

        Safe to call more than once; later calls are no-ops.

        Raises:
            OrchestratorError: If the warehouse database doesn't exist
        """
        if self.store is not None:
            return

        logger.info("📝 Initializing warehouse connection and audit logging...")

        if not verify_database_exists(config.warehouse_db_name):
            raise OrchestratorError(
                f"Warehouse database '{config.warehouse_db_name}' does not exist"
            )

        self.engine = create_sqlalchemy_engine(use_warehouse=True)
        self.store = WarehouseStore(self.engine, chunksize=config.pipeline.write_chunksize)

        if self.audit:
            self.process_logger = ProcessLogger(engine=self.engine)
            self.error_logger = ErrorLogger(engine=self.engine)
            logger.info("✅ ProcessLogger and ErrorLogger initialized (database audit trails)")
        else:
            logger.info("ℹ️  Audit logging disabled")

        if self.monitor_performance:
            self.perf_monitor = PerformanceMonitor(engine=self.engine)
            logger.info("✅ PerformanceMonitor initialized (metrics collection)")

    def _manager_kwargs(self) -> Dict[str, Any]:
        self.initialize_logging_infrastructure()
        return {
            'store': self.store,
            'audit': self.audit,
            'monitor_performance': self.monitor_performance,
            'process_logger': self.process_logger,
            'error_logger': self.error_logger,
            'perf_monitor': self.perf_monitor,
        }

    def run_bronze_ingestion(self) -> Dict[str, Any]:
        """
        Reload every bronze table from the CSV extracts.

        Returns:
            Ingestion results from BronzeManager.load_all_data()

        Raises:
            OrchestratorError: If any table fails to load
        """
        log_banner(logger, "🥉 BRONZE LAYER INGESTION")

        manager = BronzeManager(**self._manager_kwargs())
        try:
            return manager.load_all_data()
        except BronzeLoadError as e:
            raise OrchestratorError(f"Bronze ingestion failed at {e.table}: {e.message}") from e

    def run_silver_transformation(self) -> Dict[str, Any]:
        """
        Rebuild every silver table from bronze.

        Returns:
            Transformation results from SilverManager.load_all()

        Raises:
            OrchestratorError: If any entity fails to load
        """
        log_banner(logger, "🥈 SILVER LAYER TRANSFORMATION")

        manager = SilverManager(**self._manager_kwargs())
        try:
            return manager.load_all()
        except SilverLoadError as e:
            raise OrchestratorError(
                f"Silver transformation failed at {e.entity} "
                f"after {e.elapsed_seconds:.2f}s: {e.message}"
            ) from e

    def run_full_pipeline(self) -> Dict[str, Any]:
        """
        Run Bronze → Silver. Silver is skipped when Bronze fails.

        Returns:
            Results keyed by layer ('bronze', 'silver') plus 'duration_seconds'

        Raises:
            OrchestratorError: If either layer fails
        """
        log_banner(logger, "🏗️  FULL MEDALLION PIPELINE")
        start_time = datetime.now()

        results = {}
        logger.info("1️⃣  Running Bronze Layer...")
        results['bronze'] = self.run_bronze_ingestion()

        logger.info("2️⃣  Running Silver Layer...")
        results['silver'] = self.run_silver_transformation()

        results['duration_seconds'] = (datetime.now() - start_time).total_seconds()
        logger.info(f"✅ Pipeline completed in {results['duration_seconds']:.2f} seconds")
        return results

    def close(self) -> None:
        """Dispose the shared engine."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self.store = None


def main(argv=None):
    """
    Command-line interface for the data warehouse orchestrator.

    Usage:
        python main.py --bronze
        python main.py --silver --no-audit
        python main.py --full-pipeline --monitor --verbose

    Exit Codes:
        0: Success
        1: Error
        130: User interrupt (Ctrl+C)
    """
    parser = argparse.ArgumentParser(
        description="Retail Warehouse - Medallion Orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Land the CSV extracts into bronze
  python main.py --bronze

  # Rebuild silver without audit rows
  python main.py --silver --no-audit

  # Run full pipeline with monitoring
  python main.py --full-pipeline --monitor
        """
    )

    operation = parser.add_mutually_exclusive_group()
    operation.add_argument(
        '--bronze',
        action='store_true',
        help='Reload bronze tables from the CSV extracts'
    )
    operation.add_argument(
        '--silver',
        action='store_true',
        help='Rebuild silver tables from bronze'
    )
    operation.add_argument(
        '--full-pipeline',
        action='store_true',
        help='Run bronze then silver'
    )

    parser.add_argument(
        '--monitor',
        action='store_true',
        help='Enable performance monitoring (metrics collection)'
    )
    parser.add_argument(
        '--no-audit',
        action='store_true',
        help='Do not write process/error rows to the logs schema'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level)'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)

    if not (args.bronze or args.silver or args.full_pipeline):
        parser.print_help()
        logger.warning("⚠️  No operation specified. Use --bronze, --silver or --full-pipeline.")
        return 1

    orchestrator = None
    try:
        orchestrator = DataWarehouseOrchestrator(
            monitor_performance=args.monitor,
            audit=not args.no_audit
        )
        orchestrator.verify_prerequisites()

        if args.bronze:
            orchestrator.run_bronze_ingestion()
        elif args.silver:
            orchestrator.run_silver_transformation()
        else:
            orchestrator.run_full_pipeline()

        logger.info("🎉 Completed successfully!")
        return 0

    except OrchestratorError as e:
        logger.error(f"❌ Orchestration failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("⚠️  Operation interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"❌ Unexpected error: {e}", exc_info=True)
        return 1
    finally:
        if orchestrator is not None:
            orchestrator.close()


if __name__ == '__main__':
    sys.exit(main())
