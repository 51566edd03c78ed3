"""
=================================================
Bronze Layer Manager for Medallion Architecture
=================================================

Lands the CRM and ERP CSV extracts into the bronze schema as-is. Every run
is a full refresh: each staging table is truncated and reloaded from its
file, one table at a time, stopping at the first failure.

The only changes made to the data are the ones needed to store it: columns
are put in table order, and integer columns are parsed as nullable integers.

Architecture:
    datasets/source_crm/*.csv, datasets/source_erp/*.csv → bronze.<table> → audit logs

Example:
    >>> from medallion.bronze import BronzeManager
    >>>
    >>> manager = BronzeManager()
    >>> result = manager.load_all_data()
    >>> print(f"Loaded {result['rows_loaded']:,} rows")
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import Integer
from sqlalchemy.engine import Engine

from core.config import config
from core.logger import get_logger, log_banner
from logs.audit_logger import ProcessLogger
from logs.error_handler import ErrorLogger
from logs.performance_monitor import PerformanceMonitor
from medallion.base import LayerManager, LayerManagerError, error_code_of
from medallion.storage import WarehouseStore
from models.warehouse_models import BRONZE_TABLES, column_names, column_types

logger = get_logger(__name__)


class BronzeLoadError(Exception):
    """
    A Bronze table failed to load; the batch stopped at this table.

    Attributes:
        table: Name of the failing table
        message: Underlying error message
        elapsed_seconds: Time spent on the table before it failed
        error_code: Database error code, or the underlying exception class name
    """

    def __init__(self, table: str, message: str, elapsed_seconds: float = 0.0, error_code: str = None):
        self.table = table
        self.message = message
        self.elapsed_seconds = elapsed_seconds
        self.error_code = error_code
        super().__init__(f"Bronze load failed at {table}: {message}")


@dataclass(frozen=True)
class BronzeSource:
    """A CSV extract and the staging table it lands in.

    Attributes:
        table: Bronze table name
        source_system: CRM or ERP
        relative_path: CSV path relative to the source data directory
    """

    table: str
    source_system: str
    relative_path: str


BRONZE_SOURCES: List[BronzeSource] = [
    BronzeSource('crm_cust_info', 'CRM', 'source_crm/cust_info.csv'),
    BronzeSource('crm_prd_info', 'CRM', 'source_crm/prd_info.csv'),
    BronzeSource('crm_sales_details', 'CRM', 'source_crm/sales_details.csv'),
    BronzeSource('erp_cust_az12', 'ERP', 'source_erp/CUST_AZ12.csv'),
    BronzeSource('erp_loc_a101', 'ERP', 'source_erp/LOC_A101.csv'),
    BronzeSource('erp_px_cat_g1v2', 'ERP', 'source_erp/PX_CAT_G1V2.csv'),
]


def read_source_csv(csv_path: Path, table: str) -> pd.DataFrame:
    """
    Read a CSV extract into the column layout of its bronze table.

    Args:
        csv_path: Path to the CSV file
        table: Bronze table name

    Returns:
        DataFrame with the table's columns, in table order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file lacks a table column or an integer column holds text
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    # Only empty cells are null; 'NA' and 'N/A' are country values
    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False, na_values=[''])
    bronze_table = BRONZE_TABLES[table]
    expected = column_names(bronze_table)
    missing = [name for name in expected if name not in frame.columns]
    if missing:
        raise ValueError(f"{csv_path.name}: missing columns {missing}")

    frame = frame[expected].copy()
    for column in bronze_table.columns:
        if isinstance(column.type, Integer):
            frame[column.name] = pd.to_numeric(frame[column.name]).astype('Int64')
    return frame


class BronzeManager(LayerManager):
    """
    Orchestrates bronze layer ingestion from the CSV extracts.

    Attributes:
        bronze_schema: Name of bronze schema
        data_dir: Directory holding source_crm/ and source_erp/
        sources: Ordered list of files to load

    Example:
        >>> manager = BronzeManager(audit=False)
        >>> manager.load_table(BRONZE_SOURCES[0])['rows_loaded']
        18494
    """

    layer = 'bronze'

    def __init__(
        self,
        store: Optional[WarehouseStore] = None,
        engine: Optional[Engine] = None,
        bronze_schema: Optional[str] = None,
        data_dir: Optional[Path] = None,
        audit: bool = True,
        monitor_performance: bool = False,
        process_logger: Optional[ProcessLogger] = None,
        error_logger: Optional[ErrorLogger] = None,
        perf_monitor: Optional[PerformanceMonitor] = None,
        sources: Optional[List[BronzeSource]] = None
    ):
        """
        Initialize BronzeManager.

        Args:
            store: Existing WarehouseStore
            engine: Existing SQLAlchemy engine (ignored when ``store`` is given)
            bronze_schema: Defaults to config.pipeline.bronze_schema
            data_dir: Defaults to config.project.data_dir
            audit: Write process/error rows to the logs schema
            monitor_performance: Record duration and throughput metrics
            process_logger: ProcessLogger override
            error_logger: ErrorLogger override
            perf_monitor: PerformanceMonitor override
            sources: File list override (defaults to BRONZE_SOURCES)

        Raises:
            LayerManagerError: If the warehouse database doesn't exist
        """
        logger.info("🔧 Initializing BronzeManager...")
        super().__init__(
            store=store,
            engine=engine,
            audit=audit,
            monitor_performance=monitor_performance,
            process_logger=process_logger,
            error_logger=error_logger,
            perf_monitor=perf_monitor
        )

        self.bronze_schema = bronze_schema or config.pipeline.bronze_schema
        self.data_dir = Path(data_dir) if data_dir else config.project.data_dir
        self.sources = list(sources or BRONZE_SOURCES)

    def load_table(self, source: BronzeSource) -> Dict[str, Any]:
        """
        Full refresh of one bronze table from its CSV file.

        Args:
            source: File/table pair to load

        Returns:
            Dictionary with load results:
                - rows_loaded: Number of rows loaded
                - process_log_id: Process log ID (None without audit)
                - duration_seconds: Load duration
                - table_name: Full table name

        Raises:
            BronzeLoadError: If the file can't be read or the table can't be reloaded
        """
        start_time = datetime.now()
        target = f"{self.bronze_schema}.{source.table}"
        csv_path = self.data_dir / source.relative_path

        process_log_id = self._audit_start(
            process_name=f'bronze_ingestion_{source.table}',
            description=f'Load {csv_path.name} into {target}',
            source_system=source.source_system,
            metadata={'csv_path': str(csv_path), 'table_name': source.table}
        )

        try:
            frame = read_source_csv(csv_path, source.table)

            self.store.clear_table(self.bronze_schema, source.table)
            logger.info(f">> Table truncated : {target}")

            logger.info(f">> Inserting data into : {target}")
            rows_loaded = self.store.write_table(
                self.bronze_schema,
                source.table,
                frame,
                dtype=column_types(BRONZE_TABLES[source.table])
            )

        except Exception as e:
            duration_seconds = (datetime.now() - start_time).total_seconds()
            error_code = error_code_of(e)
            logger.error(f"❌ {target} failed after {duration_seconds:.2f}s [{error_code}]: {e}")

            self._audit_error(
                process_log_id, e, target,
                recovery_suggestion="Check CSV file format and database connection"
            )
            self._audit_end(process_log_id, 'FAILED', error_message=str(e))
            raise BronzeLoadError(source.table, str(e), duration_seconds, error_code) from e

        duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(f">> Load Duration ({source.table}): {duration_seconds:.2f} seconds")

        self._record_throughput(process_log_id, duration_seconds, rows_loaded, target)
        self._audit_end(
            process_log_id, 'SUCCESS',
            rows_processed=len(frame),
            rows_inserted=rows_loaded
        )

        return {
            'rows_loaded': rows_loaded,
            'process_log_id': process_log_id,
            'duration_seconds': duration_seconds,
            'table_name': target
        }

    def load_all_data(self) -> Dict[str, Any]:
        """
        Load every CSV extract, in order, stopping at the first failure.

        Returns:
            Dictionary with:
                - tables: Per-table results from load_table
                - rows_loaded: Total rows loaded
                - duration_seconds: Total batch duration

        Raises:
            BronzeLoadError: For the first table that fails
        """
        batch_start = datetime.now()
        results: Dict[str, Dict[str, Any]] = {}

        log_banner(logger, '🥉 Loading Bronze Layer')

        current_system = None
        for source in self.sources:
            if source.source_system != current_system:
                current_system = source.source_system
                log_banner(logger, f'Loading {current_system} Tables', char='-')
            results[source.table] = self.load_table(source)

        batch_seconds = (datetime.now() - batch_start).total_seconds()
        rows_loaded = sum(r['rows_loaded'] for r in results.values())

        log_banner(logger, '✅ Loading Bronze Layer is Completed')
        logger.info(f"Total Load Duration: {batch_seconds:.2f} seconds")

        return {
            'tables': results,
            'rows_loaded': rows_loaded,
            'duration_seconds': batch_seconds
        }


def main():
    """
    CLI entry point for bronze layer operations.

    Usage:
        python -m medallion.bronze
    """
    from core.logger import setup_logging

    setup_logging(
        log_level='INFO',
        log_file='bronze_ingestion.log',
        log_dir=str(config.project.logs_dir)
    )

    try:
        manager = BronzeManager(monitor_performance=True)
    except LayerManagerError as e:
        logger.error(f"Bronze ingestion failed: {e}")
        return 1

    try:
        result = manager.load_all_data()
    except BronzeLoadError as e:
        logger.error(f"Bronze ingestion failed at {e.table}: {e.message}")
        return 1
    finally:
        manager.close()

    print("\n" + "=" * 70)
    print("BRONZE INGESTION SUMMARY")
    print("=" * 70)
    for table_name, table_result in result['tables'].items():
        print(f"✅ {table_name}: {table_result['rows_loaded']:,} rows in {table_result['duration_seconds']:.2f}s")

    return 0


if __name__ == '__main__':
    import sys
    sys.exit(main())
