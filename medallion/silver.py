"""
=================================================
Silver Layer Manager for Medallion Architecture
=================================================

Rebuilds the six Silver tables from their Bronze snapshots. Every run is a
full refresh: each target table is truncated, the Bronze snapshot is read
and cleansed, and the result is inserted.

Entities load one at a time in a fixed order, and each moves through

    IDLE → CLEARING → COMPUTING → WRITING → DONE   (or → FAILED)

The batch stops at the first failing entity. Entities already loaded keep
their new contents, the failing entity is left cleared (or partially
written), and entities after it are not touched.

Architecture:
    bronze.<table> → transforms → silver.<table> → audit logs

Example:
    >>> from medallion.silver import SilverManager
    >>>
    >>> manager = SilverManager(monitor_performance=True)
    >>> result = manager.load_all()
    >>> print(f"{result['rows_written']:,} rows in {result['duration_seconds']:.1f}s")
"""

from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import pandas as pd
from sqlalchemy.engine import Engine

from core.config import config
from core.logger import get_logger, log_banner
from logs.audit_logger import ProcessLogger
from logs.error_handler import ErrorLogger
from logs.performance_monitor import PerformanceMonitor
from medallion.base import LayerManager, LayerManagerError, error_code_of
from medallion.storage import WarehouseStore
from medallion.transforms import (
    TransformOptions,
    transform_crm_cust_info,
    transform_crm_prd_info,
    transform_crm_sales_details,
    transform_erp_cust_az12,
    transform_erp_loc_a101,
    transform_erp_px_cat_g1v2,
)
from models.warehouse_models import SILVER_TABLES, column_types

logger = get_logger(__name__)


class LoadState(Enum):
    """Lifecycle of one entity within a Silver batch."""
    IDLE = 'IDLE'
    CLEARING = 'CLEARING'
    COMPUTING = 'COMPUTING'
    WRITING = 'WRITING'
    DONE = 'DONE'
    FAILED = 'FAILED'


@dataclass(frozen=True)
class SilverEntity:
    """One Bronze → Silver table mapping.

    Attributes:
        name: Table name, identical in the bronze and silver schemas
        source_system: CRM or ERP
        transform: Pure function (raw frame, options) → cleansed frame
        description: Short summary used in audit rows
    """

    name: str
    source_system: str
    transform: Callable[[pd.DataFrame, TransformOptions], pd.DataFrame]
    description: str = ''


SILVER_ENTITIES: List[SilverEntity] = [
    SilverEntity('crm_cust_info', 'CRM', transform_crm_cust_info,
                 'Deduplicated customers with decoded marital status and gender'),
    SilverEntity('crm_prd_info', 'CRM', transform_crm_prd_info,
                 'Products with category id, product line and validity window'),
    SilverEntity('crm_sales_details', 'CRM', transform_crm_sales_details,
                 'Sales lines with decoded dates and reconciled amounts'),
    SilverEntity('erp_cust_az12', 'ERP', transform_erp_cust_az12,
                 'ERP customer birth dates and gender'),
    SilverEntity('erp_loc_a101', 'ERP', transform_erp_loc_a101,
                 'ERP customer countries'),
    SilverEntity('erp_px_cat_g1v2', 'ERP', transform_erp_px_cat_g1v2,
                 'ERP product categories'),
]


class SilverLoadError(Exception):
    """
    A Silver entity failed to load; the batch stopped at this entity.

    Attributes:
        entity: Name of the failing entity
        message: Underlying error message
        elapsed_seconds: Time spent on the entity before it failed
        error_code: Database error code, or the underlying exception class name
    """

    def __init__(self, entity: str, message: str, elapsed_seconds: float = 0.0, error_code: str = None):
        self.entity = entity
        self.message = message
        self.elapsed_seconds = elapsed_seconds
        self.error_code = error_code
        super().__init__(f"Silver load failed at {entity}: {message}")


@dataclass
class EntityLoadResult:
    """Outcome of one entity load."""

    entity: str
    state: LoadState = LoadState.IDLE
    rows_read: int = 0
    rows_written: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    process_log_id: Optional[int] = None

    def finish(self, state: LoadState) -> None:
        self.state = state
        self.finished_at = datetime.now()
        self.duration_seconds = (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'rows_read': self.rows_read,
            'rows_written': self.rows_written,
            'started_at': self.started_at,
            'finished_at': self.finished_at,
            'duration_seconds': self.duration_seconds,
            'process_log_id': self.process_log_id,
        }


class SilverManager(LayerManager):
    """
    Orchestrates the full refresh of the Silver layer.

    Attributes:
        bronze_schema: Schema holding the raw snapshots
        silver_schema: Schema holding the cleansed tables
        strict_dates: Fail an entity on impossible 8-digit dates
        entities: Ordered entity list
        states: Current LoadState per entity name

    Example:
        >>> manager = SilverManager(audit=False)
        >>> manager.load_all()
        >>> manager.states['crm_sales_details']
        <LoadState.DONE: 'DONE'>
    """

    layer = 'silver'

    def __init__(
        self,
        store: Optional[WarehouseStore] = None,
        engine: Optional[Engine] = None,
        bronze_schema: Optional[str] = None,
        silver_schema: Optional[str] = None,
        strict_dates: Optional[bool] = None,
        audit: bool = True,
        monitor_performance: bool = False,
        process_logger: Optional[ProcessLogger] = None,
        error_logger: Optional[ErrorLogger] = None,
        perf_monitor: Optional[PerformanceMonitor] = None,
        entities: Optional[List[SilverEntity]] = None
    ):
        """
        Initialize SilverManager.

        Args:
            store: Existing WarehouseStore
            engine: Existing SQLAlchemy engine (ignored when ``store`` is given)
            bronze_schema: Defaults to config.pipeline.bronze_schema
            silver_schema: Defaults to config.pipeline.silver_schema
            strict_dates: Defaults to config.pipeline.strict_dates
            audit: Write process/error rows to the logs schema
            monitor_performance: Record duration and resource metrics
            process_logger: ProcessLogger override
            error_logger: ErrorLogger override
            perf_monitor: PerformanceMonitor override
            entities: Entity list override (defaults to SILVER_ENTITIES)

        Raises:
            LayerManagerError: If the warehouse database doesn't exist
        """
        logger.info("🔧 Initializing SilverManager...")
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
        self.silver_schema = silver_schema or config.pipeline.silver_schema
        self.strict_dates = config.pipeline.strict_dates if strict_dates is None else strict_dates
        self.entities = list(entities or SILVER_ENTITIES)
        self.states: Dict[str, LoadState] = {e.name: LoadState.IDLE for e in self.entities}

    def _enter(self, entity: SilverEntity, result: EntityLoadResult, state: LoadState) -> None:
        self.states[entity.name] = state
        result.state = state
        logger.debug(f"{entity.name}: {state.value}")

    def load_entity(self, entity: SilverEntity, options: TransformOptions) -> EntityLoadResult:
        """
        Full refresh of one Silver table.

        Args:
            entity: Entity to load
            options: Transform options for this run

        Returns:
            EntityLoadResult in state DONE

        Raises:
            SilverLoadError: If clearing, reading, transforming or writing fails
        """
        target = f"{self.silver_schema}.{entity.name}"
        result = EntityLoadResult(entity=entity.name, started_at=datetime.now())
        result.process_log_id = self._audit_start(
            process_name=f'silver_load_{entity.name}',
            description=entity.description or f'Full refresh of {target}',
            source_system=entity.source_system,
            metadata={'source': f"{self.bronze_schema}.{entity.name}", 'target': target}
        )

        try:
            self._enter(entity, result, LoadState.CLEARING)
            self.store.clear_table(self.silver_schema, entity.name)
            logger.info(f">> Table truncated : {target}")

            self._enter(entity, result, LoadState.COMPUTING)
            raw = self.store.read_table(self.bronze_schema, entity.name)
            result.rows_read = len(raw)
            cleaned = entity.transform(raw, options)

            self._enter(entity, result, LoadState.WRITING)
            logger.info(f">> Inserting data into : {target}")
            result.rows_written = self.store.write_table(
                self.silver_schema,
                entity.name,
                cleaned,
                dtype=column_types(SILVER_TABLES[entity.name])
            )

        except Exception as e:
            self.states[entity.name] = LoadState.FAILED
            result.finish(LoadState.FAILED)
            error_code = error_code_of(e)

            logger.error(f"❌ {target} failed after {result.duration_seconds:.2f}s [{error_code}]: {e}")
            self._audit_error(
                result.process_log_id, e, target,
                recovery_suggestion=f"Check {self.bronze_schema}.{entity.name} and rerun the silver load"
            )
            self._audit_end(
                result.process_log_id, 'FAILED',
                rows_processed=result.rows_read, error_message=str(e)
            )
            raise SilverLoadError(entity.name, str(e), result.duration_seconds, error_code) from e

        self.states[entity.name] = LoadState.DONE
        result.finish(LoadState.DONE)
        logger.info(
            f">> Load Duration ({entity.name}): {result.duration_seconds:.2f} seconds "
            f"({result.started_at:%Y-%m-%d %H:%M:%S} to {result.finished_at:%Y-%m-%d %H:%M:%S})"
        )
        logger.info(f">> {result.rows_written:,} of {result.rows_read:,} rows written")

        self._record_throughput(result.process_log_id, result.duration_seconds, result.rows_written, target)
        self._audit_end(
            result.process_log_id, 'SUCCESS',
            rows_processed=result.rows_read,
            rows_inserted=result.rows_written,
            rows_deleted=result.rows_read - result.rows_written
        )
        return result

    def load_all(self, as_of: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Full refresh of every Silver table, in order, stopping at the first failure.

        Args:
            as_of: Load time used for date plausibility checks (defaults to now)

        Returns:
            Dictionary with load results:
                - status: 'SUCCESS'
                - entities: Per-entity EntityLoadResult.to_dict()
                - rows_written: Total rows written
                - duration_seconds: Total batch duration
                - process_log_id: Batch process log ID (None without audit)

        Raises:
            SilverLoadError: For the first entity that fails
        """
        options = TransformOptions(as_of=as_of or datetime.now(), strict_dates=self.strict_dates)
        self.states = {e.name: LoadState.IDLE for e in self.entities}
        batch_start = datetime.now()
        results: Dict[str, EntityLoadResult] = {}

        batch_log_id = self._audit_start(
            process_name='silver_load',
            description=f'Full refresh of the {self.silver_schema} layer',
            metadata={'entities': [e.name for e in self.entities], 'strict_dates': self.strict_dates}
        )

        log_banner(logger, '🥈 Loading Silver Layer')

        monitoring = nullcontext()
        if self.perf_monitor is not None and batch_log_id is not None:
            monitoring = self.perf_monitor.monitor_process(batch_log_id)

        try:
            with monitoring:
                current_system = None
                for entity in self.entities:
                    if entity.source_system != current_system:
                        current_system = entity.source_system
                        log_banner(logger, f'Loading {current_system} Tables', char='-')
                    results[entity.name] = self.load_entity(entity, options)

        except SilverLoadError as e:
            batch_seconds = (datetime.now() - batch_start).total_seconds()
            skipped = [name for name, state in self.states.items() if state is LoadState.IDLE]
            logger.error(f"❌ Silver load stopped at {e.entity}; not loaded: {', '.join(skipped) or 'none'}")
            logger.info(f"Total Load Duration: {batch_seconds:.2f} seconds")
            self._audit_end(
                batch_log_id, 'FAILED',
                rows_inserted=sum(r.rows_written for r in results.values()),
                error_message=str(e)
            )
            raise

        batch_seconds = (datetime.now() - batch_start).total_seconds()
        rows_written = sum(r.rows_written for r in results.values())

        log_banner(logger, '✅ Loading Silver Layer is Completed')
        logger.info(f"Total Load Duration: {batch_seconds:.2f} seconds")

        self._record_metric(batch_log_id, 'load_duration', batch_seconds, 'seconds', self.silver_schema)
        self._audit_end(
            batch_log_id, 'SUCCESS',
            rows_processed=sum(r.rows_read for r in results.values()),
            rows_inserted=rows_written
        )

        return {
            'status': 'SUCCESS',
            'entities': {name: r.to_dict() for name, r in results.items()},
            'rows_written': rows_written,
            'duration_seconds': batch_seconds,
            'process_log_id': batch_log_id
        }


def main():
    """
    CLI entry point for the Silver layer.

    Usage:
        python -m medallion.silver
    """
    from core.logger import setup_logging

    setup_logging(
        log_level='INFO',
        log_file='silver_load.log',
        log_dir=str(config.project.logs_dir)
    )

    try:
        manager = SilverManager(monitor_performance=True)
    except LayerManagerError as e:
        logger.error(f"Silver load failed: {e}")
        return 1

    try:
        result = manager.load_all()
    except SilverLoadError as e:
        logger.error(f"Silver load failed at {e.entity} after {e.elapsed_seconds:.2f}s: {e.message}")
        return 1
    finally:
        manager.close()

    print("\n" + "=" * 70)
    print("SILVER LOAD SUMMARY")
    print("=" * 70)
    for name, entity_result in result['entities'].items():
        print(f"✅ {name}: {entity_result['rows_written']:,} rows in {entity_result['duration_seconds']:.2f}s")

    return 0


if __name__ == '__main__':
    import sys
    sys.exit(main())
