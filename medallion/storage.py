"""
=================================================
Warehouse table access for the medallion loads
=================================================

Reads table snapshots into DataFrames and performs the two halves of a full
refresh: clearing a table and inserting a DataFrame into it.

``replace_table`` is NOT atomic: the TRUNCATE and the INSERTs run in separate
transactions. A failure while writing leaves the table cleared or partially
filled until the next successful run.

Example:
    >>> from medallion.storage import WarehouseStore
    >>> from utils.database_utils import create_sqlalchemy_engine
    >>>
    >>> store = WarehouseStore(create_sqlalchemy_engine(use_warehouse=True))
    >>> raw = store.read_table('bronze', 'crm_cust_info')
    >>> store.replace_table('silver', 'crm_cust_info', cleaned)
"""

from typing import List, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.logger import get_logger
from sql.dml import truncate_table_sql
from sql.query_builder import select_builder

logger = get_logger(__name__)


class WarehouseStoreError(Exception):
    """Exception raised when a warehouse table cannot be read, cleared or written."""
    pass


class WarehouseStore:
    """
    Table-level read/clear/write over a SQLAlchemy engine.

    Attributes:
        engine: SQLAlchemy engine connected to the warehouse database
        chunksize: Rows per INSERT batch in write_table
    """

    def __init__(self, engine: Engine, chunksize: int = 1000):
        self.engine = engine
        self.chunksize = chunksize

    def read_table(
        self,
        schema: str,
        table: str,
        columns: Optional[List[str]] = None
    ) -> pd.DataFrame:
        """
        Read a full snapshot of schema.table.

        Args:
            schema: Schema name
            table: Table name
            columns: Columns to select (all when None)

        Returns:
            DataFrame with one row per table row

        Raises:
            WarehouseStoreError: If the query fails
        """
        query = select_builder(schema, table, columns or "*")
        try:
            with self.engine.connect() as conn:
                frame = pd.read_sql(text(query), conn)
        except SQLAlchemyError as e:
            raise WarehouseStoreError(f"Failed to read {schema}.{table}: {e}") from e

        logger.debug(f"Read {len(frame):,} rows from {schema}.{table}")
        return frame

    def clear_table(self, schema: str, table: str) -> None:
        """
        Remove every row of schema.table (TRUNCATE, committed immediately).

        Raises:
            WarehouseStoreError: If the statement fails
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(text(truncate_table_sql(schema, table)))
        except SQLAlchemyError as e:
            raise WarehouseStoreError(f"Failed to truncate {schema}.{table}: {e}") from e

    def write_table(self, schema: str, table: str, frame: pd.DataFrame, dtype: dict = None) -> int:
        """
        Append the rows of ``frame`` to schema.table.

        Args:
            schema: Schema name
            table: Table name
            frame: Rows to insert; columns must match the table
            dtype: Column → SQLAlchemy type mapping for the insert

        Returns:
            Number of rows written

        Raises:
            WarehouseStoreError: If the insert fails
        """
        if frame.empty:
            logger.debug(f"Nothing to write to {schema}.{table}")
            return 0

        try:
            with self.engine.begin() as conn:
                frame.to_sql(
                    table,
                    conn,
                    schema=schema,
                    if_exists='append',
                    index=False,
                    chunksize=self.chunksize,
                    method='multi',
                    dtype=dtype
                )
        except SQLAlchemyError as e:
            raise WarehouseStoreError(f"Failed to write {schema}.{table}: {e}") from e

        return len(frame)

    def replace_table(self, schema: str, table: str, frame: pd.DataFrame, dtype: dict = None) -> int:
        """Clear schema.table, then write ``frame`` into it. Not atomic."""
        self.clear_table(schema, table)
        return self.write_table(schema, table, frame, dtype=dtype)
