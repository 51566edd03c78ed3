"""
==================================================
Database connectivity utilities for PostgreSQL.
==================================================

Connection helpers, health checks and existence checks shared by the
Bronze/Silver loaders and the CLI orchestrator.

Key Features:
    - SQLAlchemy engine creation from config
    - Server availability checks (psycopg2) with retry
    - Database and table existence checks

Example:
    >>> from utils.database_utils import create_sqlalchemy_engine, wait_for_database
    >>>
    >>> wait_for_database(max_retries=5)
    >>> engine = create_sqlalchemy_engine(use_warehouse=True)
"""

import logging
import time
from typing import Optional, Tuple

import psycopg2
from psycopg2 import OperationalError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import config
from sql.query_builder import check_table_exists_sql

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Exception raised when database connection fails."""
    pass


def create_sqlalchemy_engine(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    use_warehouse: bool = False,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling.

    Args:
        host: Database hostname
        port: Database port
        user: Database user
        password: Database password
        database: Database name
        use_warehouse: If True, use warehouse database
        echo: Enable SQL statement logging
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections

    Returns:
        Configured SQLAlchemy Engine
    """
    connection_url = URL.create(
        drivername='postgresql',
        username=user or config.db_user,
        password=password or config.db_password,
        host=host or config.db_host,
        port=port or config.db_port,
        database=database or (
            config.warehouse_db_name if use_warehouse else config.db_name
        )
    )

    return create_engine(
        connection_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True
    )


def check_database_available(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    timeout: int = 5
) -> bool:
    """
    Check if PostgreSQL accepts connections.

    Args:
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name (defaults to config.db_name)
        timeout: Connection timeout in seconds

    Returns:
        True if database is available, False otherwise
    """
    try:
        conn = psycopg2.connect(
            host=host or config.db_host,
            port=port or config.db_port,
            user=user or config.db_user,
            password=password or config.db_password,
            database=database or config.db_name,
            connect_timeout=timeout
        )
        conn.close()
        return True
    except OperationalError as e:
        logger.debug(f"Database not available: {e}")
        return False


def wait_for_database(
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None,
    max_retries: int = 10,
    retry_delay: int = 2,
    timeout: int = 5
) -> bool:
    """
    Wait for PostgreSQL to become available, retrying with a fixed delay.

    Args:
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)
        database: Database name (defaults to config.db_name)
        max_retries: Maximum number of attempts
        retry_delay: Delay between attempts in seconds
        timeout: Connection timeout per attempt in seconds

    Returns:
        True once the database is available

    Raises:
        DatabaseConnectionError: If database never becomes available
    """
    host = host or config.db_host
    port = port or config.db_port
    database = database or config.db_name

    logger.info(f"Waiting for PostgreSQL at {host}:{port}/{database}...")

    for attempt in range(1, max_retries + 1):
        if check_database_available(host, port, user, password, database, timeout):
            logger.info(f"✅ PostgreSQL is available (attempt {attempt}/{max_retries})")
            return True

        if attempt < max_retries:
            logger.warning(
                f"⏳ PostgreSQL not available yet (attempt {attempt}/{max_retries}), "
                f"retrying in {retry_delay}s..."
            )
            time.sleep(retry_delay)

    error_msg = (
        f"PostgreSQL at {host}:{port}/{database} did not become available "
        f"after {max_retries} attempts"
    )
    logger.error(f"❌ {error_msg}")
    raise DatabaseConnectionError(error_msg)


def verify_database_exists(
    database_name: str,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None
) -> bool:
    """
    Verify if a specific database exists on the server.

    Args:
        database_name: Name of database to check
        host: Database hostname (defaults to config)
        port: Database port (defaults to config)
        user: Database user (defaults to config)
        password: Database password (defaults to config)

    Returns:
        True if database exists, False otherwise (including on connection errors)
    """
    try:
        engine = create_sqlalchemy_engine(
            host=host,
            port=port,
            user=user,
            password=password,
            database='postgres'
        )

        with engine.connect() as conn:
            result = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
                {"db_name": database_name}
            )
            exists = result.fetchone() is not None

        engine.dispose()
        return exists

    except SQLAlchemyError as e:
        logger.error(f"Failed to verify database existence: {e}")
        return False


def table_exists(engine: Engine, schema: str, table: str) -> bool:
    """
    Check whether schema.table exists in the database behind ``engine``.

    Args:
        engine: SQLAlchemy engine connected to the warehouse
        schema: Schema name
        table: Table name

    Returns:
        True if the table exists
    """
    with engine.connect() as conn:
        result = conn.execute(text(check_table_exists_sql(schema, table)))
        return bool(result.scalar())


def get_database_connection_info() -> dict:
    """
    Get current database connection configuration (without the password).

    Returns:
        Dictionary with connection parameters
    """
    return {
        'host': config.db_host,
        'port': config.db_port,
        'user': config.db_user,
        'admin_database': config.db_name,
        'warehouse_database': config.warehouse_db_name
    }


def verify_connection() -> Tuple[bool, Optional[str]]:
    """
    Verify database connection and return status with details.

    Returns:
        Tuple of (success, message)
    """
    try:
        if not check_database_available():
            return False, "PostgreSQL server not available"

        if verify_database_exists(config.warehouse_db_name):
            state = "exists"
        else:
            state = "does not exist yet"

        return True, (
            f"Connected to PostgreSQL at {config.db_host}:{config.db_port}. "
            f"Warehouse database '{config.warehouse_db_name}' {state}."
        )

    except Exception as e:
        return False, f"Connection test failed: {str(e)}"
