"""
================================================
Configuration management for the data warehouse.
================================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

The configuration system covers:
- PostgreSQL connection settings
- Project directories (source extracts, log files)
- Medallion pipeline settings (layer schemas, write batch size, date policy)

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> print(f"Warehouse: {config.warehouse_db_name}")
    >>>
    >>> # Pipeline settings
    >>> print(f"Silver schema: {config.pipeline.silver_schema}")
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _env_flag(name: str, default: str = 'false') -> bool:
    """Read a boolean flag from the environment (true/1/yes/on)."""
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        host: PostgreSQL server hostname or IP address
        port: PostgreSQL server port number
        user: Database username
        password: Database password
        database: Default/admin database name
        warehouse_db: Target data warehouse database name
    """

    host: str
    port: int
    user: str
    password: str
    database: str
    warehouse_db: str


@dataclass
class ProjectConfig:
    """Project-wide directory settings.

    Attributes:
        project_root: Absolute path to project root directory
        data_dir: Directory holding the CRM/ERP CSV extracts
        logs_dir: Directory for log files
    """

    project_root: Path
    data_dir: Path
    logs_dir: Path


@dataclass
class PipelineConfig:
    """Medallion pipeline settings.

    Attributes:
        bronze_schema: Schema holding raw staging tables
        silver_schema: Schema holding cleansed tables
        write_chunksize: Rows per INSERT batch when writing a table
        strict_dates: If True, an 8-digit encoded date that is not a real
            calendar date fails the entity instead of becoming NULL
    """

    bronze_schema: str
    silver_schema: str
    write_chunksize: int
    strict_dates: bool


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with database connection settings
        project: ProjectConfig instance with project directory paths
        pipeline: PipelineConfig instance with medallion load settings

    Example:
        >>> config = Config()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Database configuration
        self.db = DatabaseConfig(
            host=os.getenv('POSTGRES_HOST', 'localhost'),
            port=int(os.getenv('POSTGRES_PORT', '5432')),
            user=os.getenv('POSTGRES_USER', 'postgres'),
            password=os.getenv('POSTGRES_PASSWORD', ''),
            database=os.getenv('POSTGRES_DB', 'postgres'),
            warehouse_db=os.getenv('WAREHOUSE_DB', 'sql_retail_analytics_warehouse')
        )

        # Project structure
        project_root = Path(__file__).parent.parent
        self.project = ProjectConfig(
            project_root=project_root,
            data_dir=Path(os.getenv('SOURCE_DATA_DIR', str(project_root / 'datasets'))),
            logs_dir=project_root / 'logs'
        )

        # Medallion pipeline
        self.pipeline = PipelineConfig(
            bronze_schema=os.getenv('BRONZE_SCHEMA', 'bronze'),
            silver_schema=os.getenv('SILVER_SCHEMA', 'silver'),
            write_chunksize=int(os.getenv('WRITE_CHUNKSIZE', '1000')),
            strict_dates=_env_flag('SILVER_STRICT_DATES')
        )

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get default/admin database name."""
        return self.db.database

    @property
    def warehouse_db_name(self) -> str:
        """Get data warehouse database name."""
        return self.db.warehouse_db


# Global configuration instance
config = Config()
