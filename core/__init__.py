"""
===================================================
Core infrastructure package for the data warehouse.
===================================================

This package provides centralized configuration management and logging
infrastructure used throughout the medallion pipeline.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Loading into {config.pipeline.silver_schema}")
"""

__version__ = "0.2.0"
__all__ = ['get_logger', 'setup_logging', 'log_banner', 'config', 'Config']

from core.config import Config, config
from core.logger import get_logger, log_banner, setup_logging
