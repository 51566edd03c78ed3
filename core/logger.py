"""
=========================================================
Centralized logging configuration for the data warehouse.
=========================================================

Provides consistent logging setup across all modules with:
- File and console output
- Colored console output with emojis
- Banner helpers for layer/section progress lines

Example:
    >>> from core.logger import get_logger, setup_logging, log_banner
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='silver_load.log')
    >>> logger = get_logger(__name__)
    >>> log_banner(logger, 'Loading Silver Layer')
    >>> logger.info(">> Table truncated : silver.crm_cust_info")
"""

import copy
import logging
import sys
from pathlib import Path
from typing import Optional

BANNER_WIDTH = 70


class ColoredFormatter(logging.Formatter):
    """Console formatter adding ANSI colors and emoji markers.

    The record is copied before decoration so file handlers sharing the
    same record still see the plain level name.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
        EMOJI: Dict mapping log levels to emoji indicators
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    EMOJI = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️ ',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥'
    }

    def format(self, record):
        record = copy.copy(record)
        levelname = record.levelname
        record.emoji = self.EMOJI.get(levelname, '')
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        return super().format(record)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Configured Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> None:
    """Setup centralized logging configuration.

    Configures the root logger with console and/or file handlers. Existing
    root handlers are replaced, so calling it again reconfigures logging.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'silver_load.log')
        log_dir: Optional log directory path (defaults to 'logs/')
        console_output: If True, output to console (stdout)
        use_colors: If True, use colored output for console

    Example:
        >>> setup_logging(
        ...     log_level='DEBUG',
        ...     log_file='pipeline.log',
        ...     log_dir='logs'
        ... )
    """
    level = getattr(logging, log_level.upper())
    plain_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    datefmt = '%Y-%m-%d %H:%M:%S'

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        if use_colors:
            console_formatter = ColoredFormatter(
                '%(emoji)s %(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt=datefmt
            )
        else:
            console_formatter = logging.Formatter(plain_format, datefmt=datefmt)

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(plain_format, datefmt=datefmt))
        root_logger.addHandler(file_handler)


def log_banner(logger: logging.Logger, title: str, char: str = '=') -> None:
    """Log a title framed by separator lines.

    Args:
        logger: Logger to write to
        title: Banner text
        char: Separator character ('=' for layers, '-' for sections)
    """
    line = char * BANNER_WIDTH
    logger.info(line)
    logger.info(title)
    logger.info(line)


def _init_default_logging():
    """Install a default console handler if nothing configured logging yet."""
    if not logging.getLogger().handlers:
        setup_logging(log_level='INFO', console_output=True, use_colors=True)


# Auto-initialize on import
_init_default_logging()
