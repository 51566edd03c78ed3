"""
========================================================
Medallion Architecture Package
========================================================

Implements the first two layers of the medallion architecture for the
retail data warehouse:
    - Bronze: Raw CSV extracts landed verbatim
    - Silver: Cleansed, normalized and deduplicated tables

Modules:
    bronze: Bronze layer manager for raw data ingestion
    silver: Silver layer manager (full refresh, fail-fast)
    transforms: Per-entity Bronze → Silver transforms
    cleansing: Field-level cleansing rules
    storage: Table read/truncate/insert over SQLAlchemy

Example:
    >>> from medallion import BronzeManager, SilverManager
    >>>
    >>> BronzeManager().load_all_data()
    >>> SilverManager().load_all()
"""

__version__ = "0.2.0"
__all__ = ['BronzeManager', 'SilverManager', 'SilverLoadError', 'BronzeLoadError']

from medallion.bronze import BronzeLoadError, BronzeManager
from medallion.silver import SilverLoadError, SilverManager
