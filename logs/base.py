"""
=========================================
Shared database access for log writers.
=========================================

Every writer in the ``logs`` package stores rows in the warehouse ``logs``
schema through SQLAlchemy ORM sessions. This module holds the connection and
session handling they have in common.
"""

from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import sessionmaker


class LogsDatabaseClient:
    """Base class owning the engine and session factory of a log writer.

    Either pass connection parameters, or an existing ``engine`` to share the
    loader's connection pool.

    Attributes:
        host: PostgreSQL server hostname
        port: PostgreSQL server port
        user: Database username
        password: Database password
        database: Database name
    """

    def __init__(
        self,
        host: str = 'localhost',
        port: int = 5432,
        user: str = 'postgres',
        password: str = '',
        database: str = 'sql_retail_analytics_warehouse',
        engine: Optional[Engine] = None
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database

        self._engine: Optional[Engine] = engine
        self._session_factory: Optional[sessionmaker] = None

    def _get_engine(self) -> Engine:
        """Get (lazily create) the SQLAlchemy engine."""
        if self._engine is None:
            connection_url = URL.create(
                drivername='postgresql',
                username=self.user,
                password=self.password,
                host=self.host,
                port=self.port,
                database=self.database
            )
            self._engine = create_engine(connection_url, echo=False)
        return self._engine

    @contextmanager
    def _get_session(self):
        """Yield a session; commit on success, roll back on error, always close."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._get_engine())

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
