"""
Shared fixtures and mocking helpers for logs/ module tests.

Key fixtures:
- mock_session: MagicMock ORM session that assigns primary keys on flush
- writer_factory: builds a log writer whose _get_session yields mock_session
- failing_writer_factory: builds a log writer whose session raises SQLAlchemyError
"""

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError


@pytest.fixture
def mock_session():
    """
    Mock SQLAlchemy session.

    ``added`` holds every object passed to add(); flush() gives each one
    without a primary key the next id, starting at 1.
    """
    session = MagicMock()
    session.added = []
    session.add.side_effect = session.added.append

    def flush():
        for number, obj in enumerate(session.added, start=1):
            key = obj.__mapper__.primary_key[0].key
            if getattr(obj, key) is None:
                setattr(obj, key, number)

    session.flush.side_effect = flush
    return session


@pytest.fixture
def writer_factory(mock_session):
    """
    Factory creating a log writer class instance wired to mock_session.

    Example:
        >>> logger = writer_factory(ProcessLogger)
    """
    def factory(writer_class, **overrides):
        params = dict(
            host="localhost",
            port=5432,
            user="postgres",
            password="secret",
            database="warehouse"
        )
        params.update(overrides)
        writer = writer_class(**params)

        @contextmanager
        def _session():
            yield mock_session

        writer._get_session = _session
        return writer

    return factory


@pytest.fixture
def failing_writer_factory():
    """
    Factory creating a log writer whose session fails with OperationalError.
    """
    def factory(writer_class):
        writer = writer_class(engine=MagicMock())

        @contextmanager
        def _session():
            raise OperationalError('INSERT', {}, Exception('connection lost'))
            yield  # pragma: no cover

        writer._get_session = _session
        return writer

    return factory
