"""Pytest configuration and fixtures."""

import pytest

from textbbs.core.session import BbsSession
from textbbs.providers import SqliteRepository


@pytest.fixture
def repo():
    """Empty in-memory repository (no root conference)."""
    repository = SqliteRepository(":memory:")
    yield repository
    repository.close()


@pytest.fixture
def seeded_repo(repo):
    """In-memory repository with the default Lobby/Main/General content."""
    repo.seed_defaults()
    return repo


@pytest.fixture
def make_session():
    """Factory creating a started session on a repository."""

    def _make(repository, user="alice", rows=24, cols=80, page_size=None):
        session = BbsSession(repository)
        session.handle_hello(user=user, rows=rows, cols=cols, page_size=page_size)
        return session

    return _make

