"""
Pytest configuration and fixtures for toolhost tests.

This module provides shared fixtures used across unit and integration
tests: temporary directories, a seeded SQLite engine, handle managers built
from fakes, and an httpx client backed by a MockTransport.
"""

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest
from sqlalchemy import Engine, create_engine, text

from toolhost.handles import HandleManager
from toolhost.tools.base import ToolContext

SEED_SQL = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT NOT NULL UNIQUE, name TEXT)",
    "CREATE TABLE posts ("
    " id INTEGER PRIMARY KEY,"
    " user_id INTEGER NOT NULL REFERENCES users(id),"
    " title TEXT NOT NULL)",
    "INSERT INTO users (id, email, name) VALUES"
    " (1, 'ada@example.com', 'Ada'), (2, 'alan@example.com', 'Alan')",
    "INSERT INTO posts (id, user_id, title) VALUES (1, 1, 'Notes'), (2, 2, 'Machines')",
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sqlite_engine(temp_dir: Path) -> Generator[Engine, None, None]:
    """A file-backed SQLite engine with users and posts tables."""
    engine = create_engine(f"sqlite:///{temp_dir / 'test.db'}")
    with engine.begin() as conn:
        for statement in SEED_SQL:
            conn.execute(text(statement))
    yield engine
    engine.dispose()


def handles_with(**handles: Any) -> HandleManager:
    """
    Build a HandleManager whose factories return the given objects.

    Keyword names use underscores for the kind's dashes:
    handles_with(http_client=client) serves the "http-client" kind.
    """
    return HandleManager({kind.replace("_", "-"): (lambda h=handle: h) for kind, handle in handles.items()})


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """An httpx client whose requests are answered by handler."""
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def make_context(temp_dir: Path) -> Callable[..., ToolContext]:
    """Factory for a ToolContext over fake handles, rooted in temp_dir."""

    def _make(**handles: Any) -> ToolContext:
        return ToolContext(handles=handles_with(**handles), host="test", working_dir=str(temp_dir))

    return _make


@pytest.fixture
def make_handles() -> Callable[..., HandleManager]:
    """Factory for a HandleManager serving fake handles (see handles_with)."""
    return handles_with


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Factory for an httpx client answered by a handler function."""
    return mock_client
