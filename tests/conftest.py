"""Shared test fixtures for mcpsim."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from mcpsim.config import Config
from mcpsim.services import Services, build_services
from mcpsim.storage.db import get_connection
from mcpsim.storage.repository import Repository
from mcpsim.storage.seed import seed_sample_data


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db_conn(db_path: Path) -> sqlite3.Connection:
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def repo(db_conn: sqlite3.Connection) -> Repository:
    return Repository(db_conn)


@pytest.fixture
def seeded_repo(repo: Repository) -> Repository:
    seed_sample_data(repo)
    return repo


@pytest.fixture
def config(db_path: Path) -> Config:
    return Config(db_path=db_path, tool_timeout=5.0)


@pytest.fixture
def services(config: Config, db_conn: sqlite3.Connection) -> Services:
    return build_services(config, conn=db_conn)


@pytest.fixture
def pr_payload() -> dict:
    return {
        "action": "opened",
        "pull_request": {
            "number": 42,
            "title": "Add caching layer",
            "body": "Short description",
            "head": {"ref": "feature/cache"},
            "user": {"login": "octocat"},
            "created_at": "2024-06-01T12:00:00Z",
            "updated_at": "2024-06-01T12:30:00Z",
            "files": [
                {"filename": "src/cache.ts", "status": "added", "additions": 120, "deletions": 0},
                {"filename": "src/app.ts", "status": "modified", "additions": 4, "deletions": 2},
            ],
        },
        "repository": {
            "clone_url": "https://github.com/example/repo",
            "default_branch": "main",
        },
    }
