# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskboard.config import Settings
from taskboard.db import TaskStore
from taskboard.main import create_app
from taskboard.services import TaskService

from .fakes import StepClock


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    store = TaskStore(tmp_path / "tasks.db")
    store.init_db()
    return store


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def service(store: TaskStore, clock: StepClock) -> TaskService:
    return TaskService(store, clock=clock)


@pytest.fixture()
def client(tmp_path: Path) -> Iterator[TestClient]:
    """API client over a fresh database; the lifespan runs schema init."""
    settings = Settings(database_path=tmp_path / "api.db")
    with TestClient(create_app(settings)) as c:
        yield c
