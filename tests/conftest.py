"""Shared fixtures.

Both store backends are exercised from the same demo seed: an administrator
(Paul), two teachers of 6ème A, a supervisor, a director and one student
(Lucas, 6ème A).
"""

import os
import tempfile

# Keep the module-level engine and data directory away from the project tree
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("EVAL_ECOLE_DATA_DIR", tempfile.mkdtemp(prefix="evalecole-tests-"))

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
import pytz  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from evalecole.api.routes.auth import create_access_token  # noqa: E402
from evalecole.app import app  # noqa: E402
from evalecole.core.database import build_engine  # noqa: E402
from evalecole.core.dependencies import (  # noqa: E402
    get_confirmation_manager,
    get_store,
    get_submission_guard,
)
from evalecole.schemas.point_event import PointEvent  # noqa: E402
from evalecole.schemas.user import User, UserRole  # noqa: E402
from evalecole.utils.confirmation import ConfirmationManager  # noqa: E402
from evalecole.utils.local_store import LocalEntityStore  # noqa: E402
from evalecole.utils.provisioning import provision_database  # noqa: E402
from evalecole.utils.sql_store import SqlEntityStore  # noqa: E402
from evalecole.utils.submission import SubmissionGuard  # noqa: E402


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_user(user_id: str, role: UserRole, **fields) -> User:
    fields.setdefault("full_name", user_id)
    return User(id=user_id, role=role, **fields)


def make_event(
    target: str,
    points: int,
    when: Optional[datetime] = None,
    created_by: str = "eleve1",
    action_id: Optional[str] = None,
    label: Optional[str] = "Test",
) -> PointEvent:
    return PointEvent(
        date_time=when or datetime.now(pytz.utc),
        created_by_id=created_by,
        target_user_id=target,
        action_id=action_id,
        custom_label=None if action_id else label,
        points=points,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_store(tmp_path) -> LocalEntityStore:
    store = LocalEntityStore(tmp_path / "store.json")
    store.ensure_ready()
    return store


@pytest.fixture
def sql_store() -> SqlEntityStore:
    engine = build_engine("sqlite://")
    provision_database(engine)
    store = SqlEntityStore(engine)
    store.ensure_ready()
    yield store
    engine.dispose()


@pytest.fixture(params=["local", "sql"])
def store(request, tmp_path):
    """Seeded store, once per backend."""
    if request.param == "local":
        return request.getfixturevalue("local_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def guard() -> SubmissionGuard:
    return SubmissionGuard(confirmation_seconds=0)


@pytest.fixture
def client(store, guard):
    confirmations = ConfirmationManager()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_submission_guard] = lambda: guard
    app.dependency_overrides[get_confirmation_manager] = lambda: confirmations
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def admin_headers() -> dict:
    return auth_headers("u1")


@pytest.fixture
def student_headers() -> dict:
    return auth_headers("eleve1")
