import os
import subprocess
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytz

from conftest import make_event, make_user
from evalecole import config
from evalecole.core.database import build_engine, init_db
from evalecole.core.exceptions import ProvisioningError, StoreError
from evalecole.schemas.user import UserRole
from evalecole.utils.entity_store import ProvisioningStatus
from evalecole.utils.local_store import LocalEntityStore
from evalecole.utils.sql_store import SqlEntityStore

# --- Contract, run against both backends ---


def test_seed_data(store):
    users = {u.id: u for u in store.list_users()}

    assert set(users) == {"u1", "prof1", "prof2", "surv1", "dir1", "eleve1"}
    assert users["u1"].role == UserRole.ADMIN
    assert users["prof1"].assigned_class_ids == ["c6a", "c6b"]
    # Staff are stored without credentials
    assert users["surv1"].username == ""
    assert users["surv1"].password == ""
    assert users["eleve1"].class_id == "c6a"
    assert len(store.list_classes()) == 24
    assert store.list_events() == []


def test_upsert_inserts_then_replaces(store):
    store.upsert_user(make_user("prof9", UserRole.TEACHER, full_name="M. Neuf"))
    store.upsert_user(
        make_user("prof9", UserRole.TEACHER, full_name="M. Neuf", active=False, assigned_class_ids=["c5a"])
    )

    user = store.get_user("prof9")
    assert user.active is False
    assert user.assigned_class_ids == ["c5a"]
    assert [u.id for u in store.list_users()].count("prof9") == 1


def test_get_unknown_user(store):
    assert store.get_user("nobody") is None


def test_delete_user(store):
    store.delete_user("prof2")

    assert store.get_user("prof2") is None
    # Deleting again is not an error
    store.delete_user("prof2")


def test_add_and_delete_class(store):
    created = store.add_class("Atelier")

    assert created.id
    assert created in store.list_classes()

    store.delete_class(created.id)
    assert created not in store.list_classes()


def test_classes_are_listed_by_name(store):
    store.add_class("Atelier")
    store.add_class("3ème Z")

    names = [c.name for c in store.list_classes()]

    assert names == sorted(names)
    assert names[0] == "3ème A"
    assert names[-1] == "Atelier"


def test_deleting_a_class_leaves_its_students(store):
    store.delete_class("c6a")

    assert "c6a" not in [c.id for c in store.list_classes()]
    assert store.get_user("eleve1").class_id == "c6a"
    assert "c6a" in store.get_user("prof1").assigned_class_ids


def test_events_append_and_filter(store):
    when = datetime(2024, 5, 15, 10, 30, tzinfo=pytz.utc)
    first = make_event("prof1", 5, when=when, action_id="p_help")
    second = make_event("surv1", -3, when=when + timedelta(minutes=1), label="Retard")
    store.append_event(first)
    store.append_event(second)

    assert store.list_events() == [first, second]
    assert store.list_events_for_target("prof1") == [first]
    assert store.list_events_for_target("dir1") == []


def test_event_timestamps_keep_their_instant(store):
    when = datetime(2024, 5, 15, 23, 59, 59, 999999, tzinfo=pytz.utc)
    store.append_event(make_event("prof1", 1, when=when))

    assert store.list_events()[0].date_time == when


def test_delete_events_for_target(store):
    store.append_event(make_event("prof1", 5))
    store.append_event(make_event("surv1", 5))

    store.delete_events_for_target("prof1")

    assert [e.target_user_id for e in store.list_events()] == ["surv1"]


def test_delete_all_events(store):
    store.append_event(make_event("prof1", 5))
    store.append_event(make_event("surv1", 5))

    store.delete_all_events()

    assert store.list_events() == []


# --- Relational store ---


def test_empty_database_needs_provisioning():
    engine = build_engine("sqlite://")
    store = SqlEntityStore(engine)

    assert store.initialize() == ProvisioningStatus.NEEDS_PROVISIONING
    with pytest.raises(ProvisioningError):
        store.ensure_ready()


def test_empty_tables_are_ready():
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    store = SqlEntityStore(engine)

    assert store.initialize() == ProvisioningStatus.READY
    store.ensure_ready()
    assert store.list_users() == []
    assert store.list_classes() == []
    assert store.list_events() == []


def test_provisioning_takes_effect_without_restart():
    engine = build_engine("sqlite://")
    store = SqlEntityStore(engine)
    with pytest.raises(ProvisioningError):
        store.ensure_ready()

    init_db(bind=engine)

    store.ensure_ready()


def test_sql_failures_surface_as_store_errors():
    engine = build_engine("sqlite://")
    store = SqlEntityStore(engine)

    with pytest.raises(StoreError):
        store.list_users()


# --- Local store ---


def test_local_store_skips_malformed_records(tmp_path):
    store = LocalEntityStore(tmp_path / "store.json", seed=False)
    store.ensure_ready()
    store.kv.set(
        config.USERS_KEY,
        [
            {"id": "ok", "fullName": "Valide", "role": "Surveillant", "username": None},
            {"id": "bad-role", "fullName": "X", "role": "Concierge"},
            "not-an-object",
            {"id": "t1", "fullName": "Prof", "role": "Professeur", "assignedClassIds": "c6a"},
        ],
    )

    users = store.list_users()

    assert [u.id for u in users] == ["ok", "t1"]
    assert users[0].active is True
    assert users[0].username == ""
    assert users[1].assigned_class_ids is None


def test_local_reset_removes_snake_case_events(tmp_path):
    store = LocalEntityStore(tmp_path / "store.json", seed=False)
    store.ensure_ready()
    store.kv.set(
        config.EVENTS_KEY,
        [
            {
                "id": "e1",
                "date_time": "2024-05-15T09:00:00+00:00",
                "created_by_id": "eleve1",
                "target_user_id": "prof1",
                "action_id": "p_help",
                "points": 5,
            },
            {
                "id": "e2",
                "dateTime": "2024-05-15T09:00:00+00:00",
                "createdById": "eleve1",
                "targetUserId": "surv1",
                "actionId": "sd_help",
                "points": 2,
            },
            "not-an-object",
        ],
    )
    assert len(store.list_events_for_target("prof1")) == 1

    store.delete_events_for_target("prof1")

    assert store.list_events_for_target("prof1") == []
    assert [e.id for e in store.list_events()] == ["e2"]
    assert "not-an-object" in store.kv.get(config.EVENTS_KEY)


def test_local_backend_does_not_build_the_sql_engine(tmp_path):
    src_dir = Path(__file__).resolve().parents[1] / "src"
    code = (
        "import sys\n"
        "from evalecole.core.dependencies import build_store\n"
        "build_store('local').ensure_ready()\n"
        "print('evalecole.core.database' in sys.modules)\n"
    )
    env = dict(
        os.environ,
        EVAL_ECOLE_DATA_DIR=str(tmp_path),
        PYTHONPATH=os.pathsep.join(filter(None, [str(src_dir), os.environ.get("PYTHONPATH")])),
    )

    result = subprocess.run(
        [sys.executable, "-c", code], env=env, capture_output=True, text=True, check=True
    )

    assert result.stdout.strip().splitlines()[-1] == "False"


def test_local_store_without_seed_starts_empty(tmp_path):
    store = LocalEntityStore(tmp_path / "store.json", seed=False)

    assert store.initialize() == ProvisioningStatus.READY
    assert store.list_users() == []
    assert store.list_classes() == []


def test_local_store_seeds_only_once(tmp_path):
    path = tmp_path / "store.json"
    store = LocalEntityStore(path)
    store.initialize()
    store.delete_user("prof1")

    LocalEntityStore(path).initialize()

    assert LocalEntityStore(path).get_user("prof1") is None


def test_local_store_keeps_camel_case_records(local_store):
    local_store.append_event(make_event("prof1", 5, action_id="p_help"))

    raw = local_store.kv.get(config.EVENTS_KEY)[0]

    assert raw["targetUserId"] == "prof1"
    assert raw["actionId"] == "p_help"
    assert "dateTime" in raw


def test_corrupted_local_file_raises_store_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = LocalEntityStore(path)

    with pytest.raises(StoreError):
        store.list_users()
