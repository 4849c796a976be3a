from datetime import datetime

import pytest
import pytz
from fastapi.testclient import TestClient

from conftest import auth_headers, make_event, make_user
from evalecole.api.routes import rankings as rankings_route
from evalecole.app import app
from evalecole.core.database import build_engine
from evalecole.core.dependencies import get_store, get_submission_guard
from evalecole.schemas.user import UserRole
from evalecole.utils.sql_store import SqlEntityStore
from evalecole.utils.submission import SubmissionGuard


def confirm(client, method, url, headers, **kwargs):
    """Run a destructive call through both confirmation steps."""
    first = client.request(method, url, headers=headers, **kwargs)
    assert first.status_code == 409
    token = first.json()["confirmToken"]
    return client.request(method, url, headers=headers, params={"confirm_token": token}, **kwargs)


# --- Infrastructure ---


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_unprovisioned_database_answers_503():
    store = SqlEntityStore(build_engine("sqlite://"))
    app.dependency_overrides[get_store] = lambda: store
    try:
        client = TestClient(app)

        response = client.post("/api/auth/login", json={"username": "Paul", "password": "Paul2025."})
        assert response.status_code == 503
        assert response.json()["setupUrl"] == "/api/setup/script"

        status = client.get("/api/setup/status").json()
        assert status["status"] == "needs_provisioning"

        script = client.get("/api/setup/script")
        assert script.status_code == 200
        assert "create table public.users" in script.text
    finally:
        app.dependency_overrides.clear()


def test_setup_status_when_ready(client):
    assert client.get("/api/setup/status").json()["status"] == "ready"


# --- Authentication ---


def test_login_returns_token_and_user(client):
    response = client.post("/api/auth/login", json={"username": "Paul", "password": "Paul2025."})

    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["id"] == "u1"
    assert body["user"]["role"] == "Admin"
    assert "password" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.json()["fullName"] == "Administrateur"


def test_login_failure(client):
    response = client.post("/api/auth/login", json={"username": "Paul", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Identifiant ou mot de passe incorrect."


def test_requests_without_token_are_refused(client):
    assert client.get("/api/dashboard").status_code in (401, 403)


def test_token_of_deactivated_user_is_refused(client, store):
    student = store.get_user("eleve1")
    store.upsert_user(student.model_copy(update={"active": False}))

    response = client.get("/api/auth/me", headers=auth_headers("eleve1"))

    assert response.status_code == 401


def test_menu(client, student_headers):
    menu = client.get("/api/auth/menu", headers=student_headers).json()

    assert menu == {
        "dashboard": True,
        "my_class": True,
        "add_points": True,
        "rankings": True,
        "user_management": False,
    }


# --- Route permissions ---


def test_unauthorized_view_redirects_to_dashboard(client, student_headers):
    response = client.get("/api/admin/users", headers=student_headers, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/api/dashboard"


def test_accounting_is_read_only(client, store):
    store.upsert_user(make_user("acc1", UserRole.ACCOUNTING, full_name="Mme Compta"))
    headers = auth_headers("acc1")

    response = client.post(
        "/api/points",
        json={"targetUserId": "prof1", "actionId": "p_help"},
        headers=headers,
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert store.list_events() == []
    assert client.get("/api/rankings", headers=headers).status_code == 200


# --- Views ---


def test_dashboard_for_student(client, student_headers):
    stats = client.get("/api/dashboard", headers=student_headers).json()

    assert stats == {
        "actionsThisWeek": 0,
        "myScoreThisWeek": None,
        "leaderOfTheWeek": "Aucune donnée",
    }


def test_my_class_for_student(client, student_headers):
    roster = client.get("/api/my-class", headers=student_headers).json()

    assert roster["title"] == "Ma Classe: 6ème A"
    assert [s["id"] for s in roster["students"]] == ["eleve1"]
    assert {t["id"] for t in roster["teachers"]} == {"prof1", "prof2"}


def test_student_targets_and_search(client, student_headers):
    targets = client.get("/api/points/targets", headers=student_headers).json()
    assert {t["id"] for t in targets} == {"prof1", "prof2", "surv1", "dir1"}

    found = client.get("/api/points/targets", params={"search": "durand"}, headers=student_headers).json()
    assert [t["id"] for t in found] == ["prof2"]


def test_actions_for_target(client, student_headers):
    choices = client.get("/api/points/targets/surv1/actions", headers=student_headers).json()

    assert [a["id"] for a in choices["actions"]][:3] == ["sd_help", "sd_justice", "sd_protect"]
    assert choices["customActionId"] == "custom_action"
    assert choices["customPointChoices"] == [-5, -4, -3, -2, -1, 1, 2, 3, 4, 5]


def test_actions_for_invisible_target(client, student_headers):
    response = client.get("/api/points/targets/u1/actions", headers=student_headers)

    assert response.status_code == 404


# --- Submitting points ---


def test_submit_then_rank(client, student_headers):
    response = client.post(
        "/api/points",
        json={"targetUserId": "prof1", "actionId": "p_help"},
        headers=student_headers,
    )
    assert response.status_code == 201
    event = response.json()
    assert event["points"] == 5
    assert event["studentId"] == "eleve1"

    rankings = client.get("/api/rankings", headers=student_headers).json()
    assert rankings["all"][0]["user"]["id"] == "prof1"
    assert rankings["all"][0]["score"] == 5
    assert rankings["top"][0] == {"name": "M. Dupont", "score": 5}
    assert [e["user"]["id"] for e in rankings["direction"]] == ["dir1"]
    assert len(rankings["all"]) == 4

    dashboard = client.get("/api/dashboard", headers=student_headers).json()
    assert dashboard["actionsThisWeek"] == 1
    assert dashboard["leaderOfTheWeek"] == "M. Dupont"


def test_custom_submission_and_drill_down(client, student_headers):
    client.post(
        "/api/points",
        json={"targetUserId": "surv1", "actionId": "custom_action", "customLabel": "Aide", "customPoints": 3},
        headers=student_headers,
    )
    client.post(
        "/api/points",
        json={"targetUserId": "surv1", "actionId": "sd_ignore"},
        headers=student_headers,
    )

    detail = client.get("/api/rankings/surv1", headers=student_headers).json()

    assert detail["weeklyScore"] == 0
    assert detail["lifetimeScore"] == 0
    assert [(e["label"], e["points"]) for e in detail["highlights"]["positives"]] == [("Aide", 3)]
    assert [(e["label"], e["points"]) for e in detail["highlights"]["negatives"]] == [("M'a ignoré", -3)]


def test_rankings_use_one_week_for_every_board(client, student_headers, store, monkeypatch):
    # Sunday 23:59:59 in Paris
    late_sunday = datetime(2024, 5, 19, 21, 59, 59, tzinfo=pytz.utc)
    calls = []

    class FrozenDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            calls.append(tz)
            return late_sunday

    monkeypatch.setattr(rankings_route, "datetime", FrozenDatetime)
    store.append_event(make_event("prof1", 5, when=late_sunday))

    body = client.get("/api/rankings", headers=student_headers).json()

    assert len(calls) == 1
    assert body["weekStart"].startswith("2024-05-13T00:00:00")
    assert body["all"][0]["score"] == 5
    assert body["teachers"][0]["score"] == 5


def test_drill_down_only_for_adults(client, student_headers):
    assert client.get("/api/rankings/eleve1", headers=student_headers).status_code == 404


@pytest.mark.parametrize(
    "body",
    [
        {"targetUserId": "surv1", "actionId": "p_help"},
        {"targetUserId": "surv1", "actionId": "custom_action", "customLabel": "Oups", "customPoints": 0},
        {"targetUserId": "surv1", "actionId": "custom_action", "customPoints": 2},
    ],
)
def test_invalid_submission(client, student_headers, store, body):
    response = client.post("/api/points", json=body, headers=student_headers)

    assert response.status_code == 400
    assert store.list_events() == []


def test_rapid_resubmission_answers_429(client, student_headers, store):
    slow_guard = SubmissionGuard(confirmation_seconds=60)
    app.dependency_overrides[get_submission_guard] = lambda: slow_guard
    body = {"targetUserId": "prof1", "actionId": "p_nice"}

    assert client.post("/api/points", json=body, headers=student_headers).status_code == 201
    assert client.post("/api/points", json=body, headers=student_headers).status_code == 429
    assert len(store.list_events()) == 1


# --- Administration ---


def test_user_administration(client, admin_headers):
    created = client.post(
        "/api/admin/users",
        json={
            "fullName": "M. Martin",
            "username": "martin",
            "password": "secret",
            "role": "Professeur",
            "assignedClassIds": ["c5a", "c5a"],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    teacher = created.json()
    assert teacher["username"] == ""
    assert teacher["assignedClassIds"] == ["c5a"]

    updated = client.put(
        f"/api/admin/users/{teacher['id']}",
        json={"fullName": "M. Martin", "role": "Professeur", "active": False},
        headers=admin_headers,
    )
    assert updated.json()["active"] is False

    listing = client.get("/api/admin/users", headers=admin_headers).json()
    assert teacher["id"] in [u["id"] for u in listing["staff"]]
    assert [u["id"] for u in listing["students"]] == ["eleve1"]
    assert [u["id"] for u in listing["others"]] == ["u1"]


def test_editing_a_student_keeps_their_password(client, admin_headers):
    listing = client.get("/api/admin/users", headers=admin_headers).json()
    student = next(u for u in listing["students"] if u["id"] == "eleve1")
    form = {
        "fullName": student["fullName"],
        "username": student["username"],
        "role": student["role"],
        "active": student["active"],
        "classId": "c6b",
    }

    updated = client.put("/api/admin/users/eleve1", json=form, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["classId"] == "c6b"

    old = client.post("/api/auth/login", json={"username": "eleve1", "password": "123"})
    blank = client.post("/api/auth/login", json={"username": "eleve1", "password": ""})
    assert old.status_code == 200
    assert blank.status_code == 401


def test_update_unknown_user(client, admin_headers):
    response = client.put(
        "/api/admin/users/ghost",
        json={"fullName": "X", "role": "Surveillant"},
        headers=admin_headers,
    )

    assert response.status_code == 404


def test_delete_user_needs_confirmation(client, admin_headers, store):
    first = client.delete("/api/admin/users/prof2", headers=admin_headers)
    assert first.status_code == 409
    assert store.get_user("prof2") is not None

    response = confirm(client, "DELETE", "/api/admin/users/prof2", admin_headers)

    assert response.status_code == 204
    assert store.get_user("prof2") is None


def test_bad_confirmation_token_executes_nothing(client, admin_headers, store):
    response = client.delete(
        "/api/admin/users/prof2", params={"confirm_token": "forged"}, headers=admin_headers
    )

    assert response.status_code == 409
    assert store.get_user("prof2") is not None


def test_class_administration(client, admin_headers, student_headers, store):
    created = client.post("/api/admin/classes", json={"name": "  Atelier "}, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["name"] == "Atelier"

    response = confirm(client, "DELETE", "/api/admin/classes/c6a", admin_headers)
    assert response.status_code == 204

    # The student keeps the dangling class id and shows as unassigned
    assert store.get_user("eleve1").class_id == "c6a"
    roster = client.get("/api/my-class", headers=student_headers).json()
    assert roster["title"] == "Ma Classe"


def test_blank_class_name(client, admin_headers):
    response = client.post("/api/admin/classes", json={"name": "   "}, headers=admin_headers)

    assert response.status_code == 400


def test_delete_unknown_class(client, admin_headers):
    assert client.delete("/api/admin/classes/nope", headers=admin_headers).status_code == 404


def test_score_adjustment(client, admin_headers):
    adjusted = client.post(
        "/api/admin/points/prof1/adjust", json={"newTotal": 7}, headers=admin_headers
    ).json()
    assert adjusted["previousTotal"] == 0
    assert adjusted["event"]["points"] == 7
    assert adjusted["event"]["createdById"] == "admin_adjust"

    again = client.post(
        "/api/admin/points/prof1/adjust", json={"newTotal": 7}, headers=admin_headers
    ).json()
    assert again["previousTotal"] == 7
    assert again["event"] is None

    score = client.get("/api/admin/points/prof1", headers=admin_headers).json()
    assert score == {"userId": "prof1", "score": 7}


def test_point_resets(client, admin_headers, store):
    for target in ("prof1", "surv1"):
        client.post(
            f"/api/admin/points/{target}/adjust", json={"newTotal": 4}, headers=admin_headers
        )

    assert confirm(client, "DELETE", "/api/admin/points/prof1", admin_headers).status_code == 204
    assert [e.target_user_id for e in store.list_events()] == ["surv1"]

    assert confirm(client, "DELETE", "/api/admin/points", admin_headers).status_code == 204
    assert store.list_events() == []
