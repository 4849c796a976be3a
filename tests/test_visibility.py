import pytest

from conftest import make_user
from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.user import UserRole
from evalecole.utils.visibility import (
    Route,
    can_access,
    class_roster,
    eligible_actions,
    eligible_targets,
    menu_for,
    resolve_class_name,
    resolve_user_name,
)

CLASSES = [ClassGroup(id="c6a", name="6ème A"), ClassGroup(id="c5a", name="5ème A")]


@pytest.fixture
def users():
    return [
        make_user("u1", UserRole.ADMIN),
        make_user("prof1", UserRole.TEACHER, full_name="M. Dupont", assigned_class_ids=["c6a", "c6b"]),
        make_user("prof2", UserRole.TEACHER, full_name="Mme Durand", assigned_class_ids=["c6a"]),
        make_user("prof3", UserRole.TEACHER, full_name="M. Martin", assigned_class_ids=["c5a"]),
        make_user("prof4", UserRole.TEACHER, full_name="M. Sans Classe"),
        make_user("old", UserRole.TEACHER, full_name="M. Parti", active=False, assigned_class_ids=["c6a"]),
        make_user("surv1", UserRole.SUPERVISOR, full_name="Mme La Surveillante"),
        make_user("dir1", UserRole.DIRECTION, full_name="M. Le Directeur"),
        make_user("acc1", UserRole.ACCOUNTING, full_name="Mme Compta"),
        make_user("eleve1", UserRole.STUDENT, full_name="Lucas", class_id="c6a"),
        make_user("eleve2", UserRole.STUDENT, full_name="Emma", class_id="c6a", active=False),
        make_user("eleve3", UserRole.STUDENT, full_name="Noah", class_id="c5a"),
    ]


def by_id(users, user_id):
    return next(u for u in users if u.id == user_id)


def test_student_sees_own_teachers_and_all_supervision(users):
    targets = eligible_targets(by_id(users, "eleve1"), users)

    assert [u.id for u in targets] == ["prof1", "prof2", "surv1", "dir1"]


def test_student_without_class_sees_no_teacher(users):
    student = make_user("new", UserRole.STUDENT)

    assert [u.id for u in eligible_targets(student, users)] == ["surv1", "dir1"]


@pytest.mark.parametrize("actor_id", ["u1", "prof1", "surv1", "dir1"])
def test_other_actors_see_every_active_adult(users, actor_id):
    targets = eligible_targets(by_id(users, actor_id), users)

    assert [u.id for u in targets] == ["prof1", "prof2", "prof3", "prof4", "surv1", "dir1"]


def test_search_is_case_insensitive_substring(users):
    targets = eligible_targets(by_id(users, "u1"), users, search="dU")

    assert [u.id for u in targets] == ["prof1", "prof2"]


def test_no_targets_is_a_valid_result(users):
    assert eligible_targets(by_id(users, "u1"), [], search=None) == []
    assert eligible_targets(by_id(users, "u1"), users, search="zzz") == []


def test_eligible_actions_by_target_role(users):
    teacher_actions = eligible_actions(by_id(users, "prof1"))
    supervisor_actions = eligible_actions(by_id(users, "surv1"))

    assert [a.id for a in teacher_actions] == [
        "p_help", "p_nice", "p_absent", "p_rude", "p_mock", "p_late", "p_homework",
    ]
    assert all(a.id.startswith("sd_") for a in supervisor_actions)
    assert [a.id for a in eligible_actions(by_id(users, "dir1"))] == [a.id for a in supervisor_actions]
    assert eligible_actions(by_id(users, "eleve1")) == []
    assert eligible_actions(by_id(users, "acc1")) == []


@pytest.mark.parametrize(
    "role,route,allowed",
    [
        (UserRole.STUDENT, Route.MY_CLASS, True),
        (UserRole.STUDENT, Route.USER_MANAGEMENT, False),
        (UserRole.TEACHER, Route.MY_CLASS, True),
        (UserRole.SUPERVISOR, Route.MY_CLASS, False),
        (UserRole.DIRECTION, Route.ADD_POINTS, True),
        (UserRole.ACCOUNTING, Route.ADD_POINTS, False),
        (UserRole.ACCOUNTING, Route.RANKINGS, True),
        (UserRole.ADMIN, Route.USER_MANAGEMENT, True),
        (UserRole.ADMIN, Route.MY_CLASS, False),
    ],
)
def test_route_permissions(role, route, allowed):
    assert can_access(role, route) is allowed


def test_every_role_has_dashboard():
    for role in UserRole:
        assert menu_for(role)["dashboard"] is True


def test_menu_lists_every_route():
    assert list(menu_for(UserRole.ACCOUNTING)) == [r.value for r in Route]


def test_student_roster(users):
    roster = class_roster(by_id(users, "eleve1"), users, CLASSES)

    assert roster.title == "Ma Classe: 6ème A"
    assert roster.class_id == "c6a"
    # Inactive classmates are listed, with their flag
    assert [(s.id, s.active) for s in roster.students] == [("eleve1", True), ("eleve2", False)]
    assert [t.id for t in roster.teachers] == ["prof1", "prof2", "old"]


def test_student_roster_with_deleted_class(users):
    classes = [c for c in CLASSES if c.id != "c6a"]

    roster = class_roster(by_id(users, "eleve1"), users, classes)

    assert roster.title == "Ma Classe"
    assert [s.id for s in roster.students] == ["eleve1", "eleve2"]


def test_teacher_roster_lists_students_of_assigned_classes(users):
    roster = class_roster(by_id(users, "prof1"), users, CLASSES)

    assert roster.title == "Mes Classes: 6ème A"
    assert [s.id for s in roster.students] == ["eleve1", "eleve2"]
    assert roster.teachers == []


def test_other_roles_get_an_empty_roster(users):
    roster = class_roster(by_id(users, "surv1"), users, CLASSES)

    assert roster.students == []
    assert roster.teachers == []


def test_dangling_references_resolve_to_fallbacks(users):
    assert resolve_class_name("c6a", CLASSES) == "6ème A"
    assert resolve_class_name("gone", CLASSES) == "unassigned"
    assert resolve_class_name(None, CLASSES) == "unassigned"
    assert resolve_user_name("prof1", users) == "M. Dupont"
    assert resolve_user_name("gone", users) == "unknown"
