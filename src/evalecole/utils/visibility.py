"""Visibility rules.

Pure functions deciding who may evaluate whom, which actions a target can
receive, which views a role may open, and who appears in a class roster.
They work on already-fetched collections and never touch the store; empty
collections and dangling references are valid input.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from evalecole import config
from evalecole.schemas.action import ActionDefinition
from evalecole.schemas.class_schema import ClassGroup, ClassRoster
from evalecole.schemas.user import User, UserInfo, UserRole
from evalecole.utils.action_catalog import DEFAULT_CATALOG, ActionCatalog


class Route(str, Enum):
    DASHBOARD = "dashboard"
    MY_CLASS = "my_class"
    ADD_POINTS = "add_points"
    RANKINGS = "rankings"
    USER_MANAGEMENT = "user_management"


ROUTE_PERMISSIONS: Dict[UserRole, frozenset] = {
    UserRole.STUDENT: frozenset({Route.DASHBOARD, Route.MY_CLASS, Route.ADD_POINTS, Route.RANKINGS}),
    UserRole.TEACHER: frozenset({Route.DASHBOARD, Route.MY_CLASS, Route.ADD_POINTS, Route.RANKINGS}),
    UserRole.SUPERVISOR: frozenset({Route.DASHBOARD, Route.ADD_POINTS, Route.RANKINGS}),
    UserRole.DIRECTION: frozenset({Route.DASHBOARD, Route.ADD_POINTS, Route.RANKINGS}),
    # Accounting is read-only
    UserRole.ACCOUNTING: frozenset({Route.DASHBOARD, Route.RANKINGS}),
    UserRole.ADMIN: frozenset({Route.DASHBOARD, Route.ADD_POINTS, Route.RANKINGS, Route.USER_MANAGEMENT}),
}


def can_access(role: UserRole, route: Route) -> bool:
    return route in ROUTE_PERMISSIONS.get(role, frozenset())


def menu_for(role: UserRole) -> Dict[str, bool]:
    """Every route with whether ``role`` may open it, in menu order."""
    return {route.value: can_access(role, route) for route in Route}


def eligible_targets(
    actor: User, users: Iterable[User], search: Optional[str] = None
) -> List[User]:
    """Adults the actor may evaluate.

    Students only see the teachers assigned to their own class, plus every
    supervisor and member of the direction. Other actors see all active
    adults.

    Args:
        actor: The user logging the evaluation.
        users: The full user collection.
        search: Optional case-insensitive substring of the full name.

    Returns:
        Matching users in collection order. May be empty.
    """
    targets = [u for u in users if u.active and u.is_adult]

    if actor.is_student:
        targets = [
            u for u in targets
            if u.role != UserRole.TEACHER
            or (actor.class_id is not None and actor.class_id in (u.assigned_class_ids or []))
        ]

    if search:
        needle = search.lower()
        targets = [u for u in targets if needle in u.full_name.lower()]

    return targets


def eligible_actions(
    target: User, catalog: ActionCatalog = DEFAULT_CATALOG
) -> List[ActionDefinition]:
    """Catalog actions the target may receive, in declaration order."""
    return catalog.for_role(target.role)


def resolve_class_name(class_id: Optional[str], classes: Iterable[ClassGroup]) -> str:
    if class_id:
        for class_group in classes:
            if class_group.id == class_id:
                return class_group.name
    return config.UNASSIGNED_LABEL


def resolve_user_name(user_id: Optional[str], users: Iterable[User]) -> str:
    if user_id:
        for user in users:
            if user.id == user_id:
                return user.full_name
    return config.UNKNOWN_LABEL


def class_roster(
    actor: User, users: List[User], classes: List[ClassGroup]
) -> ClassRoster:
    """Build the "My Class" view.

    A student sees the classmates of their class and the teachers assigned
    to it. A teacher sees the students of every class assigned to them.
    Any other role gets an empty roster.
    """
    students: List[User] = []
    teachers: List[User] = []
    title = "Ma Classe"
    class_id = None

    if actor.is_student and actor.class_id:
        class_id = actor.class_id
        students = [u for u in users if u.is_student and u.class_id == class_id]
        teachers = [
            u for u in users
            if u.role == UserRole.TEACHER and class_id in (u.assigned_class_ids or [])
        ]
        name = resolve_class_name(class_id, classes)
        if name != config.UNASSIGNED_LABEL:
            title = f"Ma Classe: {name}"
    elif actor.role == UserRole.TEACHER:
        assigned = set(actor.assigned_class_ids or [])
        students = [u for u in users if u.is_student and u.class_id in assigned]
        names = [c.name for c in classes if c.id in assigned]
        title = f"Mes Classes: {', '.join(names)}"

    return ClassRoster(
        title=title,
        class_id=class_id,
        students=[UserInfo.from_user(u) for u in students],
        teachers=[UserInfo.from_user(u) for u in teachers],
    )
