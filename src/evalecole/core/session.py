"""Per-request session object.

The authenticated identity is resolved once per request and handed to the
route as a ``SessionContext``. Nothing else holds the current user.
"""

from dataclasses import dataclass
from typing import Dict

from evalecole.core.exceptions import RouteNotPermittedError
from evalecole.schemas.user import User, UserRole
from evalecole.utils.visibility import Route, can_access, menu_for


@dataclass(frozen=True)
class SessionContext:
    user: User

    @property
    def role(self) -> UserRole:
        return self.user.role

    def can(self, route: Route) -> bool:
        return can_access(self.user.role, route)

    def require(self, route: Route) -> None:
        if not self.can(route):
            raise RouteNotPermittedError(route.value, self.user.role.value)

    def menu(self) -> Dict[str, bool]:
        return menu_for(self.user.role)
