"""Predefined action catalog.

The catalog is code-defined and immutable. Consumers resolve the actions of a
target through ``ActionCatalog.for_role`` / ``for_target_role`` instead of
scanning the list themselves.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from evalecole.schemas.action import ActionDefinition, ActionType, TargetRole
from evalecole.schemas.user import UserRole

# Choice offered after the catalog entries; never part of the catalog
CUSTOM_ACTION_ID = "custom_action"

_TEACHER = frozenset({TargetRole.TEACHER})
_SUPERVISION = frozenset({TargetRole.SUPERVISOR, TargetRole.DIRECTION})

PREDEFINED_ACTIONS: Tuple[ActionDefinition, ...] = (
    # Teachers - positive
    ActionDefinition(id="p_help", label="M'a aidé", target_roles=_TEACHER,
                     type=ActionType.POSITIVE, default_points=5),
    ActionDefinition(id="p_nice", label="A été sympa", target_roles=_TEACHER,
                     type=ActionType.POSITIVE, default_points=3),
    ActionDefinition(id="p_absent", label="N'a pas été là", target_roles=_TEACHER,
                     type=ActionType.POSITIVE, default_points=10),
    # Teachers - negative
    ActionDefinition(id="p_rude", label="M'a envoyé chier", target_roles=_TEACHER,
                     type=ActionType.NEGATIVE, default_points=-10),
    ActionDefinition(id="p_mock", label="M'a ridiculisé", target_roles=_TEACHER,
                     type=ActionType.NEGATIVE, default_points=-5),
    ActionDefinition(id="p_late", label="Arrivé en retard", target_roles=_TEACHER,
                     type=ActionType.NEGATIVE, default_points=-2),
    ActionDefinition(id="p_homework", label="A donné des devoirs / évaluations",
                     target_roles=_TEACHER, type=ActionType.NEGATIVE, default_points=-3),
    # Supervisors & direction - positive
    ActionDefinition(id="sd_help", label="M'a aidé", target_roles=_SUPERVISION,
                     type=ActionType.POSITIVE, default_points=5),
    ActionDefinition(id="sd_justice", label="M'a rendu justice", target_roles=_SUPERVISION,
                     type=ActionType.POSITIVE, default_points=5),
    ActionDefinition(id="sd_protect", label="M'a protégé", target_roles=_SUPERVISION,
                     type=ActionType.POSITIVE, default_points=5),
    # Supervisors & direction - negative
    ActionDefinition(id="sd_belittle", label="M'a rabaissé", target_roles=_SUPERVISION,
                     type=ActionType.NEGATIVE, default_points=-5),
    ActionDefinition(id="sd_ignore", label="M'a ignoré", target_roles=_SUPERVISION,
                     type=ActionType.NEGATIVE, default_points=-3),
    ActionDefinition(id="sd_speak_bad", label="M'a mal parlé", target_roles=_SUPERVISION,
                     type=ActionType.NEGATIVE, default_points=-5),
    ActionDefinition(id="sd_punish", label="Punition injuste", target_roles=_SUPERVISION,
                     type=ActionType.NEGATIVE, default_points=-10),
)

ROLE_TO_TARGET_ROLE: Mapping[UserRole, TargetRole] = MappingProxyType({
    UserRole.TEACHER: TargetRole.TEACHER,
    UserRole.SUPERVISOR: TargetRole.SUPERVISOR,
    UserRole.DIRECTION: TargetRole.DIRECTION,
})


class ActionCatalog:
    """Read-only view over a tuple of action definitions."""

    def __init__(self, actions: Tuple[ActionDefinition, ...] = PREDEFINED_ACTIONS):
        self._actions = tuple(actions)
        self._by_id: Dict[str, ActionDefinition] = {a.id: a for a in self._actions}
        by_tag: Dict[TargetRole, Tuple[ActionDefinition, ...]] = {}
        for tag in TargetRole:
            by_tag[tag] = tuple(a for a in self._actions if tag in a.target_roles)
        self._by_tag = MappingProxyType(by_tag)

    def all(self) -> List[ActionDefinition]:
        return list(self._actions)

    def get(self, action_id: str) -> Optional[ActionDefinition]:
        return self._by_id.get(action_id)

    def for_target_role(self, tag: TargetRole) -> List[ActionDefinition]:
        """Actions a target of ``tag`` may receive, in declaration order."""
        return list(self._by_tag[tag])

    def for_role(self, role: UserRole) -> List[ActionDefinition]:
        """Actions for a user role; non-adult roles receive none."""
        tag = ROLE_TO_TARGET_ROLE.get(role)
        if tag is None:
            return []
        return self.for_target_role(tag)

    def label_for(self, action_id: Optional[str]) -> Optional[str]:
        action = self._by_id.get(action_id) if action_id else None
        return action.label if action else None


DEFAULT_CATALOG = ActionCatalog()
