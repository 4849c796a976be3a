"""Action catalog schema definitions."""

from enum import Enum
from typing import FrozenSet, List

from pydantic import ConfigDict

from evalecole.schemas.common import CamelModel


class ActionType(str, Enum):
    POSITIVE = "Positif"
    NEGATIVE = "Négatif"


class TargetRole(str, Enum):
    """Tag naming which adults may receive an action."""

    TEACHER = "Professeur"
    SUPERVISOR = "Surveillant"
    DIRECTION = "Direction"


class ActionDefinition(CamelModel):
    """Predefined evaluable action. Never created or edited at runtime."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    target_roles: FrozenSet[TargetRole]
    type: ActionType
    default_points: int


class ActionChoices(CamelModel):
    """Actions offered for one target, followed by the custom choice."""

    target_user_id: str
    actions: List[ActionDefinition]
    custom_action_id: str
    custom_point_choices: List[int]
