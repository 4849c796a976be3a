"""Point submission routes.

An evaluation is built in two lookups (who, then what) and one write. The
target and action are checked again on submit, so a stale client cannot
evaluate someone it no longer sees.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from evalecole import config
from evalecole.api.routes.auth import require_route
from evalecole.core.dependencies import PointManagerDep, StoreDep
from evalecole.core.exceptions import UserNotFoundError
from evalecole.core.session import SessionContext
from evalecole.schemas.action import ActionChoices
from evalecole.schemas.point_event import PointEvent, PointSubmissionRequest
from evalecole.schemas.user import UserInfo
from evalecole.utils.action_catalog import CUSTOM_ACTION_ID
from evalecole.utils.visibility import Route, eligible_actions, eligible_targets

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/points", tags=["Points"])


@router.get("/targets", response_model=List[UserInfo], summary="Adultes évaluables")
def list_targets(
    store: StoreDep,
    search: Optional[str] = Query(default=None, description="Part of the full name."),
    session: SessionContext = Depends(require_route(Route.ADD_POINTS)),
) -> List[UserInfo]:
    targets = eligible_targets(session.user, store.list_users(), search)
    return [UserInfo.from_user(u) for u in targets]


@router.get(
    "/targets/{user_id}/actions",
    response_model=ActionChoices,
    summary="Actions applicables",
)
def list_actions(
    user_id: str,
    store: StoreDep,
    session: SessionContext = Depends(require_route(Route.ADD_POINTS)),
) -> ActionChoices:
    """Catalog actions of the target, then the custom choice.

    Raises:
        UserNotFoundError: If the target is not among the actor's targets.
    """
    targets = eligible_targets(session.user, store.list_users())
    target = next((u for u in targets if u.id == user_id), None)
    if target is None:
        raise UserNotFoundError(user_id)
    return ActionChoices(
        target_user_id=target.id,
        actions=eligible_actions(target),
        custom_action_id=CUSTOM_ACTION_ID,
        custom_point_choices=list(config.CUSTOM_POINT_CHOICES),
    )


@router.post(
    "",
    response_model=PointEvent,
    status_code=status.HTTP_201_CREATED,
    summary="Ajouter ou retirer des points",
)
def submit_points(
    req: PointSubmissionRequest,
    point_manager: PointManagerDep,
    session: SessionContext = Depends(require_route(Route.ADD_POINTS)),
) -> PointEvent:
    """Append one evaluation by the current user.

    Raises:
        InvalidSubmissionError: Target not eligible, action not applicable, or
            custom details missing (answered with 400).
        SubmissionInProgressError: Submitted again within the confirmation
            delay (answered with 429).
    """
    return point_manager.submit(session.user, req)
