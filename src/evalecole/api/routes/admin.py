"""Administration routes: user management and score administration.

Every endpoint needs the user management view. Deletions and resets are
destructive and go through a two-step confirmation: the first call answers
409 with a ``confirmToken``, repeating the call with ``?confirm_token=``
executes it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from evalecole.api.routes.auth import require_route
from evalecole.core.dependencies import (
    ConfirmationManagerDep,
    PointManagerDep,
    UserManagerDep,
)
from evalecole.core.session import SessionContext
from evalecole.schemas.ranking import AdjustScoreRequest, AdjustScoreResponse, ScoreInfo
from evalecole.schemas.user import (
    STAFF_ROLES,
    SaveUserRequest,
    UserInfo,
    UserListResponse,
    UserRole,
)
from evalecole.utils.visibility import Route

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

AdminSession = Depends(require_route(Route.USER_MANAGEMENT))

ConfirmToken = Query(default=None, description="Token returned by the first call.")


# --- Users ---


@router.get("/users", response_model=UserListResponse, summary="Lister les utilisateurs")
def list_users(
    user_manager: UserManagerDep,
    session: SessionContext = AdminSession,
) -> UserListResponse:
    """Users split into the students tab, the staff tab and everyone else."""
    students, staff, others = [], [], []
    for user in user_manager.list_users():
        info = UserInfo.from_user(user)
        if user.role == UserRole.STUDENT:
            students.append(info)
        elif user.role in STAFF_ROLES:
            staff.append(info)
        else:
            others.append(info)
    return UserListResponse(students=students, staff=staff, others=others)


@router.post(
    "/users",
    response_model=UserInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un utilisateur",
)
def create_user(
    req: SaveUserRequest,
    user_manager: UserManagerDep,
    session: SessionContext = AdminSession,
) -> UserInfo:
    return UserInfo.from_user(user_manager.save_user(req))


@router.put("/users/{user_id}", response_model=UserInfo, summary="Modifier un utilisateur")
def update_user(
    user_id: str,
    req: SaveUserRequest,
    user_manager: UserManagerDep,
    session: SessionContext = AdminSession,
) -> UserInfo:
    return UserInfo.from_user(user_manager.save_user(req, user_id=user_id))


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un utilisateur",
)
def delete_user(
    user_id: str,
    user_manager: UserManagerDep,
    confirmations: ConfirmationManagerDep,
    confirm_token: Optional[str] = ConfirmToken,
    session: SessionContext = AdminSession,
) -> None:
    """Delete a user; the points they gave or received are kept.

    Raises:
        UserNotFoundError: If the user does not exist.
        ConfirmationRequiredError: Until called with a valid token.
    """
    user = user_manager.get_user(user_id)
    confirmations.require(
        "delete_user",
        user_id,
        confirm_token,
        f"Supprimer l'utilisateur {user.full_name} ?",
    )
    user_manager.delete_user(user_id)


# --- Scores ---


@router.get("/points/{user_id}", response_model=ScoreInfo, summary="Score total")
def get_score(
    user_id: str,
    user_manager: UserManagerDep,
    point_manager: PointManagerDep,
    session: SessionContext = AdminSession,
) -> ScoreInfo:
    user = user_manager.get_user(user_id)
    return ScoreInfo(user_id=user.id, score=point_manager.current_score(user))


@router.post(
    "/points/{user_id}/adjust",
    response_model=AdjustScoreResponse,
    summary="Ajuster le score total",
)
def adjust_score(
    user_id: str,
    req: AdjustScoreRequest,
    user_manager: UserManagerDep,
    point_manager: PointManagerDep,
    session: SessionContext = AdminSession,
) -> AdjustScoreResponse:
    """Set a user's lifetime score by appending one compensating event.

    ``event`` is null when the score already equals ``newTotal``.
    """
    user = user_manager.get_user(user_id)
    previous, event = point_manager.adjust_score(user, req.new_total)
    return AdjustScoreResponse(
        user_id=user.id,
        previous_total=previous,
        new_total=req.new_total,
        event=event,
    )


@router.delete(
    "/points/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Réinitialiser les points d'un utilisateur",
)
def reset_user_points(
    user_id: str,
    user_manager: UserManagerDep,
    point_manager: PointManagerDep,
    confirmations: ConfirmationManagerDep,
    confirm_token: Optional[str] = ConfirmToken,
    session: SessionContext = AdminSession,
) -> None:
    user = user_manager.get_user(user_id)
    confirmations.require(
        "reset_points",
        user_id,
        confirm_token,
        f"Effacer tous les points reçus par {user.full_name} ?",
    )
    point_manager.reset_target(user_id)


@router.delete(
    "/points",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Réinitialiser tous les points",
)
def reset_all_points(
    point_manager: PointManagerDep,
    confirmations: ConfirmationManagerDep,
    confirm_token: Optional[str] = ConfirmToken,
    session: SessionContext = AdminSession,
) -> None:
    confirmations.require(
        "reset_all_points",
        "*",
        confirm_token,
        "Effacer l'historique de points de tout l'établissement ?",
    )
    point_manager.reset_all()
