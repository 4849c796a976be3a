"""Class management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from evalecole.api.routes.auth import require_route
from evalecole.core.dependencies import ClassManagerDep, ConfirmationManagerDep
from evalecole.core.session import SessionContext
from evalecole.schemas.class_schema import ClassGroup, CreateClassRequest
from evalecole.utils.visibility import Route

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/classes", tags=["Class"])


@router.get("", response_model=List[ClassGroup], summary="Lister les classes")
def list_classes(
    class_manager: ClassManagerDep,
    session: SessionContext = Depends(require_route(Route.USER_MANAGEMENT)),
) -> List[ClassGroup]:
    return class_manager.list_classes()


@router.post(
    "",
    response_model=ClassGroup,
    status_code=status.HTTP_201_CREATED,
    summary="Créer une classe",
)
def create_class(
    req: CreateClassRequest,
    class_manager: ClassManagerDep,
    session: SessionContext = Depends(require_route(Route.USER_MANAGEMENT)),
) -> ClassGroup:
    return class_manager.create_class(req.name)


@router.delete(
    "/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une classe",
)
def delete_class(
    class_id: str,
    class_manager: ClassManagerDep,
    confirmations: ConfirmationManagerDep,
    confirm_token: Optional[str] = Query(default=None),
    session: SessionContext = Depends(require_route(Route.USER_MANAGEMENT)),
) -> None:
    """Delete a class.

    Students and teachers referencing it are not modified; they show as
    unassigned until edited.
    """
    class_group = class_manager.get_class(class_id)
    confirmations.require(
        "delete_class",
        class_id,
        confirm_token,
        f"Supprimer la classe {class_group.name} ?",
    )
    class_manager.delete_class(class_id)
