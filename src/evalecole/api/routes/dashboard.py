"""Dashboard and "My Class" routes."""

import logging

from fastapi import APIRouter, Depends

from evalecole.api.routes.auth import require_route
from evalecole.core.dependencies import StoreDep
from evalecole.core.session import SessionContext
from evalecole.schemas.class_schema import ClassRoster
from evalecole.schemas.ranking import DashboardStats
from evalecole.utils.scoring import dashboard_stats
from evalecole.utils.visibility import Route, class_roster

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardStats, summary="Tableau de bord")
def dashboard(
    store: StoreDep,
    session: SessionContext = Depends(require_route(Route.DASHBOARD)),
) -> DashboardStats:
    """Weekly widgets of the current user.

    ``actionsThisWeek`` is only set for students and administrators and
    ``myScoreThisWeek`` only for adults who receive points.
    """
    return dashboard_stats(session.user, store.list_users(), store.list_events())


@router.get("/my-class", response_model=ClassRoster, summary="Ma classe")
def my_class(
    store: StoreDep,
    session: SessionContext = Depends(require_route(Route.MY_CLASS)),
) -> ClassRoster:
    return class_roster(session.user, store.list_users(), store.list_classes())
