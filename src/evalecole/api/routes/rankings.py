"""Ranking routes: weekly leaderboards and adult drill-down."""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from fastapi import APIRouter, Depends, Query

from evalecole import config
from evalecole.api.routes.auth import require_route
from evalecole.core.dependencies import PointManagerDep, StoreDep
from evalecole.core.exceptions import UserNotFoundError
from evalecole.core.session import SessionContext
from evalecole.schemas.point_event import EventHighlights, PointEvent, PointEventInfo
from evalecole.schemas.ranking import (
    AdultDetailResponse,
    ChartPoint,
    RankingEntry,
    RankingsResponse,
)
from evalecole.schemas.user import UserInfo, UserRole
from evalecole.utils.point_manager import PointManager
from evalecole.utils.scoring import (
    RankedUser,
    lifetime_score,
    ranked_list,
    top_highlights,
    week_bounds,
    weekly_score,
)
from evalecole.utils.visibility import Route

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rankings", tags=["Rankings"])


def _entries(ranked: List[RankedUser]) -> List[RankingEntry]:
    return [RankingEntry(user=UserInfo.from_user(r.user), score=r.score) for r in ranked]


def _event_infos(events: List[PointEvent], point_manager: PointManager) -> List[PointEventInfo]:
    return [
        PointEventInfo(
            id=e.id,
            date_time=e.date_time,
            label=point_manager.label_of(e),
            points=e.points,
            created_by_id=e.created_by_id,
        )
        for e in events
    ]


@router.get("", response_model=RankingsResponse, summary="Classements de la semaine")
def rankings(
    store: StoreDep,
    reference: Optional[datetime] = Query(
        default=None, description="Any instant of the week to rank. Defaults to now."
    ),
    session: SessionContext = Depends(require_route(Route.RANKINGS)),
) -> RankingsResponse:
    """Overall and per-role boards plus the top chart."""
    reference = reference or datetime.now(pytz.utc)
    users = store.list_users()
    events = store.list_events()
    start, end = week_bounds(reference)

    overall = ranked_list(users, events, reference=reference)
    return RankingsResponse(
        week_start=start,
        week_end=end,
        all=_entries(overall),
        teachers=_entries(ranked_list(users, events, UserRole.TEACHER, reference)),
        supervisors=_entries(ranked_list(users, events, UserRole.SUPERVISOR, reference)),
        direction=_entries(ranked_list(users, events, UserRole.DIRECTION, reference)),
        top=[
            ChartPoint(name=r.user.full_name, score=r.score)
            for r in overall[: config.TOP_CHART_SIZE]
        ],
    )


@router.get("/{user_id}", response_model=AdultDetailResponse, summary="Détail d'un adulte")
def adult_detail(
    user_id: str,
    store: StoreDep,
    point_manager: PointManagerDep,
    reference: Optional[datetime] = Query(default=None),
    session: SessionContext = Depends(require_route(Route.RANKINGS)),
) -> AdultDetailResponse:
    """Weekly and lifetime scores of one adult with their best and worst events.

    Raises:
        UserNotFoundError: If the id does not name an adult.
    """
    reference = reference or datetime.now(pytz.utc)
    user = store.get_user(user_id)
    if user is None or not user.is_adult:
        raise UserNotFoundError(user_id)

    events = store.list_events_for_target(user.id)
    positives, negatives = top_highlights(user, events)
    return AdultDetailResponse(
        user=UserInfo.from_user(user),
        weekly_score=weekly_score(user, events, reference),
        lifetime_score=lifetime_score(user, events),
        highlights=EventHighlights(
            positives=_event_infos(positives, point_manager),
            negatives=_event_infos(negatives, point_manager),
        ),
    )
