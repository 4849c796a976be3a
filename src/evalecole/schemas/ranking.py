"""Ranking, dashboard and score administration schemas."""

from datetime import datetime
from typing import List, Optional

from evalecole.schemas.common import CamelModel
from evalecole.schemas.point_event import EventHighlights, PointEvent
from evalecole.schemas.user import UserInfo


class RankingEntry(CamelModel):
    user: UserInfo
    score: int


class ChartPoint(CamelModel):
    name: str
    score: int


class RankingsResponse(CamelModel):
    week_start: datetime
    week_end: datetime
    all: List[RankingEntry]
    teachers: List[RankingEntry]
    supervisors: List[RankingEntry]
    direction: List[RankingEntry]
    top: List[ChartPoint]


class AdultDetailResponse(CamelModel):
    user: UserInfo
    weekly_score: int
    lifetime_score: int
    highlights: EventHighlights


class DashboardStats(CamelModel):
    """Dashboard widgets; a widget is None when it does not apply to the role."""

    actions_this_week: Optional[int] = None
    my_score_this_week: Optional[int] = None
    leader_of_the_week: str


class ScoreInfo(CamelModel):
    user_id: str
    score: int


class AdjustScoreRequest(CamelModel):
    new_total: int


class AdjustScoreResponse(CamelModel):
    user_id: str
    previous_total: int
    new_total: int
    event: Optional[PointEvent] = None
