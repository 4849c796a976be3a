"""Scoring and ranking rules.

Weekly scores cover the Monday-to-Sunday week containing a reference instant,
computed in the school's timezone with both bounds inclusive. Only stored
``points`` are summed; nothing is recomputed from the action catalog.
"""

from datetime import datetime, time, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

import pytz

from evalecole import config
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.ranking import DashboardStats
from evalecole.schemas.user import ADULT_ROLES, User, UserRole


class RankedUser(NamedTuple):
    user: User
    score: int


def _as_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant


def week_bounds(
    reference: Optional[datetime] = None, tz_name: Optional[str] = None
) -> Tuple[datetime, datetime]:
    """Return the first and last instant of the week containing ``reference``.

    Args:
        reference: Any instant of the week. Defaults to now; naive values
            are read as UTC.
        tz_name: Timezone of the school calendar. Defaults to
            config.SCHOOL_TIMEZONE.

    Returns:
        (Monday 00:00:00, Sunday 23:59:59.999999), both timezone-aware.
    """
    tz = pytz.timezone(tz_name or config.SCHOOL_TIMEZONE)
    reference = _as_aware(reference or datetime.now(pytz.utc))
    local = reference.astimezone(tz)
    monday = local.date() - timedelta(days=local.weekday())
    sunday = monday + timedelta(days=6)
    start = tz.localize(datetime.combine(monday, time.min))
    end = tz.localize(datetime.combine(sunday, time.max))
    return start, end


def in_window(event: PointEvent, start: datetime, end: datetime) -> bool:
    return start <= _as_aware(event.date_time) <= end


def weekly_score(
    user: User, events: Iterable[PointEvent], reference: Optional[datetime] = None
) -> int:
    """Sum of the points the user received during the reference week."""
    start, end = week_bounds(reference)
    return sum(
        e.points for e in events
        if e.target_user_id == user.id and in_window(e, start, end)
    )


def lifetime_score(user: User, events: Iterable[PointEvent]) -> int:
    """Sum of every point the user ever received."""
    return sum(e.points for e in events if e.target_user_id == user.id)


def weekly_totals(
    users: Iterable[User],
    events: Iterable[PointEvent],
    reference: Optional[datetime] = None,
) -> Dict[str, int]:
    """Weekly score of every active adult, zero when nothing was received.

    The mapping keeps the order of ``users``. Events targeting anyone else
    (inactive, deleted or non-adult users) are ignored.
    """
    scores: Dict[str, int] = {}
    for user in users:
        if user.active and user.role in ADULT_ROLES:
            scores[user.id] = 0

    start, end = week_bounds(reference)
    for event in events:
        if event.target_user_id in scores and in_window(event, start, end):
            scores[event.target_user_id] += event.points
    return scores


def ranked_list(
    users: List[User],
    events: Iterable[PointEvent],
    role: Optional[UserRole] = None,
    reference: Optional[datetime] = None,
) -> List[RankedUser]:
    """Leaderboard of the reference week.

    Args:
        users: The full user collection.
        events: The full event collection.
        role: Restrict the board to one adult role.
        reference: Any instant of the week to rank. Defaults to now.

    Returns:
        Active adults sorted by descending score. Ties keep the order of
        ``users``; zero-score adults are included.
    """
    by_id = {u.id: u for u in users}
    ranked = []
    for user_id, score in weekly_totals(users, events, reference).items():
        user = by_id.get(user_id)
        if user is None:
            continue
        if role is not None and user.role != role:
            continue
        ranked.append(RankedUser(user, score))
    # sorted() is stable
    return sorted(ranked, key=lambda item: -item.score)


def top_highlights(
    user: User, events: Iterable[PointEvent], n: Optional[int] = None
) -> Tuple[List[PointEvent], List[PointEvent]]:
    """Best and worst events a user ever received.

    Returns:
        (positives sorted by points descending, negatives sorted by points
        ascending), each truncated to ``n`` (config.TOP_HIGHLIGHTS_LIMIT by
        default). Zero-point events appear in neither list.
    """
    limit = config.TOP_HIGHLIGHTS_LIMIT if n is None else n
    received = [e for e in events if e.target_user_id == user.id]
    positives = sorted((e for e in received if e.points > 0), key=lambda e: -e.points)
    negatives = sorted((e for e in received if e.points < 0), key=lambda e: e.points)
    return positives[:limit], negatives[:limit]


def leader_of_the_week(
    users: Iterable[User],
    events: Iterable[PointEvent],
    reference: Optional[datetime] = None,
) -> Optional[User]:
    """Target with the highest weekly total; the first one reached wins ties."""
    start, end = week_bounds(reference)
    totals: Dict[str, int] = {}
    for event in events:
        if in_window(event, start, end):
            totals[event.target_user_id] = totals.get(event.target_user_id, 0) + event.points

    leader_id = None
    best = None
    for user_id, points in totals.items():
        if best is None or points > best:
            best = points
            leader_id = user_id
    if leader_id is None:
        return None
    return next((u for u in users if u.id == leader_id), None)


def dashboard_stats(
    actor: User,
    users: List[User],
    events: List[PointEvent],
    reference: Optional[datetime] = None,
) -> DashboardStats:
    """Widgets of the dashboard for ``actor``."""
    reference = reference or datetime.now(pytz.utc)
    start, end = week_bounds(reference)
    this_week = [e for e in events if in_window(e, start, end)]

    actions = None
    if actor.role in (UserRole.STUDENT, UserRole.ADMIN):
        actions = sum(1 for e in this_week if e.created_by_id == actor.id)

    my_score = None
    if actor.role in ADULT_ROLES:
        my_score = sum(e.points for e in this_week if e.target_user_id == actor.id)

    leader = leader_of_the_week(users, this_week, reference)
    return DashboardStats(
        actions_this_week=actions,
        my_score_this_week=my_score,
        leader_of_the_week=leader.full_name if leader else config.NO_DATA_LABEL,
    )
