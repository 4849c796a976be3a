"""Point submission flow.

``SubmissionFlow`` is the client-local state machine of one submission:

    SELECTING_TARGET -> SELECTING_ACTION -> (CUSTOM_DETAILS) -> SUBMITTING -> SUCCESS

After a successful submit the flow holds SUCCESS for the confirmation delay,
then resets to SELECTING_TARGET. ``SubmissionGuard`` applies the same rule on
the server, per actor, so a rapid re-click cannot append twice.
"""

import logging
import threading
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

import pytz

from evalecole import config
from evalecole.core.exceptions import InvalidSubmissionError, SubmissionInProgressError
from evalecole.schemas.action import ActionDefinition
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.user import User, UserRole
from evalecole.utils.action_catalog import CUSTOM_ACTION_ID, DEFAULT_CATALOG, ActionCatalog
from evalecole.utils.visibility import eligible_actions

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    SELECTING_TARGET = "selecting_target"
    SELECTING_ACTION = "selecting_action"
    CUSTOM_DETAILS = "custom_details"
    SUBMITTING = "submitting"
    SUCCESS = "success"


class SubmissionFlow:
    """State of one point submission by ``actor``."""

    def __init__(
        self,
        actor: User,
        catalog: ActionCatalog = DEFAULT_CATALOG,
        clock: Callable[[], float] = time.monotonic,
        confirmation_seconds: Optional[float] = None,
    ):
        self.actor = actor
        self.catalog = catalog
        self.clock = clock
        self.confirmation_seconds = (
            config.SUBMISSION_CONFIRMATION_SECONDS
            if confirmation_seconds is None
            else confirmation_seconds
        )
        self.state = SubmissionState.SELECTING_TARGET
        self.target: Optional[User] = None
        self.action: Optional[ActionDefinition] = None
        self.custom_selected = False
        self.custom_label = ""
        self.custom_points: Optional[int] = None
        self.success_at: Optional[float] = None

    def _ensure_editable(self) -> None:
        if self.state in (SubmissionState.SUBMITTING, SubmissionState.SUCCESS):
            raise InvalidSubmissionError(f"Cannot edit a submission while {self.state.value}")

    def select_target(self, target: User) -> None:
        """Choose the adult to evaluate. Clears any previous action choice."""
        self._ensure_editable()
        if not target.is_adult:
            raise InvalidSubmissionError(f"'{target.full_name}' cannot receive points")
        self.target = target
        self.action = None
        self.custom_selected = False
        self.custom_label = ""
        self.custom_points = None
        self.state = SubmissionState.SELECTING_ACTION

    def select_action(self, action_id: str) -> None:
        """Choose a catalog action of the target, or ``CUSTOM_ACTION_ID``."""
        self._ensure_editable()
        if self.target is None:
            raise InvalidSubmissionError("Select a target before an action")
        if action_id == CUSTOM_ACTION_ID:
            self.action = None
            self.custom_selected = True
            self.custom_points = None
            self.state = SubmissionState.CUSTOM_DETAILS
            return
        action = next(
            (a for a in eligible_actions(self.target, self.catalog) if a.id == action_id),
            None,
        )
        if action is None:
            raise InvalidSubmissionError(
                f"Action '{action_id}' is not available for {self.target.role.value}"
            )
        self.action = action
        self.custom_selected = False
        self.state = SubmissionState.SELECTING_ACTION

    def set_custom_label(self, label: str) -> None:
        self._ensure_editable()
        self.custom_label = label or ""

    def set_custom_points(self, points: Optional[int]) -> None:
        self._ensure_editable()
        if points is not None and points not in config.CUSTOM_POINT_CHOICES:
            raise InvalidSubmissionError(
                f"Custom points must be one of {config.CUSTOM_POINT_CHOICES}, got {points}"
            )
        self.custom_points = points

    @property
    def can_submit(self) -> bool:
        if self.state in (SubmissionState.SUBMITTING, SubmissionState.SUCCESS):
            return False
        if self.target is None:
            return False
        if self.custom_selected:
            return bool(self.custom_label.strip()) and self.custom_points is not None
        return self.action is not None

    def build_event(self, now: Optional[datetime] = None) -> PointEvent:
        """Event for the current selection.

        A catalog action's default points are copied into the event.
        """
        if not self.can_submit:
            raise InvalidSubmissionError("The submission is incomplete")
        if self.custom_selected:
            action_id, label, points = None, self.custom_label.strip(), self.custom_points
        else:
            action_id, label, points = self.action.id, None, self.action.default_points
        return PointEvent(
            date_time=now or datetime.now(pytz.utc),
            created_by_id=self.actor.id,
            student_id=self.actor.id if self.actor.role == UserRole.STUDENT else None,
            target_user_id=self.target.id,
            action_id=action_id,
            custom_label=label,
            points=points,
        )

    def submit(
        self, append: Callable[[PointEvent], None], now: Optional[datetime] = None
    ) -> PointEvent:
        """Write the event through ``append`` and enter SUCCESS.

        Args:
            append: Persists the event, usually ``EntityStore.append_event``.
            now: Creation time of the event. Defaults to now.

        Raises:
            SubmissionInProgressError: If a submit is already in flight or the
                success confirmation is still displayed.
            InvalidSubmissionError: If target or action details are missing.
        """
        if self.state in (SubmissionState.SUBMITTING, SubmissionState.SUCCESS):
            raise SubmissionInProgressError(self.actor.id)
        event = self.build_event(now)
        previous = self.state
        self.state = SubmissionState.SUBMITTING
        try:
            append(event)
        except Exception:
            self.state = previous
            raise
        self.state = SubmissionState.SUCCESS
        self.success_at = self.clock()
        return event

    def tick(self) -> bool:
        """Advance time-based transitions.

        Returns:
            True when the confirmation delay elapsed and the flow was reset,
            i.e. the caller should navigate away.
        """
        if self.state != SubmissionState.SUCCESS:
            return False
        if self.clock() - self.success_at < self.confirmation_seconds:
            return False
        self.reset()
        return True

    def reset(self) -> None:
        self.state = SubmissionState.SELECTING_TARGET
        self.target = None
        self.action = None
        self.custom_selected = False
        self.custom_label = ""
        self.custom_points = None
        self.success_at = None


class SubmissionGuard:
    """Server-side double-submit protection, keyed by actor.

    An actor is blocked while one of their submissions is being written and
    for the confirmation delay after it succeeded.
    """

    def __init__(
        self,
        confirmation_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.confirmation_seconds = (
            config.SUBMISSION_CONFIRMATION_SECONDS
            if confirmation_seconds is None
            else confirmation_seconds
        )
        self.clock = clock
        self._lock = threading.Lock()
        self._in_flight: set = set()
        self._last_success: Dict[str, float] = {}

    def begin(self, actor_id: str) -> None:
        with self._lock:
            if actor_id in self._in_flight:
                raise SubmissionInProgressError(actor_id)
            last = self._last_success.get(actor_id)
            if last is not None and self.clock() - last < self.confirmation_seconds:
                raise SubmissionInProgressError(actor_id)
            self._in_flight.add(actor_id)

    def succeed(self, actor_id: str) -> None:
        with self._lock:
            self._in_flight.discard(actor_id)
            self._last_success[actor_id] = self.clock()

    def fail(self, actor_id: str) -> None:
        with self._lock:
            self._in_flight.discard(actor_id)
