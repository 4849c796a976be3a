"""Point event operations.

Submission of evaluations, administrative score adjustment and the bulk
resets. Events are only ever appended or deleted in bulk.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

import pytz

from evalecole import config
from evalecole.core.exceptions import InvalidSubmissionError
from evalecole.schemas.point_event import PointEvent, PointSubmissionRequest
from evalecole.schemas.user import User
from evalecole.utils.action_catalog import CUSTOM_ACTION_ID, DEFAULT_CATALOG, ActionCatalog
from evalecole.utils.entity_store import EntityStore
from evalecole.utils.scoring import lifetime_score
from evalecole.utils.submission import SubmissionFlow, SubmissionGuard
from evalecole.utils.visibility import eligible_targets

logger = logging.getLogger(__name__)


class PointManager:
    """Manages point events through an EntityStore."""

    def __init__(
        self,
        store: EntityStore,
        guard: Optional[SubmissionGuard] = None,
        catalog: ActionCatalog = DEFAULT_CATALOG,
    ):
        """Initialize PointManager.

        Args:
            store: Entity store holding users and events.
            guard: Double-submit guard shared across requests. A private one
                is created when omitted.
            catalog: Action catalog used to resolve action ids.
        """
        self.store = store
        self.guard = guard or SubmissionGuard()
        self.catalog = catalog

    def submit(
        self,
        actor: User,
        req: PointSubmissionRequest,
        now: Optional[datetime] = None,
    ) -> PointEvent:
        """Record one evaluation of an adult by ``actor``.

        Raises:
            InvalidSubmissionError: If the target is not visible to the actor,
                the action does not apply to the target, or custom details
                are missing.
            SubmissionInProgressError: If the actor submitted moments ago.
        """
        targets = eligible_targets(actor, self.store.list_users())
        target = next((u for u in targets if u.id == req.target_user_id), None)
        if target is None:
            raise InvalidSubmissionError(
                f"User '{req.target_user_id}' cannot be evaluated by this account"
            )

        flow = SubmissionFlow(actor, catalog=self.catalog)
        flow.select_target(target)
        flow.select_action(req.action_id)
        if req.action_id == CUSTOM_ACTION_ID:
            flow.set_custom_label(req.custom_label or "")
            flow.set_custom_points(req.custom_points)
        if not flow.can_submit:
            raise InvalidSubmissionError("A custom action needs a label and a point value")

        self.guard.begin(actor.id)
        try:
            event = flow.submit(self.store.append_event, now=now)
        except Exception:
            self.guard.fail(actor.id)
            raise
        self.guard.succeed(actor.id)
        logger.info(
            "%s gave %+d to %s (%s)",
            actor.id, event.points, target.id, event.action_id or "custom",
        )
        return event

    def events_for(self, user: User) -> List[PointEvent]:
        return self.store.list_events_for_target(user.id)

    def current_score(self, user: User) -> int:
        """Lifetime score of ``user``."""
        return lifetime_score(user, self.store.list_events_for_target(user.id))

    def adjust_score(
        self, user: User, new_total: int, now: Optional[datetime] = None
    ) -> Tuple[int, Optional[PointEvent]]:
        """Bring the lifetime score of ``user`` to ``new_total``.

        A single compensating event carries the difference; history is never
        edited.

        Returns:
            (previous total, appended event or None when nothing changed).
        """
        current = self.current_score(user)
        diff = new_total - current
        if diff == 0:
            return current, None

        event = PointEvent(
            date_time=now or datetime.now(pytz.utc),
            created_by_id=config.ADMIN_ADJUST_ACTOR_ID,
            target_user_id=user.id,
            action_id=None,
            custom_label=config.ADMIN_ADJUST_LABEL,
            points=diff,
        )
        self.store.append_event(event)
        logger.info("Adjusted score of %s from %d to %d", user.id, current, new_total)
        return current, event

    def reset_target(self, user_id: str) -> None:
        self.store.delete_events_for_target(user_id)
        logger.info("Reset points of %s", user_id)

    def reset_all(self) -> None:
        self.store.delete_all_events()
        logger.warning("Reset all points")

    def label_of(self, event: PointEvent) -> str:
        return self.catalog.label_for(event.action_id) or event.custom_label or config.UNKNOWN_LABEL
