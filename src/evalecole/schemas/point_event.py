"""Point event schema definitions.

A PointEvent is the append-only record of one evaluation. Its ``points`` are
authoritative once written and never recomputed from the action catalog.
"""

import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from pydantic import Field, field_validator, model_validator

from evalecole.schemas.common import CamelModel


class PointEvent(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date_time: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))
    created_by_id: str
    student_id: Optional[str] = None
    target_user_id: str
    action_id: Optional[str] = None
    custom_label: Optional[str] = None
    points: int

    @field_validator("date_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps were written as UTC
        if value.tzinfo is None:
            return pytz.utc.localize(value)
        return value

    @model_validator(mode="after")
    def one_of_action_or_label(self) -> "PointEvent":
        if self.action_id:
            self.custom_label = None
        elif not (self.custom_label and self.custom_label.strip()):
            raise ValueError("An event needs either an action id or a custom label")
        else:
            self.action_id = None
        return self


class PointSubmissionRequest(CamelModel):
    """Body of ``POST /api/points``.

    ``action_id`` is a catalog id or ``custom_action``; the custom fields are
    only read for the latter.
    """

    target_user_id: str
    action_id: str
    custom_label: Optional[str] = None
    custom_points: Optional[int] = None


class PointEventInfo(CamelModel):
    """Event as shown in drill-downs, with its resolved label."""

    id: str
    date_time: datetime
    label: str
    points: int
    created_by_id: str


class EventHighlights(CamelModel):
    positives: List[PointEventInfo]
    negatives: List[PointEventInfo]
