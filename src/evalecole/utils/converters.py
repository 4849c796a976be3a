"""Conversions between stored rows and domain records.

This is the only place that sees raw storage shapes: ORM rows of the
relational store and camelCase dictionaries of the local store. Every field
is validated through the pydantic schemas and defaulted, so the rule engine
only ever receives well-formed ``User``, ``ClassGroup`` and ``PointEvent``
objects. Rows that cannot be mapped are logged and skipped.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from evalecole.models.class_model import ClassModel
from evalecole.models.point_event import PointEventModel
from evalecole.models.user import UserModel
from evalecole.schemas.class_schema import ClassGroup
from evalecole.schemas.point_event import PointEvent
from evalecole.schemas.user import User

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _clean_user_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply the defaulting rules of user rows.

    Staff rows are stored without credentials (NULL or empty), ``active``
    defaults to True and the class list must be a list of strings.
    """
    data["username"] = data.get("username") or ""
    data["password"] = data.get("password") or ""
    if data.get("active") is None:
        data["active"] = True
    assigned = data.get("assigned_class_ids")
    if assigned is not None:
        if isinstance(assigned, (list, tuple)):
            data["assigned_class_ids"] = [str(c) for c in assigned if c]
        else:
            logger.warning(
                "User %s has a malformed class assignment, ignoring it",
                data.get("id"),
            )
            data["assigned_class_ids"] = None
    return data


def _validate(schema: Type[RecordT], data: Dict[str, Any]) -> Optional[RecordT]:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning(
            "Skipping invalid %s row %s: %s",
            schema.__name__,
            data.get("id"),
            exc.errors(include_url=False),
        )
        return None


# --- Relational rows ---


def model_to_user(model: UserModel) -> Optional[User]:
    data = _clean_user_fields(
        {
            "id": model.id,
            "full_name": model.full_name,
            "username": model.username,
            "password": model.password,
            "role": model.role,
            "active": model.active,
            "class_id": model.class_id,
            "assigned_class_ids": model.assigned_class_ids,
        }
    )
    return _validate(User, data)


def user_to_model(user: User) -> UserModel:
    return UserModel(
        id=user.id,
        full_name=user.full_name,
        username=user.username or None,
        password=user.password or None,
        role=user.role.value,
        active=user.active,
        class_id=user.class_id,
        assigned_class_ids=user.assigned_class_ids,
    )


def model_to_class(model: ClassModel) -> Optional[ClassGroup]:
    return _validate(ClassGroup, {"id": model.id, "name": model.name})


def class_to_model(class_group: ClassGroup) -> ClassModel:
    return ClassModel(id=class_group.id, name=class_group.name)


def model_to_event(model: PointEventModel) -> Optional[PointEvent]:
    data = {
        "id": model.id,
        "date_time": model.date_time,
        "created_by_id": model.created_by_id,
        "student_id": model.student_id,
        "target_user_id": model.target_user_id,
        "action_id": model.action_id,
        "custom_label": model.custom_label,
        "points": model.points,
    }
    return _validate(PointEvent, data)


def event_to_model(event: PointEvent) -> PointEventModel:
    return PointEventModel(
        id=event.id,
        date_time=event.date_time.isoformat(),
        created_by_id=event.created_by_id,
        student_id=event.student_id,
        target_user_id=event.target_user_id,
        action_id=event.action_id,
        custom_label=event.custom_label,
        points=event.points,
    )


def models_to_records(models: Iterable[Any], convert) -> List[Any]:
    """Convert ORM rows, dropping the ones ``convert`` rejects."""
    records = []
    for model in models:
        record = convert(model)
        if record is not None:
            records.append(record)
    return records


# --- Local store records ---


def dict_to_record(schema: Type[RecordT], raw: Any) -> Optional[RecordT]:
    """Validate one camelCase dictionary of the local store."""
    if not isinstance(raw, dict):
        logger.warning("Skipping non-object %s record: %r", schema.__name__, raw)
        return None
    data = dict(raw)
    if schema is User:
        # Local records use camelCase keys; reuse the same defaulting rules
        data = {
            "id": data.get("id"),
            "full_name": data.get("fullName", data.get("full_name")),
            "username": data.get("username"),
            "password": data.get("password"),
            "role": data.get("role"),
            "active": data.get("active"),
            "class_id": data.get("classId", data.get("class_id")),
            "assigned_class_ids": data.get(
                "assignedClassIds", data.get("assigned_class_ids")
            ),
        }
        data = _clean_user_fields(data)
    return _validate(schema, data)


def dicts_to_records(schema: Type[RecordT], raw_items: Any) -> List[RecordT]:
    if not isinstance(raw_items, list):
        logger.warning("Expected a list of %s records, got %r", schema.__name__, type(raw_items))
        return []
    records = []
    for raw in raw_items:
        record = dict_to_record(schema, raw)
        if record is not None:
            records.append(record)
    return records


def record_to_dict(record: BaseModel) -> Dict[str, Any]:
    """Serialise a record the way the local store keeps it."""
    return record.model_dump(mode="json", by_alias=True)
