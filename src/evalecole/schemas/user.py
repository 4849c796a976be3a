"""User schema definitions.

This module defines the User domain record, its roles, and the request and
response models of the authentication and user administration endpoints.
"""

import uuid
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from evalecole.schemas.common import CamelModel


class UserRole(str, Enum):
    """Roles of the school; values are the persisted role text."""

    STUDENT = "Élève"
    TEACHER = "Professeur"
    SUPERVISOR = "Surveillant"
    DIRECTION = "Direction"
    ACCOUNTING = "Comptabilité"
    ADMIN = "Admin"


# Roles that can receive point events
ADULT_ROLES = (UserRole.TEACHER, UserRole.SUPERVISOR, UserRole.DIRECTION)

# Roles managed on the staff tab; they never log in
STAFF_ROLES = ADULT_ROLES + (UserRole.ACCOUNTING,)


class User(CamelModel):
    """Identity record.

    ``class_id`` is only meaningful for students and ``assigned_class_ids``
    only for teachers; other roles leave both unset.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    full_name: str
    username: str = ""
    password: str = ""
    role: UserRole
    active: bool = True
    class_id: Optional[str] = None
    assigned_class_ids: Optional[List[str]] = None

    @field_validator("class_id", mode="before")
    @classmethod
    def blank_class_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_adult(self) -> bool:
        return self.role in ADULT_ROLES

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT


class UserInfo(CamelModel):
    """User as exposed by the API (no password)."""

    id: str
    full_name: str
    username: str = ""
    role: UserRole
    active: bool = True
    class_id: Optional[str] = None
    assigned_class_ids: Optional[List[str]] = None

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=user.id,
            full_name=user.full_name,
            username=user.username,
            role=user.role,
            active=user.active,
            class_id=user.class_id,
            assigned_class_ids=user.assigned_class_ids,
        )


class LoginRequest(CamelModel):
    username: str
    password: str


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class SaveUserRequest(CamelModel):
    """Create or edit a user from the administration console.

    The API never returns passwords, so an edit that leaves ``password``
    unset keeps the stored one.
    """

    full_name: str = Field(min_length=1)
    username: str = ""
    password: Optional[str] = None
    role: UserRole
    active: bool = True
    class_id: Optional[str] = None
    assigned_class_ids: List[str] = Field(default_factory=list)


class UserListResponse(CamelModel):
    students: List[UserInfo]
    staff: List[UserInfo]
    others: List[UserInfo]
