"""Class schema definitions."""

from typing import List, Optional

from pydantic import Field

from evalecole.schemas.common import CamelModel
from evalecole.schemas.user import UserInfo


class ClassGroup(CamelModel):
    """Named grouping of students, e.g. "6ème A"."""

    id: str
    name: str


class CreateClassRequest(CamelModel):
    name: str = Field(min_length=1)


class ClassRoster(CamelModel):
    """Content of the "My Class" view."""

    title: str
    class_id: Optional[str] = None
    students: List[UserInfo]
    teachers: List[UserInfo]
