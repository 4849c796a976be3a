from .base import Base
from .class_model import ClassModel
from .point_event import PointEventModel
from .user import UserModel

__all__ = ["Base", "ClassModel", "PointEventModel", "UserModel"]
