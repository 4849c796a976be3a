"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import JSON, Boolean, Column, String
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    username = Column(String, nullable=True, index=True)
    password = Column(String, nullable=True)  # plaintext, compared as-is
    role = Column(String, nullable=False)  # persisted UserRole value
    active = Column(Boolean, nullable=False, default=True)
    class_id = Column(String, nullable=True)  # students only
    assigned_class_ids = Column(JSON, nullable=True)  # teachers only
