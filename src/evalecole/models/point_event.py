from sqlalchemy import Column, Integer, String
from .base import Base


class PointEventModel(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, index=True)
    date_time = Column(String, nullable=False)  # ISO format string
    created_by_id = Column(String, nullable=False)
    student_id = Column(String, nullable=True)
    target_user_id = Column(String, index=True, nullable=False)
    action_id = Column(String, nullable=True)
    custom_label = Column(String, nullable=True)
    points = Column(Integer, nullable=False)
