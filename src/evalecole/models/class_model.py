from sqlalchemy import Column, String
from .base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
