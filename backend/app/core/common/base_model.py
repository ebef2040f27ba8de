"""
Abstract base for every table: integer id plus created/updated stamps
"""

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class BaseModel(Base):
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
