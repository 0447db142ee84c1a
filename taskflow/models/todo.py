from enum import Enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskflow.database.connection import Base

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class Todo(Base):
    """Todo table to store todo items"""
    __tablename__ = "todos"
    __table_args__ = (
        Index("ix_todos_user_id_created_at", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(String(DESCRIPTION_MAX_LENGTH), nullable=True)
    priority = Column(
        SQLEnum(Priority, values_callable=lambda enum: [member.value for member in enum]),
        default=Priority.LOW,
        nullable=False
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="todos")

    def toggle(self):
        """Flip the completion flag"""
        self.completed = not self.completed
