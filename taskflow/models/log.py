from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from taskflow.database.connection import Base

class LogLevel(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"

class ErrorLog(Base):
    """Unhandled errors recorded by the application error handler"""
    __tablename__ = "error_logs"

    id = Column(Integer, primary_key=True, index=True)
    level = Column(
        SQLEnum(LogLevel, values_callable=lambda enum: [member.value for member in enum]),
        nullable=False
    )
    message = Column(String, nullable=False)
    stack = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
