"""ServiceHistory model - retained check results per service."""
from sqlalchemy import Column, Integer, String, DateTime, Index

from ..database import Base


class ServiceHistory(Base):
    """One observed check result, trimmed to the retention window on save."""

    __tablename__ = "service_history"
    __table_args__ = (
        Index("ix_service_history_name_ts", "service_name", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_name = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    status = Column(String, nullable=False)  # up, down
    status_code = Column(Integer, nullable=True)
    response_time_ms = Column(Integer, nullable=True)
    error = Column(String, nullable=True)
