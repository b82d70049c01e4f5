"""Service model - endpoints being monitored."""
from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base
from ..utils.timestamps import utcnow


class Service(Base):
    """A monitored HTTP endpoint. Row id preserves insertion order."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    url = Column(String, nullable=False)
    timeout_ms = Column(Integer, nullable=False, default=5000)
    expected_status = Column(Integer, nullable=False, default=200)
    created_at = Column(DateTime, default=utcnow)
