"""Settings model - key-value store for global configuration."""
from sqlalchemy import Column, String, DateTime, Text

from ..database import Base
from ..utils.timestamps import utcnow


class Setting(Base):
    """Global settings stored as key-value pairs."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# Key holding the JSON notification document (secrets encrypted)
NOTIFICATIONS_KEY = "notifications"
