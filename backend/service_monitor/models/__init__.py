"""Database models."""
from .settings import Setting
from .service import Service
from .service_history import ServiceHistory

__all__ = ["Setting", "Service", "ServiceHistory"]
