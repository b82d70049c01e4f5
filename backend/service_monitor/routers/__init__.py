"""API routers."""
from .services import router as services_router
from .notifications import router as notifications_router

__all__ = ["services_router", "notifications_router"]
