"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, settings
from .exceptions import ServiceMonitorError
from .routers import notifications_router, services_router
from .services.monitor import MonitorContext, MonitorService
from .services.scheduler import SchedulerService

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - build the monitoring context, run the scheduler."""
    config: Settings = app.state.settings
    logger.info("Starting Service Monitor")

    context = await MonitorContext.create(config, transport=app.state.transport)
    scheduler = SchedulerService(context)
    app.state.monitor = MonitorService(context, scheduler)
    logger.info("Monitoring context initialized")

    if app.state.run_scheduler:
        scheduler.start()

    yield

    scheduler.stop()
    await context.close()
    logger.info("Shutdown complete")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI):
    """Render errors as {"error": message} payloads."""

    @app.exception_handler(ServiceMonitorError)
    async def monitor_error_handler(request: Request, exc: ServiceMonitorError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(SQLAlchemyError)
    async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc}")
        return _error_response(500, f"Persistence failure: {type(exc).__name__}")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
        return _error_response(400, "; ".join(messages) or "Invalid request")


def create_app(
    config: Optional[Settings] = None,
    run_scheduler: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Service Monitor",
        description="Monitor HTTP services and alert on status changes",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = config or settings
    app.state.run_scheduler = run_scheduler
    app.state.transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict to your domain
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(services_router)
    app.include_router(notifications_router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
