from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import Base, engine
from .observability import RequestTimingLoggingMiddleware, add_exception_handlers, configure_logging
from .routers import attendance as attendance_router
from .routers import checkin as checkin_router
from .routers import event_config as event_config_router
from .routers import exports as exports_router
from .routers import first_timers as first_timers_router
from .routers import health
from .routers import members as members_router
from .seed import seed_schedule

# Ensure schema is present when the module is imported (helps tests using TestClient without lifespan)
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema plus a first schedule, so the check-in screens work on a fresh database
    seed_schedule()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    application = FastAPI(title="Check-in Admin API", version="0.1.0", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestTimingLoggingMiddleware)

    add_exception_handlers(application)

    application.include_router(health.router)
    application.include_router(event_config_router.router)
    application.include_router(checkin_router.router)
    application.include_router(attendance_router.router)
    application.include_router(members_router.router)
    application.include_router(first_timers_router.router)
    application.include_router(exports_router.router)

    return application


app = create_app()
