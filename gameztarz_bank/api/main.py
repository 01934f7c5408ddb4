"""FastAPI application factory"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from gameztarz_bank.api.dependencies import get_request_id
from gameztarz_bank.api.middleware import RequestIDMiddleware, MetricsMiddleware
from gameztarz_bank.api.v1 import (
    accounts,
    admin,
    budgets,
    careers,
    clock,
    housing,
    loans,
    markets,
    notifications,
    payees,
    transfers,
)
from gameztarz_bank.config import settings
from gameztarz_bank.domain.exceptions import DomainException
from gameztarz_bank.infrastructure.clock.timekeeper import Timekeeper
from gameztarz_bank.infrastructure.database.models import Base
from gameztarz_bank.infrastructure.database.repositories import ClockRepository, ensure_platform_account
from gameztarz_bank.infrastructure.database.session import engine, session_scope
from gameztarz_bank.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, seed the platform account and start the timekeeper"""
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        ensure_platform_account(db, ClockRepository(db).read())

    timekeeper = None
    task = None
    if settings.timekeeper_enabled:
        timekeeper = Timekeeper()
        task = asyncio.create_task(timekeeper.run())
    app.state.timekeeper = timekeeper

    yield

    if timekeeper is not None:
        timekeeper.stop()
        await task


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    logging.warning(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": get_request_id(request), "path": request.url.path},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Gameztarz Bank",
        description="Banking simulation: accounts, settlement, fee pool and simulated clock",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(transfers.router, prefix="/v1", tags=["transfers"])
    app.include_router(markets.router, prefix="/v1", tags=["markets"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(housing.router, prefix="/v1", tags=["housing"])
    app.include_router(careers.router, prefix="/v1", tags=["careers"])
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(payees.router, prefix="/v1", tags=["payees"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])
    app.include_router(clock.router, prefix="/v1", tags=["clock"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
