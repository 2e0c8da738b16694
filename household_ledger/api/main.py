"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from household_ledger.api.dependencies import get_request_id
from household_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from household_ledger.api.v1 import bills, loans, savings, settlement
from household_ledger.domain.exceptions import (
    ConcurrentUpdateError,
    InstallmentAlreadyPaidError,
    InstallmentReversalError,
    InvalidMonthTokenError,
    NotFoundError,
)
from household_ledger.infrastructure.observability.logging import setup_logging
from household_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate domain exceptions into HTTP errors"""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidMonthTokenError)
    async def invalid_month_handler(request: Request, exc: InvalidMonthTokenError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InstallmentReversalError)
    @app.exception_handler(InstallmentAlreadyPaidError)
    async def installment_state_handler(request: Request, exc: Exception):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ConcurrentUpdateError)
    async def concurrent_update_handler(request: Request, exc: ConcurrentUpdateError):
        logging.error(f"Concurrent update not resolved: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=409, content={"detail": "Balance changed concurrently, please retry"})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Household Ledger",
        description="Shared household bills, loans and savings paybacks",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(bills.router, prefix="/v1", tags=["bills"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(savings.router, prefix="/v1", tags=["savings"])
    app.include_router(settlement.router, prefix="/v1", tags=["settlement"])

    return app


app = create_app()
