"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from chainflow_credit.api.dependencies import get_request_id
from chainflow_credit.api.middleware import RequestIDMiddleware, MetricsMiddleware
from chainflow_credit.api.v1 import applications, charges, metrics, payments, pools, positions
from chainflow_credit.api.v1.schemas import ErrorResponse
from chainflow_credit.domain.exceptions import DomainException
from chainflow_credit.infrastructure.observability.logging import setup_logging
from chainflow_credit.config import settings
from chainflow_credit.services.facility import CreditFacility, build_facility

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


def create_app(facility: CreditFacility | None = None) -> FastAPI:
    """Create and configure FastAPI application"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.facility.start()
        yield
        await app.state.facility.stop()

    app = FastAPI(
        title="ChainFlow Credit",
        description="Trade-credit scoring, pooled liquidity and PIX settlement service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.facility = facility or build_facility(settings)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        logger.warning(
            f"{exc.code}: {exc.message}",
            extra={"request_id": get_request_id(request), "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorResponse(detail=exc.message, code=exc.code).model_dump(),
        )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def prometheus_metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(applications.router, prefix="/v1", tags=["applications"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(charges.router, prefix="/v1", tags=["charges"])
    app.include_router(pools.router, prefix="/v1", tags=["pools"])
    app.include_router(positions.router, prefix="/v1", tags=["positions"])
    app.include_router(metrics.router, prefix="/v1", tags=["metrics"])

    return app


app = create_app()
