"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from donor_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from donor_ledger.api.v1 import bonus, payments, plans, rules
from donor_ledger.infrastructure.observability.logging import setup_logging
from donor_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema errors are reported as 400 with field-level detail"""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body") or "body",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": "Validation failed", "details": details}},
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Donor Ledger",
        description="Solicitor bonus calculation and pledge payment plan service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(rules.router, prefix="/v1", tags=["bonus-rules"])
    app.include_router(bonus.router, prefix="/v1", tags=["bonuses"])
    app.include_router(plans.router, prefix="/v1", tags=["payment-plans"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()
