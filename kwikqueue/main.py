"""
KwikQueue - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
import structlog

from kwikqueue import __version__
from kwikqueue.config import settings
from kwikqueue.api import auth, companies, orders, products, queue, realtime
from kwikqueue.api.errors import register_exception_handlers

logging.basicConfig(format="%(message)s", level=getattr(logging, settings.log_level.upper(), logging.INFO))

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting KwikQueue API", version=__version__, sms_provider=settings.sms_provider)
    yield
    logger.info("Shutting down KwikQueue API")


# Create FastAPI application
app = FastAPI(
    title="KwikQueue",
    description="Queue and order lifecycle service for food-service establishments",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": __version__}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from kwikqueue.database import SessionLocal

    checks = {}

    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    # The broker only matters when notifications go through workers
    if settings.notifications_async:
        try:
            from kwikqueue.jobs.celery_app import celery_app
            celery_app.control.ping(timeout=1)
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Staff API
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(companies.router, prefix="/companies", tags=["Companies"])
app.include_router(products.router, prefix="/companies/{company_id}/products", tags=["Products"])
app.include_router(orders.router, prefix="/companies/{company_id}/orders", tags=["Orders"])

# Customer API
app.include_router(queue.router, prefix="/queue", tags=["Queue"])

# Live updates
app.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kwikqueue.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
