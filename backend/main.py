"""
NoteBay marketplace API.

Run with ``uvicorn main:app``.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import check_connection, engine
from app.logging_config import setup_logging
from app.rate_limit import limiter
from app.routers import auth, payments, products, purchases

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"NoteBay API starting ({settings.ENVIRONMENT}): currency={settings.CURRENCY}, "
        f"commission={settings.PLATFORM_COMMISSION_RATE:.2%}"
    )
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set; paid checkouts will fail at the gateway")
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set; every payment webhook will be rejected")
    yield
    await engine.dispose()
    logger.info("NoteBay API stopped")


app = FastAPI(
    title="NoteBay API",
    description="Buy and sell study documents; payments settle through gateway webhooks",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and latency for every request."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(products.router, tags=["products"])
app.include_router(purchases.router, tags=["purchases"])
app.include_router(payments.router, tags=["payments"])


@app.get("/health")
async def health_check():
    """Liveness plus a database round trip."""
    try:
        await check_connection()
    except SQLAlchemyError as e:
        logger.error(f"Health check database failure: {e}")
        return JSONResponse(status_code=503, content={"status": "degraded", "database": "unavailable"})
    return {"status": "ok", "database": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
