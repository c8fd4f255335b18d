import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from app.api.v1.router import api_router
from app.api.v1.webhooks import router as webhook_router
from app.core.config import settings
from app.core.context import build_context
from app.core.exceptions import APIException, ErrorCode
from app.middleware.tracing import RequestTracingMiddleware, RequestTimingMiddleware
from app.schemas.error import ErrorResponse

VERSION = "1.0.0"

# Metrics
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_DURATION = Histogram("http_request_duration_seconds", "HTTP request duration")
ERROR_COUNT = Counter("http_errors_total", "Total HTTP errors", ["error_code", "status_code"])

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "development" else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("coin-wallet-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up Coin Wallet API...")
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set, coin purchases will fail")
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("STRIPE_WEBHOOK_SECRET is not set, every webhook will be rejected")
    app.state.context = build_context(settings)
    yield
    # Shutdown
    logger.info("Shutting down Coin Wallet API...")


app = FastAPI(
    title="Coin Wallet API",
    description="Buy virtual coins with Stripe and credit them to Firestore wallets",
    version=VERSION,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

# Tracing middleware
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(RequestTracingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    REQUEST_DURATION.observe(process_time)
    REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status=response.status_code).inc()

    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

    return response


def _error_response(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            code=code,
            message=message,
            details=details,
            trace_id=getattr(request.state, "trace_id", ""),
            timestamp=time.time()
        ).model_dump()
    )


# Exception handlers
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    ERROR_COUNT.labels(error_code=exc.error_code.value, status_code=exc.status_code).inc()
    return _error_response(request, exc.status_code, exc.error_code.value, str(exc.detail), exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    ERROR_COUNT.labels(error_code=ErrorCode.INVALID_INPUT.value, status_code=400).inc()
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
        for error in exc.errors()
    ]
    return _error_response(
        request, 400, ErrorCode.INVALID_INPUT.value, "Invalid request body.", {"errors": errors}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    ERROR_COUNT.labels(error_code="HTTP_ERROR", status_code=exc.status_code).inc()
    return _error_response(request, exc.status_code, ErrorCode.INTERNAL_ERROR.value, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    ERROR_COUNT.labels(error_code="UNHANDLED_ERROR", status_code=500).inc()
    logger.exception("Unhandled exception occurred")
    return _error_response(request, 500, ErrorCode.INTERNAL_ERROR.value, "An unexpected error occurred")


# Liveness probe
@app.get("/api/ping", response_class=PlainTextResponse)
async def ping():
    return "pong"


# Health check with detailed status
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": VERSION
    }


@app.get("/metrics")
async def get_metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include API router
app.include_router(api_router, prefix="/api")
app.include_router(webhook_router)


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Backend running on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
