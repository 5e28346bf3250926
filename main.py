"""Main FastAPI application"""
import logging
import logging.config
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from motor.motor_asyncio import AsyncIOMotorClient
from routes import router as api_router
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from config import (
    API_VERSION,
    COLLECTION_NAME,
    CORS_ORIGINS,
    DB_NAME,
    HOST,
    LOG_LEVEL,
    MAX_BODY_SIZE,
    MONGODB_URI,
    PORT,
    RATE_LIMIT,
    RATE_LIMIT_ENABLED,
)
from utils.errors import validation_message

# --- Unified Logging Configuration with Rich ---
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            # RichHandler renders its own timestamp and level columns
            "format": "%(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "default": {
            "class": "rich.logging.RichHandler",
            "formatter": "default",
            "level": "DEBUG",
            "rich_tracebacks": True,
            "show_time": True,
            "show_path": False,
            "log_time_format": "%Y-%m-%d %H:%M:%S",
            "markup": False,
        },
    },
    "loggers": {
        "uvicorn": {
             "handlers": ["default"],
             "level": "INFO",
             "propagate": False,
        },
        "uvicorn.error": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False,
        },
        "": { # Root logger for our application
            "handlers": ["default"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

logging.config.dictConfig(LOGGING_CONFIG)

logger = logging.getLogger(__name__)

NOT_FOUND_ROUTE_MESSAGE = "Route not found"
SERVER_ERROR_MESSAGE = "Something went wrong!"

# Application state to hold the database client and collection
app_state = {}

# --- Rate Limiter Setup ---
limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT], enabled=RATE_LIMIT_ENABLED)

# --- Middleware for Request Body Size Limit ---
def _body_too_large(size: int) -> JSONResponse:
    logger.warning(f"Request rejected: body size {size} exceeds limit {MAX_BODY_SIZE}.")
    return JSONResponse(
        status_code=413,
        content={"message": f"Request body exceeds the {MAX_BODY_SIZE} byte limit."},
    )

class LimitBodySizeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method in ("POST", "PUT"):
            content_length_header = request.headers.get("content-length")
            if content_length_header:
                try:
                    content_length = int(content_length_header)
                except ValueError:
                    logger.warning("Request rejected: Invalid Content-Length header.")
                    return JSONResponse(status_code=400, content={"message": "Invalid Content-Length header."})
                if content_length > MAX_BODY_SIZE:
                    return _body_too_large(content_length)
            else:
                # Chunked bodies carry no Content-Length; buffer and measure
                body = await request.body()
                if len(body) > MAX_BODY_SIZE:
                    return _body_too_large(len(body))
        return await call_next(request)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Connect to MongoDB
    logger.info(f"Connecting to MongoDB at {MONGODB_URI}...")
    try:
        app_state["db_client"] = AsyncIOMotorClient(MONGODB_URI, serverSelectionTimeoutMS=5000)
        app_state["db"] = app_state["db_client"][DB_NAME]
        app_state["expenses_collection"] = app_state["db"].get_collection(COLLECTION_NAME)
        await app_state["db_client"].admin.command('ping')
        logger.info(f"Successfully connected to MongoDB database: {DB_NAME}")
        await app_state["expenses_collection"].create_index("date")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        if app_state.get("db_client"):
            app_state["db_client"].close()
        app_state["db_client"] = None
        app_state["db"] = None
        app_state["expenses_collection"] = None

    yield # Application runs here

    # Shutdown: Close MongoDB connection
    if app_state.get("db_client"):
        logger.info("Closing MongoDB connection...")
        app_state["db_client"].close()
        logger.info("MongoDB connection closed.")

app = FastAPI(
    title="Expense Tracker API",
    description="API for recording, filtering and summarizing personal expenses.",
    version=API_VERSION,
    lifespan=lifespan
)

# --- Error Handlers: every error body is {"message": ...} ---
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = validation_message(exc.errors())
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"message": message})

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = NOT_FOUND_ROUTE_MESSAGE
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=getattr(exc, "headers", None))

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")
    return JSONResponse(status_code=429, content={"message": f"Rate limit exceeded: {exc.detail}"})

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": SERVER_ERROR_MESSAGE})

# --- Rate Limiter State ---
app.state.limiter = limiter

# --- Add Middleware (Order Matters) ---
# 1. Rate Limiter Middleware (no-op unless RATE_LIMIT_ENABLED)
app.add_middleware(SlowAPIMiddleware)
# 2. CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
# 3. Body Size Limit Middleware
app.add_middleware(LimitBodySizeMiddleware)

# --- API Routes ---
app.include_router(api_router, prefix="/api", tags=["expenses"])

@app.get("/api/health", tags=["health"])
async def health_check():
    """Reports liveness and whether the database connection is available."""
    connected = app_state.get("expenses_collection") is not None
    return {
        "status": "OK",
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
        "database": {
            "status": "Connected" if connected else "Disconnected",
            "name": DB_NAME,
        },
    }

# Make app state accessible via middleware
@app.middleware("http")
async def add_app_config_to_request(request: Request, call_next):
    """Adds database connection to the request state."""
    request.state.db_client = app_state.get("db_client")
    request.state.db = app_state.get("db")
    request.state.expenses_collection = app_state.get("expenses_collection")
    response = await call_next(request)
    return response

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=HOST,
        port=PORT,
        reload=True
    )
