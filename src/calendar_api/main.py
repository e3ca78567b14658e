import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .models import ReminderIndex
from .repositories import get_repository
from .settings import get_settings
from .weather import build_http_client
from .routers import days as days_router
from .routers import month as month_router
from .routers import reminders as reminders_router

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "reminders",
        "description": "Create, replace and delete reminders; weather is resolved when a reminder is saved.",
    },
    {"name": "days", "description": "Reminders grouped by calendar day, ordered by time."},
    {"name": "month", "description": "The displayed month and its calendar grid."},
]

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _log_change(event: str, index: ReminderIndex) -> None:
    total = sum(len(v) for v in index.values())
    logger.debug(f"Reminder store changed ({event}): {total} reminders across {len(index)} days")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.http_client = build_http_client()
    unsubscribe = get_repository().subscribe(_log_change)
    logger.info(f"Calendar backend started (persistence: {_settings.persistence_backend})")
    try:
        yield
    finally:
        unsubscribe()
        await app.state.http_client.aclose()


app = FastAPI(
    title="Calendar Reminders Backend",
    description="Backend API for calendar day reminders annotated with a weather forecast.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _jsonable_errors(exc: RequestValidationError):
    # ValueError contexts raised by field validators are not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": _jsonable_errors(exc),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(reminders_router.router)
app.include_router(days_router.router)
app.include_router(month_router.router)
