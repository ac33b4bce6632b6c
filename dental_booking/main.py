import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dental_booking.api.routes import reservations, timeslots
from dental_booking.core import db
from dental_booking.core.config import settings, _ENV_FILE
from dental_booking.core.errors import BookingError
from dental_booking.core.logging_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if db.engine is None:
        db.init_engine()
    if not settings.email_enabled:
        logger.warning("Email: NOT configured. Set SMTP_HOST, SMTP_USER, SMTP_PASSWORD and FROM_EMAIL")
    if not settings.sms_enabled:
        logger.warning("SMS: NOT configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER")
    # Background: probe and reconnect whenever the pool reports a lost connection
    supervisor = db.ConnectionSupervisor()
    supervisor.watch(db.engine)
    task = asyncio.create_task(supervisor.run())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    title="Dental Booking API",
    description="Backend for dental clinic reservations: time slots, booking, cancellation",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(timeslots.router)
app.include_router(reservations.router)


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # loc/type only: submitted values carry patient contact data
    problems = [(".".join(str(p) for p in err.get("loc", ())), err.get("type")) for err in exc.errors()]
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, problems)
    return _error_response(request, 400, "Missing or invalid data.")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(request, 500, "Internal server error.")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the real error; the client only gets a generic message (with CORS, so the browser shows it)."""
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(request, 500, "Internal server error.")


@app.get("/health")
async def health() -> JSONResponse:
    try:
        await db.ping()
    except Exception as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(status_code=500, content={"status": "unavailable", "error": "Database unreachable."})
    return JSONResponse(content={"status": "ok"})
