"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from boxoffice.config import settings
from boxoffice.database import Base, engine
from boxoffice.errors import DomainError, ErrorCode

# Import routers
from boxoffice.routers import customers, events, reservations, loyalty

# Import all models so Base.metadata knows about them
from boxoffice.models.customer import Customer                   # noqa: F401
from boxoffice.models.event import Event, EventTicketConfig      # noqa: F401
from boxoffice.models.reservation import Reservation             # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INACTIVE_CUSTOMER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PRICE_UNAVAILABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_CURRENT: status.HTTP_409_CONFLICT,
    ErrorCode.NO_AVAILABILITY: status.HTTP_409_CONFLICT,
    ErrorCode.NO_FREE_PASS_AVAILABLE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INCOMPATIBLE_TICKET_TYPE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

app = FastAPI(
    title="Theater Box Office",
    description="Reservations, seat availability and loyalty passes for a theater venue",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(loyalty.router, prefix="/api/loyalty", tags=["Loyalty"])


def _error_body(code: str, message: str, details) -> dict:
    return {"code": code, "message": message, "details": jsonable_encoder(details)}


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    if status_code == status.HTTP_409_CONFLICT:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code.value, exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        errors.setdefault(field, error["msg"])
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(ErrorCode.VALIDATION_ERROR.value, "Validation failed", errors),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "Internal server error", {}),
    )


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
