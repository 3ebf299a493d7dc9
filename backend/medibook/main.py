import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from medibook.config import get_settings
from medibook.database import engine, Base
from medibook.exceptions import MediBookError
from medibook.rate_limiter import RateLimiter
from medibook.routers import auth as auth_router
from medibook.routers import bookings, doctors, users
import medibook.models  # noqa: F401

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables
    logger.info("Application starting up...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Shutdown
    logger.info("Application shutting down...")
    await engine.dispose()


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Middleware to add no-cache headers so account data is never cached by browsers."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
        response.headers["Expires"] = "0"
        response.headers["Pragma"] = "no-cache"
        return response


async def medibook_error_handler(request: Request, exc: MediBookError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with the first problem found."""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="MediBook API",
        description="Doctor appointment booking: accounts, authentication, profiles and slot booking",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.login_limiter = RateLimiter(
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheMiddleware)

    app.add_exception_handler(MediBookError, medibook_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(doctors.router, prefix="/api/doctors", tags=["Doctors"])
    app.include_router(bookings.router, prefix="/api/bookings", tags=["Bookings"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "service": "medibook-api"}

    return app


app = create_app()
