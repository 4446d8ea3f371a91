from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import uvicorn

from app.api.endpoints import contact, debug, status as status_endpoints
from app.api.rate_limit import RateLimitExceeded, SlidingWindowRateLimiter
from app.core.config import get_settings
from app.core.logging import setup_logging
from app.services.mail_service import MailDispatchError, MailService
from app.services.validation_service import MissingFieldsError
from app.utils.security_headers import SecurityHeadersMiddleware
import logging
import json
import os

logger = logging.getLogger(__name__)

with open(os.path.join(os.path.dirname(__file__), "log_config.json"), "r") as file:
    LOGGING_CONFIG = json.load(file)

settings = get_settings()
setup_logging(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # missing credentials abort startup
    settings = get_settings()
    settings.validate()

    app.state.settings = settings
    app.state.mail_service = MailService(settings)
    app.state.rate_limiter = SlidingWindowRateLimiter(
        settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS
    )

    logger.info("Contact form server starting")
    logger.info(f"Email transport: {app.state.mail_service.transport_name}")
    logger.info(f"Email sender: {settings.EMAIL_SENDER}")
    logger.info(f"Notification email: {settings.notification_recipient}")
    logger.info(f"Allowed origins: {', '.join(settings.FRONTEND_ORIGINS)}")
    logger.info(
        f"Rate limit: {settings.RATE_LIMIT_MAX_REQUESTS} requests per "
        f"{settings.RATE_LIMIT_WINDOW_SECONDS // 60} minutes"
    )

    if settings.VERIFY_MAIL_ON_STARTUP:
        try:
            await app.state.mail_service.verify()
        except MailDispatchError as e:
            # health stays reportable, only log
            logger.error(f"Email configuration test failed ({e.kind}): {e.detail}")
            logger.error("Please check your EMAIL_SENDER and mail transport credentials")

    yield

    logger.info("Contact form server shutting down")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API accepting contact form submissions and forwarding them by email",
    version=settings.VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
)

app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(contact.router, prefix=settings.API_PREFIX, tags=["contact"])

app.include_router(status_endpoints.router, prefix=settings.API_PREFIX, tags=["status"])

app.include_router(debug.router, prefix=settings.API_PREFIX, tags=["debug"])


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "error": f"Too many requests from this IP. Please try again in {exc.window_label}.",
            "retryAfter": exc.window_label,
        },
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Unparseable request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": MissingFieldsError.message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        if request.url.path.startswith(f"{settings.API_PREFIX}/"):
            content = {
                "success": False,
                "error": "API endpoint not found",
                "availableEndpoints": status_endpoints.AVAILABLE_ENDPOINTS,
            }
        else:
            content = {"success": False, "error": "Route not found"}
        return JSONResponse(status_code=exc.status_code, content=content)

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Server error on {request.method} {request.url.path}: {str(exc)}")
    content = {"success": False, "error": "Internal server error"}
    if getattr(request.app.state, "settings", settings).is_development:
        content["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=LOGGING_CONFIG,
    )
