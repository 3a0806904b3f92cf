"""
FastAPI application entrypoint.
Run with: uvicorn school_api.main:app --reload --port 5000 (from backend/).

API base path: /api/<resource>
  - Users:       /api/users        (profiles, roles, activation)
  - Courses:     /api/courses      (catalog, enrollment, progress)
  - Assignments: /api/assignments, Exams: /api/exams
  - Blog:        /api/blog, Events: /api/events, Forum: /api/forum
  - Support:     /api/support-tickets
  - Public site: /api/content, contact form: /api/email/contact
  - Dev only:    /api/dev (not mounted in production)

Every response is the {success, message, data?, pagination?} envelope; errors are {success: false, message, error?}.
"""
import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from school_api.api.assignments import router as assignments_router
from school_api.api.blog import router as blog_router
from school_api.api.content import router as content_router
from school_api.api.courses import router as courses_router
from school_api.api.dev import router as dev_router
from school_api.api.email import router as email_router
from school_api.api.events import router as events_router
from school_api.api.exams import router as exams_router
from school_api.api.forum import router as forum_router
from school_api.api.responses import send_error, send_not_found, send_server_error, send_success, send_unauthorized
from school_api.api.support_tickets import router as support_tickets_router
from school_api.api.users import router as users_router
from school_api.config import settings
from school_api.errors import ApiError, HygraphError, ValidationFailed
from school_api.middleware import access_log, rate_limit, security_headers
from school_api.services.hygraph import reset_hygraph_client

logger = logging.getLogger("school_api.main")

API_VERSION = "0.1.0"

app = FastAPI(
    title="St. Raguel Church School API",
    description="School management API: users, courses, assignments, exams, blog, events, forum and support, backed by Hygraph and Clerk.",
    version=API_VERSION,
)

# Registered last runs outermost: CORS, then the rate limit, then headers and the access log.
app.middleware("http")(access_log)
app.middleware("http")(security_headers)
app.middleware("http")(rate_limit)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(users_router)
app.include_router(courses_router)
app.include_router(assignments_router)
app.include_router(exams_router)
app.include_router(blog_router)
app.include_router(events_router)
app.include_router(forum_router)
app.include_router(support_tickets_router)
app.include_router(content_router)
app.include_router(email_router)
if not settings.is_production:
    app.include_router(dev_router)


@app.exception_handler(ApiError)
def handle_api_error(request: Request, exc: ApiError):
    extra = {"errors": exc.errors} if isinstance(exc, ValidationFailed) else {}
    response = send_error(exc.message, error=exc.error, status_code=exc.status_code, **extra)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return send_error("Validation failed", status_code=400, errors=errors)


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return send_not_found("Endpoint not found", path=request.url.path)
    if exc.status_code == 401:
        return send_unauthorized()
    return send_error(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(HygraphError)
def handle_hygraph_error(request: Request, exc: HygraphError):
    logger.error("Hygraph error on %s %s: %s", request.method, request.url.path, exc)
    return send_server_error(error=str(exc) if settings.debug else None)


@app.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.is_development:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return send_error("Internal server error", error=str(exc), status_code=500, stack=stack)
    return send_server_error()


@app.on_event("startup")
def startup():
    """Configure logging and check upstream config. Fail fast in production when Hygraph or Clerk is not set."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    missing = [
        name
        for name, value in (
            ("HYGRAPH_ENDPOINT", settings.hygraph_endpoint),
            ("HYGRAPH_TOKEN", settings.hygraph_token),
            ("CLERK_SECRET_KEY", settings.clerk_secret_key),
        )
        if not (value or "").strip()
    ]
    if settings.is_production:
        if missing:
            logger.critical("Missing required configuration in production: %s", ", ".join(missing))
            raise RuntimeError(f"Missing required configuration in production: {', '.join(missing)}")
        if settings.clerk_dev_bypass:
            logger.warning("CLERK_DEV_BYPASS is ignored in production.")
    elif missing:
        logger.warning("Not configured: %s. Requests that need them will fail.", ", ".join(missing))
    if settings.dev_bypass_active:
        logger.warning("Clerk dev bypass is ON: every request is treated as admin %s.", settings.clerk_dev_user_id)
    if not settings.email_host:
        logger.info("EMAIL_HOST not set: contact form messages will not be delivered.")
    logger.info("St. Raguel Church School API starting (env=%s)", settings.env)


@app.on_event("shutdown")
def shutdown():
    reset_hygraph_client()


@app.get("/")
def root():
    return send_success("Welcome to St. Raguel Church School Management System API", {
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "users": "/api/users",
            "courses": "/api/courses",
            "assignments": "/api/assignments",
            "exams": "/api/exams",
            "blog": "/api/blog",
            "events": "/api/events",
            "forum": "/api/forum",
            "supportTickets": "/api/support-tickets",
            "content": "/api/content",
            "email": "/api/email",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.env,
    })


@app.get("/health")
def health():
    """Health check (JSON)."""
    return send_success(
        "St. Raguel Church School API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.env,
    )
