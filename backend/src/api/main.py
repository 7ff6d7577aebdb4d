"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from api.routers import (
    auth,
    categories,
    collections,
    dashboard,
    export,
    health,
    prompts,
    search,
    tags,
    users,
)
from core.config import get_settings
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

# Pages reachable without a session; a session holder visiting them is sent home
AUTH_PAGE_PREFIXES = ("/login", "/register")
# Non-page paths the session gate never redirects
GATE_EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - configure logging on startup."""
    app_settings = get_settings()
    logging.basicConfig(
        level=app_settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting Primer API (dev_mode=%s)", app_settings.dev_mode)
    yield


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Redirect browser navigation based on the presence of a session cookie.

    - No session cookie on a page other than /login or /register -> /login
    - Session cookie on /login or /register -> /

    Only cookie presence is checked; API routes validate the session themselves
    and answer 401 instead of redirecting.
    """

    def __init__(self, app: ASGIApp, api_prefix: str, cookie_name: str) -> None:
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/")
        self.cookie_name = cookie_name

    def _is_exempt(self, path: str) -> bool:
        if self.api_prefix and (path == self.api_prefix or path.startswith(self.api_prefix + "/")):
            return True
        return path.startswith(GATE_EXEMPT_PATHS)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Redirect page requests that don't match the caller's session state."""
        path = request.url.path
        if self._is_exempt(path):
            return await call_next(request)

        has_session = bool(request.cookies.get(self.cookie_name))
        is_auth_page = path.startswith(AUTH_PAGE_PREFIXES)

        if not has_session and not is_auth_page:
            return RedirectResponse(url="/login", status_code=307)
        if has_session and is_auth_page:
            return RedirectResponse(url="/", status_code=307)
        return await call_next(request)


app_settings = get_settings()

app = FastAPI(
    title="Primer API",
    description="A personal prompt manager: versioned prompts with categories, tags and collections.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Translate service-layer errors into their HTTP status."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        message = str(error.get("msg", "Invalid request"))
        # Custom validators raise ValueError; pydantic prefixes those messages
        message = message.removeprefix("Value error, ")
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        if error.get("type") == "missing" and location:
            message = f"{location[-1]} is required"
        messages.append(message)
    return "; ".join(messages) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed requests and missing required fields as 400."""
    return JSONResponse(status_code=400, content={"detail": _format_validation_errors(exc)})


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    SessionGateMiddleware,
    api_prefix=app_settings.api_prefix,
    cookie_name=app_settings.session_cookie_name,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
for router in (
    auth.router,
    users.router,
    categories.router,
    collections.router,
    prompts.router,
    search.router,
    tags.router,
    export.router,
    dashboard.router,
):
    app.include_router(router, prefix=app_settings.api_prefix)
