"""Main FastAPI application module.

This module initializes the FastAPI application, registers all route handlers
and translates application exceptions into HTTP responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from evalecole import config
from evalecole.api.routes import admin, auth, class_route, dashboard, points, rankings, setup
from evalecole.core.dependencies import get_store
from evalecole.core.exceptions import (
    AuthenticationError,
    ClassNotFoundError,
    ConfirmationRequiredError,
    EvalEcoleError,
    ProvisioningError,
    RouteNotPermittedError,
    StoreError,
    SubmissionInProgressError,
    UserNotFoundError,
    ValidationError,
)
from evalecole.core.logging_config import setup_logging
from evalecole.utils.entity_store import ProvisioningStatus

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Éval'École API",
    description="Suivi des points attribués aux adultes de l'établissement.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(points.router)
app.include_router(rankings.router)
app.include_router(admin.router)
app.include_router(class_route.router)
app.include_router(setup.router)


# --- Exception handlers ---

# Most specific classes first; the first isinstance match wins
_STATUS_BY_EXCEPTION = (
    (ProvisioningError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (ClassNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (SubmissionInProgressError, status.HTTP_429_TOO_MANY_REQUESTS),
)


@app.exception_handler(RouteNotPermittedError)
async def route_not_permitted_handler(request: Request, exc: RouteNotPermittedError):
    """Send the user back to the dashboard instead of failing."""
    logger.info("Redirecting %s away from %s", exc.role, exc.route)
    return RedirectResponse(
        url=str(app.url_path_for("dashboard")),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@app.exception_handler(ConfirmationRequiredError)
async def confirmation_required_handler(request: Request, exc: ConfirmationRequiredError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": exc.prompt,
            "operation": exc.operation,
            "subject": exc.subject,
            "confirmToken": exc.token,
        },
    )


@app.exception_handler(EvalEcoleError)
async def eval_ecole_error_handler(request: Request, exc: EvalEcoleError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            status_code = code
            break

    content = {"detail": str(exc)}
    if isinstance(exc, ProvisioningError):
        content["setupUrl"] = str(app.url_path_for("setup_script"))
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=content)


@app.on_event("startup")
def probe_store() -> None:
    """Log whether the store is usable. The server starts either way."""
    store_factory = app.dependency_overrides.get(get_store, get_store)
    try:
        store_status = store_factory().initialize()
    except EvalEcoleError as e:
        logger.error("Store probe failed: %s", e)
        return
    if store_status == ProvisioningStatus.NEEDS_PROVISIONING:
        logger.warning(
            "Store needs provisioning: run `evalecole provision` or the script "
            "served at /api/setup/script"
        )
    else:
        logger.info("Store ready (%s backend)", config.STORE_BACKEND)


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API information and documentation links."""
    return {
        "name": "Éval'École API",
        "version": "1.0.0",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    return {"status": "ok"}
