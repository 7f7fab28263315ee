"""
FastAPI application for the API manager.

This application provides:
1. The developer portal resource (/devportal/...)
2. The caller's notification inbox (/notifications)
3. Callbacks for external events such as SSO account creation (/events/...)

While the app runs, the notification producers and the email dispatcher are
attached to the event bus.

Run with:
    uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api import developer_portal, events, inbox
from api.dependencies import build_notification_pipeline
from core.config import get_settings
from core.exceptions import ManagerError

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Attach the notification pipeline to the bus for the lifetime of the app."""
    logger.info("Starting API Manager")
    pipeline = build_notification_pipeline()
    pipeline.start()
    app.state.notification_pipeline = pipeline
    yield
    pipeline.stop()
    logger.info("Shutting down")


app = FastAPI(
    title="API Manager",
    description="""
    Developer portal and notifications for the API manager.

    ## Endpoints

    - `/devportal/*` - APIs, versions, plans and policies exposed to developers
    - `/notifications` - The caller's notification inbox
    - `/events/*` - Callbacks from external systems (SSO)

    The caller is identified by the `X-Apiman-User` header set by the authenticating proxy.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(developer_portal.router)
app.include_router(inbox.router)
app.include_router(events.router)


@app.exception_handler(ManagerError)
async def manager_error_handler(request: Request, exc: ManagerError):
    if exc.http_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.http_code,
        content={
            "type": type(exc).__name__,
            "errorCode": exc.error_code,
            "message": exc.message,
        },
    )


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "api-manager"}
