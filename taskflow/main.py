import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskflow.core.config import settings
from taskflow.core.database import Base, engine
from taskflow.core.errors import (
    AuthenticationError,
    EntityNotFoundError,
    InvalidOperationError,
    TaskFlowError,
    TenantIsolationError,
    ValidationError,
)
from taskflow.core.logging_setup import setup_logging
from taskflow.models import focus, project, section, subscription, task, task_history  # noqa: F401  (register tables)
from taskflow.routers import auth, focus as focus_router, health, projects, sections, tasks
from taskflow.routers import subscription as subscription_router

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = logging.getLogger(__name__)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="TaskFlow API",
    version="0.1.0"
)

# Most specific first: TenantIsolationError is also an InvalidOperationError
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (TenantIsolationError, 403),
    (EntityNotFoundError, 404),
    (InvalidOperationError, 409),
)


@app.exception_handler(TaskFlowError)
async def handle_taskflow_error(request: Request, exc: TaskFlowError):
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error(f"Unhandled taskflow error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(subscription_router.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(sections.router)
app.include_router(focus_router.router)
