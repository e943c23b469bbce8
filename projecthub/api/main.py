"""
FastAPI app assembly: middleware and router wiring.
Includes the identity and health endpoints that span resource modules.
"""
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, status, APIRouter
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from projecthub.db import database
from projecthub.db.database import get_db
from projecthub.db.repositories import tasks as task_repo
from projecthub.db.repositories import users as user_repo
from projecthub.api.auth import has_identity_headers
from projecthub.api.deps import get_current_user_context
from projecthub.api.admin import router as admin_router
from projecthub.api.assets import router as assets_router
from projecthub.api.audits import router as audits_router
from projecthub.api.chat import router as chat_router
from projecthub.api.clients import router as clients_router
from projecthub.api.columns import router as columns_router
from projecthub.api.dashboard import router as dashboard_router
from projecthub.api.eods import router as eods_router
from projecthub.api.links import router as links_router
from projecthub.api.memos import router as memos_router
from projecthub.api.notifications import router as notifications_router
from projecthub.api.projects import router as projects_router
from projecthub.api.realtime import router as realtime_router
from projecthub.api.roles import router as roles_router
from projecthub.api.tasks import router as tasks_router
from projecthub.api.users import router as users_router
from projecthub.services.notification_service import NotificationService
from projecthub.services.storage import LocalStorage, storage_backend_name
from projecthub.utils.permissions import get_role_capabilities, get_role_focus
from projecthub.utils.runtime import dev_mode_active

# Database schema is managed by Alembic migrations.


def run_startup_maintenance() -> int:
    """Seed roles and board columns, then purge expired notifications."""
    db = database.open_session()
    try:
        user_repo.ensure_default_roles(db)
        task_repo.ensure_default_columns(db)
        return NotificationService(db).cleanup_expired_notifications()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    removed = await run_in_threadpool(run_startup_maintenance)
    logger.info("startup_maintenance: expired_notifications_removed=%d", removed)
    yield
    logger.info("app_shutdown")


app = FastAPI(
    title="Project Hub Service",
    description="API for managing clients, projects, tasks and daily project updates.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]
extra_origins = os.getenv("CORS_ORIGINS", "")
origins.extend(o.strip() for o in extra_origins.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        # In dev mode, allow; authentication is handled by route dependencies
        is_dev_mode = os.getenv("DEV_MODE", "false").lower() == "true"
        if not is_dev_mode and not has_identity_headers(request.headers):
            return JSONResponse(
                {"detail": "Guest mode is read-only. Sign in to perform changes."},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )
    return await call_next(request)


router = APIRouter()


@router.get("/user-info")
def get_user_info(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Return the authenticated user with role, permissions and capabilities.
    - Dev mode (DEV_MODE=true): returns the stable dev user.
    - Normal mode: reads headers set by oauth2-proxy and upserts the user.
    """
    user, current_user = user_context
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "name": user.name,
        "image": user.image,
        "role": user.role,
        "is_admin": current_user["is_admin"],
        "permissions": current_user["permissions"],
        "capabilities": get_role_capabilities(user.role),
        "focus": get_role_focus(user.role),
        "dev_mode": _dev_mode_flag(),
    }


def _dev_mode_flag() -> bool:
    try:
        return dev_mode_active()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")


app.include_router(router)
app.include_router(users_router)
app.include_router(roles_router)
app.include_router(clients_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(columns_router)
app.include_router(memos_router)
app.include_router(eods_router)
app.include_router(links_router)
app.include_router(assets_router)
app.include_router(chat_router)
app.include_router(notifications_router)
app.include_router(dashboard_router)
app.include_router(admin_router)
app.include_router(audits_router)
app.include_router(realtime_router)

# Serve locally stored uploads; Drive-backed assets carry their own URLs
if storage_backend_name() == "local":
    _local = LocalStorage()
    app.mount(_local.url_prefix, StaticFiles(directory=str(_local.root), check_dir=False), name="uploads")


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "projecthub-service"}
