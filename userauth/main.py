import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from contextlib import asynccontextmanager
from userauth.auth import cleanup_expired_sessions
from userauth.database import SessionLocal, init_db
from userauth.exceptions import LoginRequired, ServiceUnavailable
from userauth.flows import SERVICE_ERROR
from userauth.middleware.logging import LoggingMiddleware, setup_logging
from userauth.routers import auth_router
from userauth.schemas import HealthResponse
from userauth.config import get_settings

VERSION = "1.0.0"

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create tables and sweep sessions that expired while down.
    """
    init_db()
    db = SessionLocal()
    try:
        removed = cleanup_expired_sessions(db)
    finally:
        db.close()
    logger.info("Startup complete, removed %s expired sessions", removed)
    yield


app = FastAPI(
    title="User Auth",
    description="Registration, login and session handling",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(LoggingMiddleware)
app.include_router(auth_router.router)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(auth_router.LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(ServiceUnavailable)
async def service_unavailable_handler(request: Request, exc: ServiceUnavailable):
    return auth_router.render_error(request, SERVICE_ERROR, status.HTTP_503_SERVICE_UNAVAILABLE)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="running", version=VERSION)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "userauth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
