"""
MODO Creator Verse FastAPI Application Entry Point
FastAPI 应用入口
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from modo import __version__
from modo.config import settings
from modo.database import get_database
from modo.exceptions import ModoError
from modo.routers import (
    admin_ai_router,
    admin_router,
    ai_router,
    animations_router,
    characters_router,
    investing_router,
    licensing_router,
    moodboards_router,
    projects_router,
    scenes_router,
    stories_router,
    strategic_plans_router,
    team_router,
    universes_router,
    users_router,
    watch_router,
)
from modo.utils.logger import get_logger

logger = get_logger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])

app = FastAPI(
    title="MODO Creator Verse API",
    description="AI-assisted IP Bible creation platform / AI 辅助的 IP Bible 创作平台",
    version=__version__,
    debug=settings.debug,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ModoError)
async def modo_error_handler(request: Request, exc: ModoError):
    """Business errors render as {"success": false, "error": ...} with their status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and return a safe 500 response."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Dual mount: "/" for the dev proxy, "/api" for direct frontend calls
routers = [
    users_router,
    ai_router,
    admin_ai_router,
    admin_router,
    projects_router,
    stories_router,
    characters_router,
    universes_router,
    moodboards_router,
    scenes_router,
    animations_router,
    licensing_router,
    investing_router,
    watch_router,
    strategic_plans_router,
    team_router,
]

for router in routers:
    app.include_router(router)
    app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint / 健康检查"""
    try:
        database_ok = await get_database().ping()
    except SQLAlchemyError as e:
        logger.warning(f"Database ping failed: {e}")
        database_ok = False
    return {
        "status": "ok",
        "version": app.version,
        "database": "connected" if database_ok else "unavailable",
    }


@app.on_event("startup")
async def on_startup():
    """Startup event handler / 启动事件处理"""
    if settings.auto_create_tables:
        await get_database().create_all()


@app.on_event("shutdown")
async def on_shutdown():
    await get_database().dispose()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting MODO Creator Verse on {settings.host}:{settings.port}")
    uvicorn.run(
        "modo.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
