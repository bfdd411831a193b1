import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.events import manager
from app.core.exceptions import EngineError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

# Set up CORS

app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    """Typed engine failures become JSON error responses, never 500s"""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    """Capture the server loop for dashboard broadcasts and create tables if needed"""
    manager.loop = asyncio.get_running_loop()

    try:
        from app.db.database import init_db
        init_db()
    except Exception as e:
        logger.error(f"Could not initialize database: {e}", exc_info=True)
        logger.error("Run 'python init_db.py' or 'alembic upgrade head' manually to create the database tables.")


@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME} API"}
