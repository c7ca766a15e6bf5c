"""
FastAPI application - entry point of the inspection AI service
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from inspection_ai.config import get_settings
from inspection_ai.core.logging import setup_logging, get_logger
from inspection_ai.api.v1.router import api_router

settings = get_settings()
setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logging"""
    logger.info(
        "Starting inspection AI service",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        ai_configured=settings.ai_configured
    )

    if settings.AI_ENABLED and not settings.ai_configured:
        logger.warning("AI is enabled but RUNPOD_API_KEY is not set")

    yield

    logger.info("Shutting down inspection AI service")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Distance and observation code suggestions for pipe inspection frames",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    """Redirect the root to the docs"""
    return RedirectResponse(url="/docs")


@app.get("/ping", include_in_schema=False)
async def ping():
    return {"status": "pong"}


if __name__ == "__main__":
    import uvicorn

    logger.info(
        "Starting server",
        host=settings.HOST,
        port=settings.PORT
    )

    uvicorn.run(
        "inspection_ai.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
