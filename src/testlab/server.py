# server.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app.api.routers.health_router import router as health_router
from .app.api.routers.test_suite_router import router as test_suite_router
from .common.logger import LoggerFactory, LoggerType, LogLevel
from .infra.configs.app_config import settings
from .infra.di.container import get_container

LoggerFactory.configure(
    level=LogLevel.DEBUG if settings.debug else LogLevel.parse(settings.log_level),
    log_file=settings.log_file,
)
logger = LoggerFactory.get_logger(name="server", logger_type=LoggerType.STANDARD)

# Configure the global container
container = get_container()
container.config.from_dict(
    {
        "repository": {"data_dir": settings.data_dir},
        "http": {
            "timeout": settings.http_timeout,
            "verify_ssl": settings.http_verify_ssl,
            "follow_redirects": settings.http_follow_redirects,
        },
    }
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}, data dir: {settings.data_dir}")

    yield

    logger.info("Shutting down application...")
    await container.rest_api_caller().cleanup()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Runs suites of saved HTTP requests and flows and reports per-test results",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(test_suite_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error": str(exc)},
    )


def main() -> None:
    import uvicorn

    uvicorn.run(
        "testlab.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
