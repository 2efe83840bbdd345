"""
FastAPI application for the Schema Discovery Agent.

Exposes the agent loop over HTTP. Conversations are owned by the client:
every analysis response returns the updated history, which the client
sends back with the next message (including answers to ``ask_human``
questions).

Usage:
    # Development server with auto-reload
    uvicorn schema_discovery.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging, including step narration)
    LOG_LEVEL=DEBUG uvicorn schema_discovery.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import config
from ..tools.registry import ToolRegistry
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import analysis, files, health


def configure_logging():
    """Configure logging based on LOG_LEVEL environment variable."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("schema_discovery").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Schema Discovery API server")

    logger.info("=" * 60)
    logger.info("ORCHESTRATOR CONFIGURATION")
    logger.info(f"  Base URL: {config.orchestrator.base_url or 'https://api.openai.com/v1'}")
    logger.info(f"  Model: {config.orchestrator.model}")
    logger.info(f"  Temperature: {config.orchestrator.temperature}")
    logger.info(f"  Max Steps: {config.orchestrator.max_steps}")

    logger.info("-" * 60)
    logger.info("TOOLS")
    logger.info(f"  Sample files: {config.tools.sample_files_dir}")
    logger.info(f"  Schema model: {config.tools.schema_model}")
    for name, tool in ToolRegistry.all_tools().items():
        logger.info(f"  - {name}: {tool.description[:60]}...")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(
        public_key=config.langfuse.public_key,
        secret_key=config.langfuse.secret_key,
        host=config.langfuse.host,
        debug=config.langfuse.debug,
    )
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {config.langfuse.host or 'https://cloud.langfuse.com'}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("=" * 60)

    yield

    logger.info("Shutting down Schema Discovery API server")
    shutdown_tracing()
    logger.info("Tracing client shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Schema Discovery API",
        description=(
            "Tool-calling agent that explores sample data files and infers their "
            "schemas, asking the user for clarification when it needs it."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware - allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(analysis.router, tags=["Analysis"])
    app.include_router(files.router, tags=["Files"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-serializable context values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


# Create the application instance
app = create_app()


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "schema_discovery.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        workers=1 if config.server.reload else config.server.workers,
    )


if __name__ == "__main__":
    run_server()
