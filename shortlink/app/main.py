from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink.app.api.links import cors_json, router as links_router, shortlink_error_response
from shortlink.app.core.config import settings
from shortlink.app.core.http_client import init_http_client
from shortlink.app.core.logging import get_logger, setup_logging
from shortlink.app.exceptions import ShortLinkError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[dict, None]:
        """Open the shared GitHub HTTP client for the lifetime of the app."""
        async with init_http_client() as http_client:
            if not settings.store_configured:
                logger.warning("GitHub settings incomplete; link creation will fail")
            logger.info("Application startup complete")
            yield {"http_client": http_client}

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Short Link Rule Store",
        description="Creates short links by committing to a GitHub-hosted rule document",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Answers browser preflights for any origin and requested headers;
    # responses also set the origin header explicitly.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(links_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Report whether the store configuration is complete."""
        configured = settings.store_configured
        return {
            "status": "ok" if configured else "degraded",
            "components": {
                "store": {
                    "status": "ok" if configured else "unconfigured",
                    "branch": settings.github_branch,
                },
            },
        }

    @app.exception_handler(ShortLinkError)
    async def shortlink_error_handler(request: Request, exc: ShortLinkError) -> JSONResponse:
        """Map rule store errors to HTTP responses."""
        return shortlink_error_response(exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unhandled exceptions and return a generic 500.

        The traceback stays in the server log; debug mode adds the
        exception message to the response.
        """
        logger.exception(
            "Unhandled exception",
            extra={"exception_type": type(exc).__name__},
        )
        message = "Internal Server Error"
        if settings.debug:
            message = f"Internal Server Error: {exc}"
        return cors_json({"error": message}, status_code=500)

    return app


# Create the application instance
app = create_app()
