"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
import logging.handlers
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from cloudnet_repository.config import RepositoryConfig, config_path_from_env
from cloudnet_repository.context import ServerContext, create_context
from cloudnet_repository.poller import ReleasePoller
from cloudnet_repository.routes.api import router as api_router
from cloudnet_repository.routes.artifacts import router as artifacts_router
from cloudnet_repository.routes.github import router as github_router
from cloudnet_repository.services.archiver import ReleaseArchiver
from cloudnet_repository.services.artifact_server import ArtifactResolver
from cloudnet_repository.services.webhook import WebhookIngress

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_FILE_NAME = "cloudnet.repo.log"
LOG_FILE_MAX_BYTES = 8_000_000


def configure_logging(debug: bool, log_dir: Path | None = None) -> None:
    """Install console logging and, when log_dir is set, a rotating log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_dir / LOG_FILE_NAME, maxBytes=LOG_FILE_MAX_BYTES, backupCount=5, encoding="utf-8"
            )
        )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def attach_services(app: FastAPI, context: ServerContext) -> ReleaseArchiver:
    """Store the context and the services built from it in app state."""
    archiver = ReleaseArchiver(context)
    app.state.context = context
    app.state.archiver = archiver
    app.state.resolver = ArtifactResolver(context)
    app.state.ingress = WebhookIngress(context, archiver)
    return archiver


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown.

    Creates production context with real implementations on startup.
    """
    config: RepositoryConfig = app.state.config
    config.archive_dir.mkdir(parents=True, exist_ok=True)
    if not config.webhook_secret:
        logger.warning("No webhook secret configured, all webhook deliveries will be rejected")

    context = create_context(config)
    archiver = attach_services(app, context)

    poll_task: asyncio.Task[None] | None = None
    if config.poll_interval > 0:
        poller = ReleasePoller(archiver, config.parents, config.poll_interval)
        poll_task = asyncio.create_task(poller.run())

    yield

    if poll_task is not None:
        poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poll_task
    await context.aclose()


def create_app(
    context: ServerContext | None = None, config: RepositoryConfig | None = None
) -> FastAPI:
    """Create FastAPI application.

    Args:
        context: Optional ServerContext for testing. If None, uses lifespan
                 to create production context from config.
        config: Configuration for production mode; loaded from
                CLOUDNET_REPO_CONFIG when omitted.

    Returns:
        Configured FastAPI application
    """
    if context is not None:
        # Test mode: use provided context, no lifespan
        app = FastAPI(title="CloudNet Repository", version="1.0.0")
        attach_services(app, context)
    else:
        app = FastAPI(title="CloudNet Repository", version="1.0.0", lifespan=lifespan)
        app.state.config = config or RepositoryConfig.load(config_path_from_env())

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    # Artifact routes contain catch-all patterns and go last
    app.include_router(api_router)
    app.include_router(github_router)
    app.include_router(artifacts_router)

    return app


def run(config: RepositoryConfig | None = None) -> None:
    """Run the server (entry point for CLI)."""
    config = config or RepositoryConfig.load(config_path_from_env())
    configure_logging(config.debug, config.log_dir)
    app = create_app(config=config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
