"""
REST API startup and shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from shared.infrastructure.events import close_redis_pool
from rest_api.models import Base
from rest_api.services.events import build_queue_notifier


def check_configuration() -> None:
    """
    Refuse to start in production with default secrets.
    Elsewhere the problems are only logged.
    """
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Configuration problem", problem=problem)

    if problems and settings.environment == "production":
        raise RuntimeError("Insecure production configuration: " + "; ".join(problems))
    if problems:
        logger.warning("Using development defaults", environment=settings.environment)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)

    # One notifier for the process; endpoints get it via get_queue_notifier
    app.state.queue_notifier = build_queue_notifier(settings)
    logger.info("Queue notifier ready", backend=settings.queue_notifier_backend)

    yield

    logger.info("Shutting down REST API")
    await close_redis_pool()
