"""Litestar application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from litestar import Litestar, Request, Response
from litestar.openapi import OpenAPIConfig
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from sleep_pattern_server import __version__
from sleep_pattern_server.api import api_routers
from sleep_pattern_server.core.config import settings
from sleep_pattern_server.core.exceptions import InvariantError
from sleep_pattern_server.core.logging import configure_logging
from sleep_pattern_server.routes import root_redirect

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncIterator[None]:
    """Application lifespan manager. Logs startup configuration and shutdown."""
    logger.info(
        "Starting sleep-pattern-server",
        version=__version__,
        api_prefix=settings.api_prefix,
        inactivity_threshold_minutes=settings.inactivity_threshold_minutes,
        default_time_zone=settings.default_time_zone,
    )

    yield

    logger.info("Shutdown complete")


def invariant_error_handler(request: Request, exc: InvariantError) -> Response[dict[str, object]]:
    """Report an engine contract violation as a server error.

    The parser guarantees the engine's preconditions, so reaching here is
    a bug rather than bad user input.
    """
    logger.error("Engine invariant violated", path=request.url.path, error=str(exc))
    return Response(
        content={
            "status_code": HTTP_500_INTERNAL_SERVER_ERROR,
            "detail": "Internal Server Error",
        },
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


def create_app() -> Litestar:
    """Create Litestar application.

    Returns:
        Configured Litestar app instance
    """
    configure_logging(settings.log_level)

    return Litestar(
        route_handlers=[root_redirect, *api_routers],
        openapi_config=OpenAPIConfig(
            title="sleep-pattern-server API",
            version=__version__,
            description="Behavioral sleep-pattern estimation from phone-usage telemetry",
        ),
        exception_handlers={InvariantError: invariant_error_handler},
        lifespan=[lifespan],
        debug=settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
