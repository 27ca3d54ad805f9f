"""API routes."""

from litestar import Router

from sleep_pattern_server.api.analysis import analysis_router
from sleep_pattern_server.api.health import health_router
from sleep_pattern_server.core.config import settings

# Versioned API routers, mounted under the configured prefix
_v1_routers = [
    analysis_router,
]

api_v1_router = Router(path=settings.api_prefix, route_handlers=_v1_routers)

# - health_router: /health - no version prefix
# - api_v1_router: {api_prefix}/* - analysis endpoints
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
