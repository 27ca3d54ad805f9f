"""Health check endpoint."""

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK

from sleep_pattern_server import __version__
from sleep_pattern_server.schemas.export import EXPORT_SCHEMA_VERSION
from sleep_pattern_server.services.templates import TEMPLATES_VERSION


@get("/health", status_code=HTTP_200_OK, sync_to_thread=False)
def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Status, server version, and the wording/export versions in use
    """
    return {
        "status": "ok",
        "version": __version__,
        "templates_version": TEMPLATES_VERSION,
        "data_format_version": EXPORT_SCHEMA_VERSION,
    }


health_router = Router(path="/", route_handlers=[health_check], tags=["Health"])
