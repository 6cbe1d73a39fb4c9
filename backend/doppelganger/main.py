"""FastAPI application bootstrap for the decoy HTTP endpoint."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from .mcp.schema import CapabilitySurface
from .mcp.transports import StatelessMCPEndpoint
from .settings import ServeSettings

MCP_PATH = "/mcp"
MCP_ALIAS_PATH = "/mcp/"
MCP_METHODS = ["GET", "POST", "DELETE"]


class _CapabilityFilter(logging.Filter):
    """Ensure every log record has a capability attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "capability"):
            record.capability = "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout belongs to the stdio transport."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [capability=%(capability)s] %(name)s: %(message)s",
    )
    root_logger = logging.getLogger()
    capability_filter = _CapabilityFilter()
    for handler in root_logger.handlers:
        handler.addFilter(capability_filter)


def create_app(surface: CapabilitySurface, *, json_response: bool = True) -> FastAPI:
    """Construct the FastAPI application serving ``surface`` statelessly."""
    app = FastAPI(
        title=surface.identity.name,
        version=surface.identity.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.surface = surface

    endpoint = StatelessMCPEndpoint(surface, json_response=json_response)
    app.add_route(MCP_PATH, endpoint, methods=MCP_METHODS, include_in_schema=False)
    app.add_route(MCP_ALIAS_PATH, endpoint, methods=MCP_METHODS, include_in_schema=False)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "server": surface.identity.name}

    return app


async def serve_http(surface: CapabilitySurface, settings: ServeSettings) -> None:
    """Run the HTTP endpoint with uvicorn until interrupted."""
    app = create_app(surface, json_response=settings.json_response)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = uvicorn.Server(config)
    logger = logging.getLogger(__name__)
    logger.info(
        "%s is running on http://%s:%s", surface.identity.name, settings.host, settings.port
    )
    logger.info("MCP endpoint: http://%s:%s%s", settings.host, settings.port, MCP_PATH)
    await server.serve()
