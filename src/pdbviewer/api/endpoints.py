"""
REST API endpoints for the PDB Structure Viewer.
Provides the retrieval proxy that re-serves RCSB structure files.
"""

from datetime import datetime
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from loguru import logger

from pdbviewer import __version__
from pdbviewer.utils.config import AppConfig, load_config
from pdbviewer.utils.pdb_handler import (
    InvalidIdentifierError,
    PDBHandler,
    StructureNotFoundError,
)
from pdbviewer.utils.settings import Settings, get_settings


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(config: Optional[AppConfig] = None,
               settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the API application.

    Args:
        config: application configuration (defaults to load_config())
        settings: environment settings (defaults to get_settings())
        transport: optional httpx transport for the upstream client
    """
    config = config or load_config()
    settings = settings or get_settings()

    app = FastAPI(
        title=f"{config.app_name} API",
        description="Retrieval proxy for RCSB structure files",
        version=__version__,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Optional GZip compression (env driven)
    if settings.api_enable_gzip:
        app.add_middleware(GZipMiddleware, minimum_size=settings.api_gzip_min_size)

    app.state.config = config
    app.state.pdb_handler = PDBHandler(config, transport=transport)

    @app.get("/", tags=["General"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": f"{config.app_name} API",
            "version": __version__,
            "description": "Retrieval proxy for RCSB structure files",
            "endpoints": {
                "structure": "/api/pdb/{id}",
                "health": "/health",
            },
        }

    @app.get("/health", tags=["General"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "upstream": config.proxy.upstream_base_url,
        }

    @app.get("/api/pdb/", tags=["Structures"])
    async def get_pdb_missing_id():
        """Requests without an identifier are a client error."""
        return _error(400, f"Invalid PDB ID. Must be {config.proxy.identifier_length} characters long.")

    @app.get("/api/pdb/{pdb_id}", tags=["Structures"])
    async def get_pdb(pdb_id: str, request: Request) -> Response:
        """
        Fetch a structure file from RCSB and return it verbatim as plain text.

        The identifier is case-insensitive and must be exactly 4 characters.
        Successful responses may be cached downstream for one hour.
        """
        handler: PDBHandler = request.app.state.pdb_handler
        try:
            pdb_text = await handler.fetch_pdb_text(pdb_id)
        except InvalidIdentifierError as e:
            return _error(400, str(e))
        except StructureNotFoundError as e:
            return _error(404, str(e))
        except Exception as e:
            logger.error(f"Error fetching PDB data for {pdb_id!r}: {e}")
            return _error(500, "Internal server error")

        return PlainTextResponse(
            pdb_text,
            media_type="text/plain",
            headers={"Cache-Control": config.proxy.cache_control},
        )

    return app


app = create_app()


def main():  # pragma: no cover - thin wrapper
    import uvicorn
    from pdbviewer.utils.logging_config import configure_logging

    settings = get_settings()
    configure_logging(json_logs=settings.json_logging, level=settings.log_level)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
