"""
Main application module for the turntable capture service.

This file sets up the FastAPI application, configures CORS so a
browser-based renderer can drive the turntables from another origin,
and exposes a simple health check endpoint.

The turntable router is included under the `/api` namespace.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_turntables import router as turntables_router
from .services.settings import default_output_root


def create_app(output_root: Optional[Path] = None) -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Args:
        output_root: Directory below which each turntable's capture
            folder is created.  Defaults to the user's desktop (or home
            directory when there is no desktop).

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI()
    app.state.output_root = Path(output_root) if output_root is not None else default_output_root()

    # Allow all origins by default.  In production you should restrict
    # this to the domains that are allowed to access your API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(turntables_router, prefix="/api", tags=["turntables"])

    return app


# Create the application instance.  Uvicorn will import this when
# running `uvicorn turntable.main:app` from within the backend directory.
app = create_app()
