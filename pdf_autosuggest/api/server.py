"""
FastAPI application factory.
"""

from fastapi import FastAPI

from .. import __version__
from ..search import AutosuggestService
from .routes import router


def create_app(service: AutosuggestService) -> FastAPI:
    """
    Create the HTTP application around an already-built service.

    The service is created once at startup and lives for the whole
    process; every request handler reads it from the application state.
    """
    app = FastAPI(
        title="PDF Autosuggest",
        description="Keyword autosuggestions over a local PDF collection",
        version=__version__
    )

    app.state.service = service
    app.include_router(router)

    return app
