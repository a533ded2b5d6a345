"""FastAPI application factory for the brain REST API."""

from fastapi import APIRouter, FastAPI

from brain.api.routes import register_routes


def create_app(workspace) -> FastAPI:
    """Build and return a FastAPI app wired to the given Workspace."""
    app = FastAPI(title="local-brain", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_routes(api, workspace)
    app.include_router(api)

    return app
