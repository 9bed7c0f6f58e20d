"""FastAPI dependencies resolving the services wired at startup."""

from fastapi import Request

from watchmirror.services.query_service import QueryService
from watchmirror.state import AppServices


def get_services(request: Request) -> AppServices:
    """Get the services wired by the application lifespan."""
    return request.app.state.services


def get_query_service(request: Request) -> QueryService:
    """Get query service instance."""
    return get_services(request).query_service
