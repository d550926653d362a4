"""
FastAPI dependencies for dependency injection.

Every shared handle (settings, database, cache, service, click recorder)
is created once in the application lifespan and stored on `app.state`;
these functions hand them to the routes.
"""

from fastapi import Request

from shortlink_app.clicks.recorder import ClickRecorder
from shortlink_app.config import Settings
from shortlink_app.services.url_service import ShortenerService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_url_service(request: Request) -> ShortenerService:
    """
    Get the ShortenerService with storage and cache injected.

    Routes depend on the service only, never on storage or cache directly.
    """
    return request.app.state.url_service


def get_click_recorder(request: Request) -> ClickRecorder:
    return request.app.state.click_recorder
