"""
FastAPI Dependencies for the Social Battery API.

The store and the assistant are created once per app (see create_app)
and live on app.state.
"""

from fastapi import Request

from src.services.assistant import SocialBatteryAssistant
from src.services.state_store import SocialBatteryStore


def get_store(request: Request) -> SocialBatteryStore:
    """The app's SocialBatteryStore."""
    store: SocialBatteryStore = request.app.state.store
    return store


def get_assistant(request: Request) -> SocialBatteryAssistant:
    """The app's SocialBatteryAssistant."""
    assistant: SocialBatteryAssistant = request.app.state.assistant
    return assistant
