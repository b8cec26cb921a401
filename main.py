"""
Social Battery -- Application Entry Point.

Starts the FastAPI server via uvicorn.

Usage:
    python main.py              # Development (reload when SOCIAL_BATTERY_DEV_MODE=1)
    uvicorn main:app --host 0.0.0.0 --port 8000  # Production
"""

from __future__ import annotations

import os

import uvicorn

from src.api import create_app
from src.config.battery import BatterySettings
from src.lib.logging import setup_logging

settings = BatterySettings.from_env()
setup_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("SOCIAL_BATTERY_HOST", "0.0.0.0"),
        port=int(os.getenv("SOCIAL_BATTERY_PORT", "8000")),
        reload=settings.dev_mode,
        log_config=None,
        log_level="info",
    )
