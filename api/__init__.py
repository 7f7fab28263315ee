"""
REST API for the API manager.

A single FastAPI application exposing:
- The developer portal resource
- The notification inbox of the current user
- Callbacks for events raised by external systems
"""

from api.main import app

__all__ = ["app"]
