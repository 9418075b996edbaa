"""FastAPI surface for the claim status service."""

from .main import app, create_app

__all__ = ["app", "create_app"]
