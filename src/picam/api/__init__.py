"""HTTP API module for picam."""

from picam.api.routes import create_api_blueprint
from picam.api.server import APIServer

__all__ = ["create_api_blueprint", "APIServer"]
