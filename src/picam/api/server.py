"""
API Server for picam.

Flask-based web server exposing the camera routes.
"""

import logging
from flask import Flask
from flask_cors import CORS

from picam.api.routes import create_api_blueprint

logger = logging.getLogger(__name__)


class APIServer:
    """Main API server class."""

    def __init__(self, app_context, host: str = "0.0.0.0", port: int = 8000,
                 cors_enabled: bool = True):
        """
        Initialize API server.

        Args:
            app_context: PicamApp instance
            host: Host to bind to
            port: Port to listen on
            cors_enabled: Allow cross-origin requests
        """
        self.app_context = app_context
        self.host = host
        self.port = port
        self.cors_enabled = cors_enabled
        self.flask_app = self._create_flask_app()

    def _create_flask_app(self) -> Flask:
        """Create and configure Flask application."""
        app = Flask(__name__)

        if self.cors_enabled:
            CORS(app)

        app.register_blueprint(create_api_blueprint(self.app_context))

        @app.errorhandler(500)
        def server_error(e):
            """Handle 500 errors."""
            logger.error(f"Server error: {e}")
            return {"error": "Internal server error"}, 500

        return app

    def run(self, debug: bool = False) -> None:
        """
        Run the Flask development server.

        Args:
            debug: Enable debug mode
        """
        logger.info(f"Starting server on {self.host}:{self.port}")
        self.flask_app.run(
            host=self.host,
            port=self.port,
            debug=debug,
            threaded=True,
            use_reloader=False
        )

    def get_wsgi_app(self):
        """Get WSGI application for production deployment."""
        return self.flask_app
