"""
Main picam application.

Wires the configuration, executable runner, recording coordinator and
HTTP server together.
"""

import os
import signal
import logging
import sys
from typing import Optional

from picam.config import Config
from picam.camera import RecordingCoordinator, create_runner, get_available_runners
from picam.api import APIServer

logger = logging.getLogger(__name__)


class PicamApp:
    """
    Main application class.

    Owns the single camera coordinator and the server exposing it.
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Config] = None):
        """
        Initialize picam application.

        Args:
            config_path: Optional path to configuration file
            config: Pre-built configuration; skips loading from disk
        """
        self.config = config if config is not None else Config.load(config_path)

        self.coordinator: Optional[RecordingCoordinator] = None
        self.api_server: Optional[APIServer] = None

        self._running = False

    def _setup_logging(self) -> None:
        """Configure logging based on mode."""
        if self.config.production_mode:
            logging.basicConfig(
                level=logging.INFO,
                format="%(levelname)s - %(message)s",
                handlers=[logging.StreamHandler(sys.stdout)]
            )
        else:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                handlers=[logging.StreamHandler(sys.stdout)]
            )

    def _signal_handler(self, signum, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.shutdown()
        sys.exit(0)

    def initialize(self) -> None:
        """
        Build the runner, coordinator and API server.

        Raises:
            ValueError: If the configured runner type is unknown
        """
        runner_type = self.config.camera.runner
        runner = create_runner(runner_type, self.config)
        if runner is None:
            raise ValueError(
                f"Unknown runner type: {runner_type}. "
                f"Available: {get_available_runners()}"
            )
        logger.info(f"Using {runner_type} runner")

        self.coordinator = RecordingCoordinator(self.config, runner)

        self.api_server = APIServer(
            self,
            host=self.config.server.host,
            port=self.config.server.port,
            cors_enabled=self.config.server.cors_enabled
        )

    def run(self) -> None:
        """
        Start the application.

        Blocks until shutdown is requested.
        """
        self._setup_logging()

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            self.initialize()
        except ValueError as e:
            logger.error(f"Failed to initialize: {e}")
            sys.exit(1)

        self._running = True

        logger.info(f"Starting server on port :{self.config.server.port}")
        try:
            self.api_server.run(debug=not self.config.production_mode)
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def fatal(self, message: str) -> None:
        """Log an unrecoverable condition and terminate immediately."""
        logger.critical(message)
        os._exit(1)

    def shutdown(self) -> None:
        """Cancel any live recording and stop."""
        if not self._running:
            return

        self._running = False
        logger.info("Shutting down picam...")

        if self.coordinator:
            self.coordinator.shutdown()

        logger.info("Shutdown complete")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Picam camera server")
    parser.add_argument(
        "-p", "--port",
        type=int,
        help="port to bind to (default 8000)",
        default=None
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode"
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use the simulation runner instead of the camera"
    )

    args = parser.parse_args()

    app = PicamApp(config_path=args.config)

    if args.port is not None:
        app.config.server.port = args.port
    if args.dev:
        app.config.production_mode = False
    if args.simulate:
        app.config.camera.runner = "simulation"

    app.run()


if __name__ == "__main__":
    main()
