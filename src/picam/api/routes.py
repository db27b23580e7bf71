"""
HTTP routes for picam.

GET  /pic.jpg      - take a picture
POST /video/start  - start recording
GET  /video/stop   - stop recording and download the MP4
"""

import logging
from pathlib import Path
from flask import Blueprint, jsonify, Response

from picam.camera.errors import PicamError

logger = logging.getLogger(__name__)


def _error_response(e: Exception):
    return jsonify({"error": str(e)}), 400


def create_api_blueprint(app_context):
    """
    Create Flask blueprint with the camera routes.

    Args:
        app_context: PicamApp instance (needs .coordinator and .fatal())

    Returns:
        Flask Blueprint
    """
    api = Blueprint("api", __name__)

    def get_coordinator():
        return app_context.coordinator

    @api.route("/pic.jpg", methods=["GET"])
    def take_picture():
        """Capture a still and return it as JPEG."""
        try:
            picture = get_coordinator().capture()
        except PicamError as e:
            logger.warning(f"Unable to capture picture: {e}")
            return _error_response(e)

        return Response(picture, mimetype="image/jpeg")

    @api.route("/video/start", methods=["POST"])
    def start_recording():
        """Start recording in the background."""
        try:
            get_coordinator().start_recording()
        except PicamError as e:
            logger.warning(f"Unable to start recording: {e}")
            return _error_response(e)

        return "", 200

    @api.route("/video/stop", methods=["GET"])
    def stop_recording():
        """Stop recording, transcode and return the MP4."""
        try:
            filename = get_coordinator().stop_recording()
        except PicamError as e:
            logger.warning(f"Unable to stop recording: {e}")
            return _error_response(e)

        try:
            video = Path(filename).read_bytes()
        except OSError as e:
            app_context.fatal(f"Unable to read video output {filename}: {e}")
            return jsonify({"error": "Internal server error"}), 500

        return Response(video, mimetype="video/mp4")

    return api
