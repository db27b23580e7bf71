"""
Picam - HTTP front end for a single Raspberry Pi camera.

Serializes still capture and H.264 recording so that only one
operation touches the camera at a time.
"""

__version__ = "1.0.0"

from picam.config import Config
from picam.app import PicamApp

__all__ = ["Config", "PicamApp", "__version__"]
