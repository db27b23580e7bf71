"""
Abstract base class for executable runners.

A runner is the only thing that actually drives the camera. Implement
this interface to support a different capture toolchain:
- raspistill / raspivid / MP4Box (legacy Raspberry Pi camera stack)
- Virtual/test cameras
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
import logging
import threading

logger = logging.getLogger(__name__)


class BaseExecutableRunner(ABC):
    """
    Abstract base class for executable runners.

    Runners raise exceptions from picam.camera.errors on failure and
    never return error values.

    Example usage:
        @register_runner("libcamera")
        class LibcameraRunner(BaseExecutableRunner):
            def capture(self) -> bytes:
                ...
    """

    def __init__(self, config):
        """
        Initialize the runner.

        Args:
            config: Configuration object with camera settings
        """
        self.config = config

    @abstractmethod
    def capture(self) -> bytes:
        """
        Take a still picture.

        Returns:
            JPEG image bytes

        Raises:
            ProcessInvocationError: If the capture executable fails
        """
        pass

    @abstractmethod
    def record(
        self,
        cancel_event: threading.Event,
        output_path: Path,
        max_duration_sec: float
    ) -> None:
        """
        Record raw H.264 video until cancelled or the duration bound is hit.

        Blocks until the recording process has exited.

        Args:
            cancel_event: Set by the caller to kill the recording
            output_path: Raw video file to write
            max_duration_sec: Safety bound on recording length

        Raises:
            RecordingCancelled: If the process was killed via cancel_event
            ProcessInvocationError: If the process failed to launch or exited non-zero
        """
        pass

    @abstractmethod
    def transcode(self, input_path: Path, output_path: Path) -> None:
        """
        Convert raw video into the delivery container.

        Raises:
            ProcessInvocationError: If the transcode executable fails
        """
        pass


# =============================================================================
# Runner Registry
# =============================================================================

_runner_registry: Dict[str, type] = {}


def register_runner(runner_type: str):
    """
    Decorator to register a runner implementation.

    Usage:
        @register_runner("raspicam")
        class RaspicamRunner(BaseExecutableRunner):
            ...
    """
    def decorator(cls):
        _runner_registry[runner_type] = cls
        logger.debug(f"Registered runner type: {runner_type}")
        return cls
    return decorator


def get_available_runners() -> list:
    """Get list of registered runner types."""
    return list(_runner_registry.keys())


def create_runner(runner_type: str, config) -> Optional[BaseExecutableRunner]:
    """
    Create a runner of the specified type.

    Args:
        runner_type: Registered runner name (e.g., "raspicam", "simulation")
        config: Configuration object

    Returns:
        Runner instance or None if type not found
    """
    if runner_type not in _runner_registry:
        logger.error(f"Unknown runner type: {runner_type}. Available: {list(_runner_registry.keys())}")
        return None

    return _runner_registry[runner_type](config)
