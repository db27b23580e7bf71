"""
Simulation runner for testing.

Provides a virtual camera that works without hardware.
Useful for development and testing on non-Pi systems.
"""

import logging
import shutil
import threading
from datetime import datetime
from pathlib import Path

from picam.camera.base import BaseExecutableRunner, register_runner
from picam.camera.errors import ProcessInvocationError, RecordingCancelled

logger = logging.getLogger(__name__)

# Smallest well-formed JPEG: SOI, a bare JFIF APP0 segment, EOI
PLACEHOLDER_JPEG = (
    b"\xff\xd8"
    b"\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


@register_runner("simulation")
class SimulationRunner(BaseExecutableRunner):
    """
    Virtual camera for testing without hardware.

    Writes placeholder files instead of real video, but honours the same
    cancellation and duration contract as a real recording process.
    """

    def __init__(self, config):
        """Initialize simulation runner."""
        super().__init__(config)
        logger.info("Simulation runner initialized")

    def capture(self) -> bytes:
        """Return a placeholder JPEG."""
        logger.info("[SIMULATION] Picture captured")
        return PLACEHOLDER_JPEG

    def record(
        self,
        cancel_event: threading.Event,
        output_path: Path,
        max_duration_sec: float
    ) -> None:
        """Write a placeholder raw file and wait for cancellation."""
        output_path = Path(output_path)
        try:
            output_path.write_text(
                f"SIMULATION: {datetime.now().isoformat()}\n"
            )
        except OSError as e:
            raise ProcessInvocationError("simulation", str(e)) from e

        logger.info(f"[SIMULATION] Recording to {output_path}")

        if cancel_event.wait(max_duration_sec):
            logger.info("[SIMULATION] Recording cancelled")
            raise RecordingCancelled("simulation")

        logger.info("[SIMULATION] Recording reached duration bound")

    def transcode(self, input_path: Path, output_path: Path) -> None:
        """Copy the raw file to the output path."""
        try:
            shutil.copyfile(input_path, output_path)
        except OSError as e:
            raise ProcessInvocationError("simulation", str(e)) from e

        logger.info(f"[SIMULATION] Transcoded {input_path} -> {output_path}")
