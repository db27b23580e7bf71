"""
Runner for the legacy Raspberry Pi camera tools.

Uses raspistill for stills, raspivid for raw H.264 and MP4Box to wrap
the result in an MP4 container.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import List

from picam.camera.base import BaseExecutableRunner, register_runner
from picam.camera.errors import ProcessInvocationError, RecordingCancelled

logger = logging.getLogger(__name__)

# How often a running recording checks its cancel event
CANCEL_POLL_SEC = 0.05


@register_runner("raspicam")
class RaspicamRunner(BaseExecutableRunner):
    """Drives raspistill, raspivid and MP4Box as child processes."""

    def capture(self) -> bytes:
        """Capture a JPEG to stdout and return it."""
        cmd = [self.config.camera.capture_command, "-o", "-"]
        return self._run(cmd, self.config.camera.capture_timeout_sec)

    def record(
        self,
        cancel_event: threading.Event,
        output_path: Path,
        max_duration_sec: float
    ) -> None:
        """Run raspivid until it exits or cancel_event is set."""
        cmd = [
            self.config.camera.record_command,
            "-o", str(output_path),
            "-t", str(int(max_duration_sec * 1000)),
        ]
        name = cmd[0]

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessInvocationError(name, str(e)) from e

        logger.info(f"Recording process started: pid {process.pid}")

        while True:
            try:
                _, stderr = process.communicate(timeout=CANCEL_POLL_SEC)
                break
            except subprocess.TimeoutExpired:
                if cancel_event.is_set():
                    process.kill()
                    process.communicate()
                    logger.info(f"Recording process {process.pid} killed")
                    raise RecordingCancelled(name)

        if process.returncode != 0:
            raise ProcessInvocationError(
                name,
                f"exit status {process.returncode}",
                returncode=process.returncode,
                stderr=self._decode(stderr),
            )

        logger.info(f"Recording process {process.pid} exited cleanly")

    def transcode(self, input_path: Path, output_path: Path) -> None:
        """Wrap raw H.264 in MP4 with MP4Box."""
        cmd = [
            self.config.camera.transcode_command,
            "-add", str(input_path),
            str(output_path),
        ]
        self._run(cmd, self.config.camera.transcode_timeout_sec)

    def _run(self, cmd: List[str], timeout: float) -> bytes:
        """Run a command to completion and return its stdout."""
        name = cmd[0]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessInvocationError(name, f"timed out after {timeout}s") from e
        except OSError as e:
            raise ProcessInvocationError(name, str(e)) from e

        if result.returncode != 0:
            raise ProcessInvocationError(
                name,
                f"exit status {result.returncode}",
                returncode=result.returncode,
                stderr=self._decode(result.stderr),
            )

        return result.stdout

    @staticmethod
    def _decode(stderr) -> str:
        if not stderr:
            return ""
        return stderr.decode("utf-8", errors="replace").strip()
