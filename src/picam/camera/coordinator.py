"""
Recording coordinator.

Drives still capture and the record -> stop -> transcode lifecycle.
Every operation first wins a transition from the StateGuard, so capture
and recording never overlap, and always hands the camera back to FREE.
"""

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from picam.camera.base import BaseExecutableRunner
from picam.camera.errors import (
    NotRecording,
    ProcessInvocationError,
    RecordingCancelled,
    UnexpectedStopError,
)
from picam.camera.state import CameraState, StateGuard

logger = logging.getLogger(__name__)


@dataclass
class RecordingSession:
    """Live bookkeeping for one in-progress recording."""
    cancel_event: threading.Event
    outcome: Future
    output_path: Path
    started_at: datetime = field(default_factory=datetime.now)
    worker: Optional[threading.Thread] = None


def _remove_stale(path: Path) -> None:
    """Best-effort delete of a leftover artifact."""
    try:
        path.unlink()
        logger.debug(f"Removed stale file {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stale file {path}: {e}")


class RecordingCoordinator:
    """
    Serializes camera access across concurrent callers.

    At most one RecordingSession exists at a time. It is created when
    start_recording() wins RECORDING and dropped by stop_recording(),
    whatever the outcome.
    """

    def __init__(self, config, runner: BaseExecutableRunner, guard: Optional[StateGuard] = None):
        """
        Initialize coordinator.

        Args:
            config: Configuration object
            runner: Executable runner that does the camera work
            guard: State guard to share; a fresh one is created if omitted
        """
        self.config = config
        self.runner = runner
        self.guard = guard if guard is not None else StateGuard()

        self._session: Optional[RecordingSession] = None
        # Orders session publication in start_recording() against stop_recording()
        self._session_lock = threading.Lock()

    @property
    def state(self) -> CameraState:
        return self.guard.state

    @property
    def raw_video_path(self) -> Path:
        storage = self.config.storage
        return Path(storage.video_dir) / storage.raw_video_name

    @property
    def output_video_path(self) -> Path:
        storage = self.config.storage
        return Path(storage.video_dir) / storage.output_video_name

    # =========================================================================
    # Still capture
    # =========================================================================

    def capture(self) -> bytes:
        """
        Take a picture.

        Returns:
            Raw JPEG bytes from the capture executable

        Raises:
            GuardRejection: If the camera is busy
            ProcessInvocationError: If the capture executable fails
        """
        with self.guard.hold(CameraState.CAPTURING):
            logger.info("Capturing picture")
            return self.runner.capture()

    # =========================================================================
    # Recording lifecycle
    # =========================================================================

    def start_recording(self) -> None:
        """
        Launch the recording process and return once it is running.

        Raises:
            GuardRejection: If the camera is busy
            ProcessInvocationError: If the recording process failed to start
        """
        with self._session_lock:
            self.guard.request_transition(CameraState.RECORDING)

            try:
                session = self._launch()
            except Exception:
                self.guard.release()
                raise

            self._session = session

        logger.info(f"Recording started: {session.output_path}")

    def _launch(self) -> RecordingSession:
        """Start the worker thread and check it survived the settle delay."""
        _remove_stale(self.raw_video_path)

        session = RecordingSession(
            cancel_event=threading.Event(),
            outcome=Future(),
            output_path=self.raw_video_path,
        )
        session.worker = threading.Thread(
            target=self._run_recording,
            args=(session,),
            name="picam-recording",
            daemon=True
        )
        session.worker.start()

        # TODO: replace the fixed delay with a readiness check on the raw file size
        time.sleep(self.config.camera.start_settle_ms / 1000)

        if session.outcome.done():
            error = session.outcome.exception()
            if error is None:
                error = ProcessInvocationError(
                    self.config.camera.record_command,
                    "recording process exited during startup",
                )
            raise error

        return session

    def _run_recording(self, session: RecordingSession) -> None:
        """Worker thread body: run the recording and post its outcome once."""
        try:
            self.runner.record(
                session.cancel_event,
                session.output_path,
                self.config.camera.max_duration_sec
            )
        except Exception as e:
            session.outcome.set_exception(e)
        else:
            session.outcome.set_result(None)

    def stop_recording(self) -> str:
        """
        Stop the recording and transcode it.

        Returns:
            Path of the transcoded video

        Raises:
            NotRecording: If no recording is in progress
            GuardRejection: If a stop is already being processed
            UnexpectedStopError: If the recording ended other than by our cancellation
            ProcessInvocationError: If transcoding fails
        """
        with self._session_lock:
            self.guard.request_transition(CameraState.STOPPING)
            session, self._session = self._session, None

        try:
            if session is None:
                raise NotRecording(CameraState.STOPPING, CameraState.STOPPING)

            session.cancel_event.set()
            time.sleep(self.config.camera.stop_settle_ms / 1000)

            error = session.outcome.exception()
            if error is not None and not isinstance(error, RecordingCancelled):
                raise UnexpectedStopError(error) from error

            duration = (datetime.now() - session.started_at).total_seconds()
            logger.info(f"Recording stopped after {duration:.1f}s, transcoding")

            output_path = self.output_video_path
            _remove_stale(output_path)
            self.runner.transcode(session.output_path, output_path)
        finally:
            self.guard.release()

        logger.info(f"Recording ready: {output_path}")
        return str(output_path)

    def shutdown(self, timeout: float = 2.0) -> None:
        """Cancel any live recording and free the camera."""
        with self._session_lock:
            session, self._session = self._session, None

        if session is None:
            return

        logger.info("Cancelling active recording")
        session.cancel_event.set()
        if session.worker:
            session.worker.join(timeout=timeout)
        self.guard.release()
