"""Shared test fixtures for the picam test suite."""

import threading
from pathlib import Path

import pytest

from picam.config import Config
from picam.camera.base import BaseExecutableRunner
from picam.camera.coordinator import RecordingCoordinator
from picam.camera.errors import RecordingCancelled


class FakeRunner(BaseExecutableRunner):
    """
    Scriptable runner that records how it was used.

    Tracks how many camera operations are active at once so tests can
    assert mutual exclusion.
    """

    def __init__(self, config):
        super().__init__(config)
        self.picture = b"\xff\xd8fake-jpeg\xff\xd9"
        self.capture_error = None
        self.launch_error = None
        self.exit_error = None
        self.clean_exit_on_cancel = False
        self.transcode_error = None

        # Block inside capture()/transcode() until set
        self.capture_gate = None
        self.transcode_gate = None
        self.capture_entered = threading.Event()
        self.transcode_entered = threading.Event()

        self.capture_calls = 0
        self.record_calls = 0
        self.transcode_calls = []

        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def _enter(self) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def _leave(self) -> None:
        with self._lock:
            self.active -= 1

    def capture(self) -> bytes:
        self._enter()
        try:
            self.capture_calls += 1
            self.capture_entered.set()
            if self.capture_gate is not None:
                self.capture_gate.wait(5)
            if self.capture_error is not None:
                raise self.capture_error
            return self.picture
        finally:
            self._leave()

    def record(self, cancel_event, output_path, max_duration_sec) -> None:
        self.record_calls += 1
        if self.launch_error is not None:
            raise self.launch_error

        self._enter()
        try:
            Path(output_path).write_bytes(b"raw-h264")
            cancel_event.wait(max_duration_sec)
            if self.exit_error is not None:
                raise self.exit_error
            if cancel_event.is_set() and not self.clean_exit_on_cancel:
                raise RecordingCancelled("fake")
        finally:
            self._leave()

    def transcode(self, input_path, output_path) -> None:
        self._enter()
        try:
            self.transcode_calls.append((Path(input_path), Path(output_path)))
            self.transcode_entered.set()
            if self.transcode_gate is not None:
                self.transcode_gate.wait(5)
            if self.transcode_error is not None:
                raise self.transcode_error
            Path(output_path).write_bytes(b"mp4:" + Path(input_path).read_bytes())
        finally:
            self._leave()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config writing into a temp dir with no settle delays."""
    cfg = Config()
    cfg.storage.video_dir = str(tmp_path)
    cfg.camera.start_settle_ms = 0
    cfg.camera.stop_settle_ms = 0
    return cfg


@pytest.fixture
def runner(config: Config) -> FakeRunner:
    return FakeRunner(config)


@pytest.fixture
def coordinator(config: Config, runner: FakeRunner):
    coord = RecordingCoordinator(config, runner)
    yield coord
    coord.shutdown()
