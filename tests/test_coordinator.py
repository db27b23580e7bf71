"""Tests for picam.camera.coordinator."""

import random
import threading
from pathlib import Path

import pytest

from picam.camera.coordinator import RecordingCoordinator
from picam.camera.errors import (
    CameraBusyCapturing,
    CameraBusyProcessing,
    CameraBusyRecording,
    GuardRejection,
    NotRecording,
    PicamError,
    ProcessInvocationError,
    UnexpectedStopError,
)
from picam.camera.simulation import SimulationRunner
from picam.camera.state import CameraState, StateGuard


def run_in_thread(fn):
    """Run fn in a thread, capturing its result or exception."""
    result = {}

    def target():
        try:
            result["value"] = fn()
        except Exception as e:
            result["error"] = e

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, result


class TestCapture:

    def test_returns_picture_and_frees(self, coordinator, runner) -> None:
        assert coordinator.capture() == runner.picture
        assert runner.capture_calls == 1
        assert coordinator.state is CameraState.FREE

    def test_error_propagates_and_frees(self, coordinator, runner) -> None:
        runner.capture_error = ProcessInvocationError("raspistill", "exit status 70", returncode=70)

        with pytest.raises(ProcessInvocationError) as exc_info:
            coordinator.capture()

        assert exc_info.value is runner.capture_error
        assert coordinator.state is CameraState.FREE

    def test_blocks_everything_while_capturing(self, coordinator, runner) -> None:
        runner.capture_gate = threading.Event()
        thread, result = run_in_thread(coordinator.capture)
        assert runner.capture_entered.wait(5)

        try:
            assert coordinator.state is CameraState.CAPTURING
            with pytest.raises(CameraBusyCapturing):
                coordinator.capture()
            with pytest.raises(CameraBusyCapturing):
                coordinator.start_recording()
            with pytest.raises(CameraBusyCapturing):
                coordinator.stop_recording()
        finally:
            runner.capture_gate.set()
            thread.join(5)

        assert result["value"] == runner.picture
        assert runner.capture_calls == 1
        assert coordinator.state is CameraState.FREE

    def test_rejected_while_recording(self, coordinator, runner) -> None:
        coordinator.start_recording()

        with pytest.raises(CameraBusyRecording):
            coordinator.capture()

        assert runner.capture_calls == 0
        assert coordinator.state is CameraState.RECORDING


class TestStartRecording:

    def test_success_leaves_recording(self, coordinator, runner) -> None:
        coordinator.start_recording()

        assert coordinator.state is CameraState.RECORDING
        assert runner.record_calls == 1

    def test_removes_stale_raw_file(self, coordinator, runner) -> None:
        runner.launch_error = ProcessInvocationError("raspivid", "no camera")
        coordinator.config.camera.start_settle_ms = 200
        stale = coordinator.raw_video_path
        stale.write_bytes(b"old recording")

        with pytest.raises(ProcessInvocationError):
            coordinator.start_recording()

        assert not stale.exists()

    def test_second_start_is_busy(self, coordinator, runner) -> None:
        coordinator.start_recording()

        with pytest.raises(CameraBusyRecording):
            coordinator.start_recording()

        assert runner.record_calls == 1
        assert coordinator.state is CameraState.RECORDING

    def test_launch_failure_restores_free(self, coordinator, runner) -> None:
        runner.launch_error = ProcessInvocationError("raspivid", "No such file or directory")
        coordinator.config.camera.start_settle_ms = 200

        with pytest.raises(ProcessInvocationError) as exc_info:
            coordinator.start_recording()

        assert exc_info.value is runner.launch_error
        assert coordinator.state is CameraState.FREE

        with pytest.raises(NotRecording):
            coordinator.stop_recording()

    def test_clean_exit_during_startup_is_failure(self, config, coordinator, runner) -> None:
        config.camera.max_duration_sec = 0
        config.camera.start_settle_ms = 200

        with pytest.raises(ProcessInvocationError, match="exited during startup"):
            coordinator.start_recording()

        assert coordinator.state is CameraState.FREE


class TestStopRecording:

    def test_full_cycle(self, coordinator, runner) -> None:
        coordinator.start_recording()
        assert coordinator.state is CameraState.RECORDING

        with pytest.raises(CameraBusyRecording):
            coordinator.start_recording()

        filename = coordinator.stop_recording()

        assert filename == str(coordinator.output_video_path)
        assert Path(filename).read_bytes() == b"mp4:raw-h264"
        assert runner.transcode_calls == [
            (coordinator.raw_video_path, coordinator.output_video_path)
        ]
        assert coordinator.state is CameraState.FREE

    def test_not_recording_when_free(self, coordinator, runner) -> None:
        with pytest.raises(NotRecording):
            coordinator.stop_recording()

        assert coordinator.state is CameraState.FREE
        assert runner.transcode_calls == []

    def test_unexpected_exit_error(self, coordinator, runner) -> None:
        runner.exit_error = ProcessInvocationError("raspivid", "exit status 1", returncode=1)
        coordinator.start_recording()

        with pytest.raises(UnexpectedStopError, match="unexpected error closing camera") as exc_info:
            coordinator.stop_recording()

        assert exc_info.value.cause is runner.exit_error
        assert exc_info.value.__cause__ is runner.exit_error
        assert runner.transcode_calls == []
        assert coordinator.state is CameraState.FREE

    def test_clean_exit_is_success(self, coordinator, runner) -> None:
        runner.clean_exit_on_cancel = True
        coordinator.start_recording()

        filename = coordinator.stop_recording()

        assert Path(filename).exists()
        assert coordinator.state is CameraState.FREE

    def test_removes_stale_output(self, coordinator, runner) -> None:
        coordinator.output_video_path.write_bytes(b"previous video")
        coordinator.start_recording()

        filename = coordinator.stop_recording()

        assert Path(filename).read_bytes() == b"mp4:raw-h264"

    def test_transcode_error_propagates(self, coordinator, runner) -> None:
        runner.transcode_error = ProcessInvocationError("MP4Box", "exit status 1", returncode=1)
        coordinator.start_recording()

        with pytest.raises(ProcessInvocationError) as exc_info:
            coordinator.stop_recording()

        assert exc_info.value is runner.transcode_error
        assert coordinator.state is CameraState.FREE

        # Session is gone, so a second stop has nothing to stop
        with pytest.raises(NotRecording):
            coordinator.stop_recording()

    def test_stopping_blocks_everything(self, coordinator, runner) -> None:
        runner.transcode_gate = threading.Event()
        coordinator.start_recording()
        thread, result = run_in_thread(coordinator.stop_recording)
        assert runner.transcode_entered.wait(5)

        try:
            assert coordinator.state is CameraState.STOPPING
            with pytest.raises(CameraBusyProcessing):
                coordinator.start_recording()
            with pytest.raises(CameraBusyProcessing):
                coordinator.stop_recording()
            with pytest.raises(CameraBusyProcessing):
                coordinator.capture()
        finally:
            runner.transcode_gate.set()
            thread.join(5)

        assert result["value"] == str(coordinator.output_video_path)
        assert coordinator.state is CameraState.FREE

    def test_can_record_again_after_stop(self, coordinator, runner) -> None:
        coordinator.start_recording()
        coordinator.stop_recording()
        coordinator.start_recording()

        assert coordinator.state is CameraState.RECORDING
        assert runner.record_calls == 2


class TestSharedGuard:

    def test_injected_guard_is_used(self, config, runner) -> None:
        guard = StateGuard()
        coordinator = RecordingCoordinator(config, runner, guard=guard)

        guard.request_transition(CameraState.CAPTURING)
        with pytest.raises(CameraBusyCapturing):
            coordinator.start_recording()

    def test_stop_without_session_is_not_recording(self, config, runner) -> None:
        guard = StateGuard()
        coordinator = RecordingCoordinator(config, runner, guard=guard)
        guard.request_transition(CameraState.RECORDING)

        with pytest.raises(NotRecording):
            coordinator.stop_recording()

        assert guard.state is CameraState.FREE


class TestShutdown:

    def test_cancels_live_recording(self, coordinator, runner) -> None:
        coordinator.start_recording()

        coordinator.shutdown()

        assert coordinator.state is CameraState.FREE
        assert runner.active == 0
        with pytest.raises(NotRecording):
            coordinator.stop_recording()

    def test_noop_when_idle(self, coordinator) -> None:
        coordinator.shutdown()
        assert coordinator.state is CameraState.FREE


class TestMutualExclusion:

    def test_random_concurrent_operations(self, coordinator, runner) -> None:
        rng = random.Random(1234)
        operations = [coordinator.capture, coordinator.start_recording, coordinator.stop_recording]
        unexpected = []

        def worker(seed):
            local = random.Random(seed)
            for _ in range(25):
                try:
                    local.choice(operations)()
                except GuardRejection:
                    pass
                except PicamError as e:
                    unexpected.append(e)

        threads = [
            threading.Thread(target=worker, args=(rng.random(),))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(30)

        coordinator.shutdown()

        assert unexpected == []
        assert runner.max_active == 1
        assert coordinator.state is CameraState.FREE


class TestWithSimulationRunner:

    def test_record_and_stop(self, config) -> None:
        coordinator = RecordingCoordinator(config, SimulationRunner(config))

        coordinator.start_recording()
        filename = coordinator.stop_recording()

        assert Path(filename).read_text().startswith("SIMULATION")
        assert coordinator.state is CameraState.FREE
