"""
Camera module for picam.

Supports pluggable executable runners:
- RaspicamRunner: raspistill/raspivid/MP4Box (default)
- SimulationRunner: no hardware required
- Create custom implementations by extending BaseExecutableRunner

Usage:
    from picam.camera import RecordingCoordinator, create_runner
    runner = create_runner("raspicam", config)
    coordinator = RecordingCoordinator(config, runner)
"""

# Base class and registry for custom implementations
from picam.camera.base import (
    BaseExecutableRunner,
    register_runner,
    get_available_runners,
    create_runner,
)

# Runners (auto-register on import)
from picam.camera.raspicam import RaspicamRunner
from picam.camera.simulation import SimulationRunner

from picam.camera.state import CameraState, StateGuard, TRANSITION_TABLE
from picam.camera.coordinator import RecordingCoordinator, RecordingSession
from picam.camera.errors import (
    PicamError,
    GuardRejection,
    CameraBusyCapturing,
    CameraBusyRecording,
    CameraBusyProcessing,
    NotRecording,
    UnexpectedState,
    ProcessInvocationError,
    RecordingCancelled,
    UnexpectedStopError,
)

__all__ = [
    "BaseExecutableRunner",
    "register_runner",
    "get_available_runners",
    "create_runner",
    "RaspicamRunner",
    "SimulationRunner",
    "CameraState",
    "StateGuard",
    "TRANSITION_TABLE",
    "RecordingCoordinator",
    "RecordingSession",
    "PicamError",
    "GuardRejection",
    "CameraBusyCapturing",
    "CameraBusyRecording",
    "CameraBusyProcessing",
    "NotRecording",
    "UnexpectedState",
    "ProcessInvocationError",
    "RecordingCancelled",
    "UnexpectedStopError",
]
