"""
Error taxonomy for camera access.

Guard rejections are terminal for the request that triggered them.
Process errors are surfaced verbatim to the caller.
"""

ERROR_TAKING_PICTURE = "camera in use, taking picture"
ERROR_RECORDING_VIDEO = "camera in use, recording video"
ERROR_PROCESSING_VIDEO = "camera in use, processing a finished video"
ERROR_NOT_RECORDING = "camera was not recording, unable to process stop recording request"
ERROR_UNEXPECTED_STATE = "unexpected camera state {}"
ERROR_STOP_RECORDING = "unexpected error closing camera: {}"


class PicamError(Exception):
    """Base exception for picam."""
    pass


class GuardRejection(PicamError):
    """A requested state transition is illegal from the current state."""

    message = "camera state transition rejected"

    def __init__(self, current=None, requested=None):
        self.current = current
        self.requested = requested
        super().__init__(self.message)


class CameraBusyCapturing(GuardRejection):
    message = ERROR_TAKING_PICTURE


class CameraBusyRecording(GuardRejection):
    message = ERROR_RECORDING_VIDEO


class CameraBusyProcessing(GuardRejection):
    message = ERROR_PROCESSING_VIDEO


class NotRecording(GuardRejection):
    message = ERROR_NOT_RECORDING


class UnexpectedState(GuardRejection):
    """The guard holds a state it has no rule for."""

    def __init__(self, current=None, requested=None):
        self.message = ERROR_UNEXPECTED_STATE.format(current)
        super().__init__(current, requested)


class ProcessInvocationError(PicamError):
    """An executable failed to launch, exited non-zero or timed out."""

    def __init__(self, command, message, returncode=None, stderr=""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{command}: {message}")


class RecordingCancelled(PicamError):
    """The recording process was killed because its cancel event was set."""

    def __init__(self, command="recording"):
        self.command = command
        super().__init__(f"{command}: terminated by cancellation")


class UnexpectedStopError(PicamError):
    """The recording process ended some other way than by our cancellation."""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(ERROR_STOP_RECORDING.format(cause))
