"""Error codes, their messages, and the exception that carries them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric codes reported to clients of the recorder service."""

    NONE = 0
    JSON_PARSING = 100
    JSON_TYPE = 110
    SOURCE_NOT_SPECIFIED = 200
    RECORDER_ID_NOT_SPECIFIED = 300
    INVALID_RECORDER_ID = 310
    PATH_NOT_SPECIFIED = 400
    FORMAT_NOT_SPECIFIED = 500
    UNSUPPORTED_FORMAT = 510
    CAMERA_OPEN_FAIL = 520
    VIDEO_BITRATE_OUT_OF_RANGE = 530
    UNSUPPORTED_AUDIO_FORMAT = 540
    UNSUPPORTED_VIDEO_FORMAT = 550
    FAILED_TO_START_RECORDING = 600
    FAILED_TO_STOP_RECORDING = 610
    SNAPSHOT_CAPTURE_FAILED = 620
    FAILED_TO_PAUSE = 630
    FAILED_TO_RESUME = 640
    OPEN_FAIL = 700
    CLOSE_FAIL = 710
    VIDEO_NOT_OPENED = 720
    AUDIO_NOT_OPENED = 730
    INVALID_STATE = 800
    CANNOT_WRITE = 900
    LIST_END = 1000


UNKNOWN_ERROR_MESSAGE = "Unknown error"

_MESSAGES: dict[int, str] = {
    ErrorCode.JSON_PARSING: "JSON parsing error",
    ErrorCode.JSON_TYPE: "JSON type error",
    ErrorCode.SOURCE_NOT_SPECIFIED: "Source must be specified",
    ErrorCode.RECORDER_ID_NOT_SPECIFIED: "Recorder ID must be specified",
    ErrorCode.INVALID_RECORDER_ID: "Recorder ID is invalid",
    ErrorCode.PATH_NOT_SPECIFIED: "Path must be specified",
    ErrorCode.FORMAT_NOT_SPECIFIED: "Format must be specified",
    ErrorCode.UNSUPPORTED_FORMAT: "Unsupported format",
    ErrorCode.CAMERA_OPEN_FAIL: "Failed to open camera",
    ErrorCode.VIDEO_BITRATE_OUT_OF_RANGE: "Video bitrate is out of range",
    ErrorCode.UNSUPPORTED_AUDIO_FORMAT: "Unsupported audio format",
    ErrorCode.UNSUPPORTED_VIDEO_FORMAT: "Unsupported video format",
    ErrorCode.FAILED_TO_START_RECORDING: "Failed to start recording",
    ErrorCode.FAILED_TO_STOP_RECORDING: "Failed to stop recording",
    ErrorCode.SNAPSHOT_CAPTURE_FAILED: "Snapshot capture failed",
    ErrorCode.FAILED_TO_PAUSE: "Failed to pause",
    ErrorCode.FAILED_TO_RESUME: "Failed to resume",
    ErrorCode.OPEN_FAIL: "Failed to open recorder",
    ErrorCode.CLOSE_FAIL: "Failed to close recorder",
    ErrorCode.VIDEO_NOT_OPENED: "Video is not opened",
    ErrorCode.AUDIO_NOT_OPENED: "Audio is not opened",
    ErrorCode.INVALID_STATE: "Invalid state",
    ErrorCode.CANNOT_WRITE: "Cannot write at specified location",
}


@dataclass(frozen=True)
class Error:
    """An error code together with its human-readable message."""

    code: int
    message: str


class ErrorManager:
    """Looks up the message registered for an error code."""

    def __init__(self) -> None:
        self._messages = {int(code): text for code, text in _MESSAGES.items()}

    def message(self, code: int) -> str:
        """Return the registered message, or "Unknown error"."""
        return self._messages.get(int(code), UNKNOWN_ERROR_MESSAGE)

    def get_error(self, code: int) -> Error:
        return Error(int(code), self.message(code))


_MANAGER = ErrorManager()


def get_error(code: int) -> Error:
    """Return the error for ``code`` from the shared registry."""
    return _MANAGER.get_error(code)


class RecorderError(Exception):
    """Raised when a recorder operation fails with a known error code."""

    def __init__(self, code: int, message: str | None = None) -> None:
        self.code = ErrorCode(code)
        super().__init__(message if message is not None else _MANAGER.message(self.code))

    @property
    def error(self) -> Error:
        return get_error(self.code)