"""A single recording session: camera video and/or microphone audio to a file."""

from __future__ import annotations

import json
import logging
import random
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from .connector import DEFAULT_TIMEOUT_MS, Bus, LSConnector
from .errors import ErrorCode, RecorderError
from .support import (
    AAC_CODEC,
    DEFAULT_RECORD_PATH,
    M4A_FORMAT,
    MP4_FORMAT,
    create_record_file_name,
    is_in_target_folders,
    is_supported_audio_file_format,
    is_supported_audio_format,
    is_supported_image_file_format,
    is_supported_video_codec,
    is_supported_video_file_format,
)

log = logging.getLogger(__name__)

APP_ID = "com.webos.app.mediaevents-test"
SERVICE_NAME = "com.webos.service.mediarecorder"
RECORD_URI = "record://com.webos.service.mediarecorder"
RECORD_TYPE = "record"

LOAD_URI = "luna://com.webos.media/load"
PLAY_URI = "luna://com.webos.media/play"
PAUSE_URI = "luna://com.webos.media/pause"
UNLOAD_URI = "luna://com.webos.media/unload"
SUBSCRIBE_URI = "luna://com.webos.media/subscribe"
CAMERA_FORMAT_URI = "luna://com.webos.service.camera2/getFormat"

CAMERA_FORMAT_TIMEOUT_MS = 16000
SNAPSHOT_TIMEOUT_S = 10.0
SNAPSHOT_QUALITY = 90

MIN_VIDEO_BIT_RATE = 25000
MAX_VIDEO_BIT_RATE = 25000000

MEDIA_ID_KEY = "mediaId"
RETURN_VALUE_KEY = "returnValue"


class State(Enum):
    CLOSE = 0
    OPEN = 1
    RECORDING = 2
    PAUSE = 3


@dataclass(frozen=True)
class VideoFormat:
    codec: str = "H264"
    width: int = 1280
    height: int = 720
    fps: int = 30
    bit_rate: int = 0


@dataclass(frozen=True)
class AudioFormat:
    codec: str = AAC_CODEC
    sample_rate: int = 44100
    channels: int = 2
    bit_rate: int = 0


DEFAULT_AUDIO_FORMAT = AudioFormat()


def _dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"))


def _optional(obj: Any, key: str, kind: type, default: Any) -> Any:
    """Return ``obj[key]`` if it exists and has type ``kind``, else ``default``."""
    if not isinstance(obj, dict):
        return default
    value = obj.get(key)
    if kind is int and isinstance(value, bool):
        return default
    return value if isinstance(value, kind) else default


def _succeeded(reply: dict[str, Any]) -> bool:
    return _optional(reply, RETURN_VALUE_KEY, bool, False)


class MediaRecorder:
    """Drives one recording through the media service on the bus.

    Every operation raises RecorderError with the matching code when it fails.
    """

    default_audio_format = DEFAULT_AUDIO_FORMAT

    def __init__(
        self,
        bus: Bus | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.bus = bus
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self.state = State.CLOSE
        self.recorder_id = 0
        self.video_src = ""
        self.audio_src = False
        self.record_base_path = ""
        self.record_path = ""
        self.capture_path = ""
        self.output_format = ""
        self.video_format = VideoFormat()
        self.audio_format = AudioFormat()
        self.media_id = ""
        self.snapshot_timeout = SNAPSHOT_TIMEOUT_S
        self._record_client: LSConnector | None = None
        self._snapshot_client: LSConnector | None = None
        self._eos = threading.Event()

    def __enter__(self) -> MediaRecorder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.state is State.OPEN:
            self.close()

    # -- helpers ---------------------------------------------------------

    def _require_state(self, *allowed: State) -> None:
        if self.state not in allowed:
            log.error("Invalid state %s", self.state.name)
            raise RecorderError(ErrorCode.INVALID_STATE)

    def _now(self) -> datetime | None:
        return self._clock() if self._clock is not None else None

    @staticmethod
    def _request(
        client: LSConnector, uri: str, body: dict[str, Any], timeout: int = DEFAULT_TIMEOUT_MS
    ) -> dict[str, Any]:
        """Call ``uri`` and parse its reply.

        A call that gets no reply yields empty text, which fails to parse,
        so json.JSONDecodeError is raised in that case too.
        """
        payload = _dumps(body)
        log.info("%s '%s'", uri, payload)
        try:
            reply = client.call_sync(uri, payload, timeout)
        except (LookupError, TimeoutError) as exc:
            log.error("call to %s failed: %s", uri, exc)
            reply = ""
        log.info("resp %s", reply)
        parsed = json.loads(reply)
        return parsed if isinstance(parsed, dict) else {}

    def _media_request(self, uri: str, failure: ErrorCode) -> dict[str, Any]:
        assert self._record_client is not None
        try:
            reply = self._request(self._record_client, uri, {MEDIA_ID_KEY: self.media_id})
        except json.JSONDecodeError as exc:
            log.error("Error occurred: %s", exc)
            raise RecorderError(failure) from exc
        if not _succeeded(reply):
            raise RecorderError(failure)
        return reply

    def _load_payload(self, option: dict[str, Any]) -> dict[str, Any]:
        return {"uri": RECORD_URI, "payload": {"option": option}, "type": RECORD_TYPE}

    def _fetch_camera_format(self) -> bool:
        assert self._record_client is not None
        try:
            reply = self._request(
                self._record_client,
                CAMERA_FORMAT_URI,
                {"id": self.video_src},
                CAMERA_FORMAT_TIMEOUT_MS,
            )
        except json.JSONDecodeError as exc:
            raise RecorderError(ErrorCode.JSON_PARSING) from exc
        if _succeeded(reply) and "params" in reply:
            params = reply["params"]
            self.video_format = replace(
                self.video_format,
                width=_optional(params, "width", int, 0),
                height=_optional(params, "height", int, 0),
                fps=_optional(params, "fps", int, 0),
            )
            return True
        log.error("Failed to get camera format")
        return False

    # -- lifecycle -------------------------------------------------------

    def open(self, video_src: str, audio_src: bool) -> int:
        """Prepare a session for the given sources; return the recorder id."""
        if not video_src and not audio_src:
            log.error("Source must be specified")
            raise RecorderError(ErrorCode.SOURCE_NOT_SPECIFIED)

        self.video_src = video_src
        self.audio_src = bool(audio_src)
        self.recorder_id = self._rng.randint(1000, 9999)

        if self.audio_src:
            self.audio_format = self.default_audio_format

        service_name = f"{SERVICE_NAME}-{self.recorder_id}"
        self._record_client = LSConnector(service_name, "record", self.bus)
        self.state = State.OPEN
        return self.recorder_id

    def close(self) -> None:
        self._require_state(State.OPEN)
        self.state = State.CLOSE

    # -- configuration ---------------------------------------------------

    def set_output_file(self, path: str) -> None:
        self._require_state(State.OPEN)
        if not is_in_target_folders(path):
            raise RecorderError(ErrorCode.CANNOT_WRITE)
        self.record_base_path = path

    def set_output_format(self, fmt: str) -> None:
        """Choose the container; it is remembered even when unsupported."""
        self._require_state(State.OPEN)
        self.output_format = fmt
        if self.video_src:
            supported = is_supported_video_file_format(fmt)
        else:
            supported = is_supported_audio_file_format(fmt)
        if not supported:
            raise RecorderError(ErrorCode.UNSUPPORTED_FORMAT)

    def set_video_format(self, codec: str, bit_rate: int) -> None:
        self._require_state(State.OPEN)
        if not self.video_src:
            log.error("video is not opened")
            raise RecorderError(ErrorCode.VIDEO_NOT_OPENED)
        if not is_supported_video_codec(codec):
            raise RecorderError(ErrorCode.UNSUPPORTED_VIDEO_FORMAT)
        if codec:
            self.video_format = replace(self.video_format, codec=codec)
        if not MIN_VIDEO_BIT_RATE <= bit_rate <= MAX_VIDEO_BIT_RATE:
            raise RecorderError(ErrorCode.VIDEO_BITRATE_OUT_OF_RANGE)
        self.video_format = replace(self.video_format, bit_rate=bit_rate)

    def set_audio_format(self, codec: str, sample_rate: int, channels: int, bit_rate: int) -> None:
        self._require_state(State.OPEN)
        if not self.audio_src:
            log.error("audio is not opened")
            raise RecorderError(ErrorCode.AUDIO_NOT_OPENED)
        if not is_supported_audio_format(codec, sample_rate, channels, bit_rate):
            raise RecorderError(ErrorCode.UNSUPPORTED_AUDIO_FORMAT)

        # A tiny AAC bit rate breaks the encoder pipeline.
        if 0 < bit_rate < channels * 5 and codec == AAC_CODEC:
            bit_rate = channels * 5
        self.audio_format = AudioFormat(codec, sample_rate, channels, bit_rate)

    # -- recording -------------------------------------------------------

    def start(self) -> str:
        """Begin recording; return the path of the file being written."""
        self._require_state(State.OPEN)
        assert self._record_client is not None

        option: dict[str, Any] = {"appId": APP_ID}

        if self.video_src:
            if not self._fetch_camera_format():
                raise RecorderError(ErrorCode.CAMERA_OPEN_FAIL)
            vf = self.video_format
            option["video"] = {
                "videoSrc": self.video_src,
                "width": vf.width,
                "height": vf.height,
                "codec": vf.codec,
                "fps": vf.fps,
                "bitRate": vf.bit_rate,
            }

        if self.audio_src:
            af = self.audio_format
            option["audio"] = {
                "codec": af.codec,
                "sampleRate": af.sample_rate,
                "channelCount": af.channels,
                "bitRate": af.bit_rate,
            }

        if self.video_src:
            if not self.output_format:
                self.output_format = MP4_FORMAT
            elif not is_supported_video_file_format(self.output_format):
                raise RecorderError(ErrorCode.UNSUPPORTED_VIDEO_FORMAT)
        elif self.audio_src:
            if not self.output_format:
                self.output_format = M4A_FORMAT
            elif not is_supported_audio_file_format(self.output_format):
                raise RecorderError(ErrorCode.UNSUPPORTED_AUDIO_FORMAT)

        if not self.record_base_path:
            log.info("Using default path : %s", DEFAULT_RECORD_PATH)
            self.record_base_path = DEFAULT_RECORD_PATH
        prefix = "Record" if self.video_src else "Audio"
        self.record_path = create_record_file_name(self.record_base_path, prefix, self._now())

        option["format"] = self.output_format
        option["path"] = self.record_path

        try:
            reply = self._request(self._record_client, LOAD_URI, self._load_payload(option))
            if _succeeded(reply):
                self.media_id = _optional(reply, MEDIA_ID_KEY, str, "")
                if not self.media_id:
                    raise RecorderError(ErrorCode.LIST_END, "load reply carries no media id")
                reply = self._request(
                    self._record_client, PLAY_URI, {MEDIA_ID_KEY: self.media_id}
                )
                if _succeeded(reply):
                    self.state = State.RECORDING
                    return self.record_path
        except json.JSONDecodeError as exc:
            log.error("Error occurred: %s", exc)

        raise RecorderError(ErrorCode.FAILED_TO_START_RECORDING)

    def stop(self) -> str:
        """Finish recording; return the path of the recorded file."""
        self._require_state(State.RECORDING, State.PAUSE)
        self._media_request(UNLOAD_URI, ErrorCode.FAILED_TO_STOP_RECORDING)
        self.state = State.OPEN
        return self.record_path

    def pause(self) -> None:
        self._require_state(State.RECORDING)
        self._media_request(PAUSE_URI, ErrorCode.FAILED_TO_PAUSE)
        self.state = State.PAUSE

    def resume(self) -> None:
        self._require_state(State.PAUSE)
        self._media_request(PLAY_URI, ErrorCode.FAILED_TO_RESUME)
        self.state = State.RECORDING

    # -- snapshots -------------------------------------------------------

    def take_snapshot(self, path: str, fmt: str) -> str:
        """Capture a still image while recording; return the image path.

        Waits up to ``snapshot_timeout`` seconds for the capture to finish.
        """
        self._require_state(State.RECORDING)
        if not is_in_target_folders(path):
            raise RecorderError(ErrorCode.CANNOT_WRITE)
        if not is_supported_image_file_format(fmt):
            raise RecorderError(ErrorCode.UNSUPPORTED_FORMAT)

        option: dict[str, Any] = {"appId": APP_ID}
        if self.video_src:
            option["image"] = {
                "videoSrc": self.video_src,
                "width": self.video_format.width,
                "height": self.video_format.height,
                "codec": fmt,
                "quality": SNAPSHOT_QUALITY,
            }

        self.capture_path = create_record_file_name(path, "Capture", self._now())
        option["path"] = self.capture_path

        if self._snapshot_client is None:
            service_name = f"{SERVICE_NAME}-{self.recorder_id}-snapshot"
            self._snapshot_client = LSConnector(service_name, "snapshot", self.bus)
        client = self._snapshot_client

        try:
            reply = self._request(client, LOAD_URI, self._load_payload(option))
            if _succeeded(reply):
                body = {MEDIA_ID_KEY: _optional(reply, MEDIA_ID_KEY, str, "")}
                self._eos.clear()
                if not client.subscribe(SUBSCRIBE_URI, _dumps(body), self.snapshot_callback):
                    log.error("failed to subscribe")

                reply = self._request(client, PLAY_URI, body)
                if _succeeded(reply):
                    done = self._eos.wait(self.snapshot_timeout)
                    log.info("capture done: %s", "finished" if done else "timed out")
                    return self.capture_path
        except json.JSONDecodeError as exc:
            log.error("Error occurred: %s", exc)

        raise RecorderError(ErrorCode.SNAPSHOT_CAPTURE_FAILED)

    def snapshot_callback(self, message: str) -> bool:
        """Handle a capture event; False if the message is not valid JSON."""
        log.info("payload : %s", message)
        try:
            event = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            log.error("payload parsing fail!")
            return False

        if isinstance(event, dict) and "endOfStream" in event:
            self._eos.set()
            if self._snapshot_client is not None and not self._snapshot_client.unsubscribe():
                log.error("failed to unsubscribe")
        return True