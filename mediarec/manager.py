"""The recorder service: JSON requests in, JSON replies out, one recorder per id."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any, Callable, Mapping

from .connector import DEFAULT_BUS, Bus
from .errors import ErrorCode, RecorderError
from .protocol import build_response, error_code_for_exception, parse_payload, require_recorder_id
from .recorder import SERVICE_NAME, MediaRecorder

log = logging.getLogger(__name__)

SERVICE_URI = f"luna://{SERVICE_NAME}"

DEFAULT_VIDEO_CODEC = "H264"
DEFAULT_VIDEO_BIT_RATE = 10000000

Action = Callable[[dict[str, Any]], "Mapping[str, Any] | None"]


def _param(params: Mapping[str, Any], key: str, kind: type, default: Any = None) -> Any:
    """Return ``params[key]`` or ``default`` when absent.

    Raises RecorderError with JSON_TYPE when the value has the wrong type.
    """
    value = params.get(key)
    if value is None:
        return default
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise RecorderError(ErrorCode.JSON_TYPE)
    return value


class MediaRecorderManager:
    """Serves recorder requests and keeps the open recorders by id.

    Every request method takes a JSON payload and returns the JSON reply.
    The methods are also registered on the bus under the service URI.
    """

    def __init__(
        self,
        bus: Bus | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.bus = bus if bus is not None else DEFAULT_BUS
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self.recorders: dict[int, MediaRecorder] = {}
        self._methods: dict[str, Callable[[str], str]] = {
            "open": self.open,
            "close": self.close,
            "setOutputFile": self.set_output_file,
            "setOutputFormat": self.set_output_format,
            "setVideoFormat": self.set_video_format,
            "setAudioFormat": self.set_audio_format,
            "start": self.start,
            "stop": self.stop,
            "takeSnapshot": self.take_snapshot,
            "pause": self.pause,
            "resume": self.resume,
        }
        for name, method in self._methods.items():
            self.bus.register(f"{SERVICE_URI}/{name}", method)

    def handle(self, method: str, payload: str) -> str:
        """Serve a request to the named service method.

        Raises LookupError for a method the service does not offer.
        """
        try:
            serve = self._methods[method]
        except KeyError:
            raise LookupError(f"unknown method: {method}") from None
        return serve(payload)

    # -- plumbing --------------------------------------------------------

    def _serve(self, payload: str, action: Action) -> str:
        log.info("payload %s", payload)
        extra: Mapping[str, Any] | None = None
        try:
            extra = action(parse_payload(payload))
            code = ErrorCode.NONE
        except Exception as exc:  # every failure becomes an error reply
            code = error_code_for_exception(exc)
            log.error("%d %s", int(code), exc)
        reply = build_response(code, extra)
        log.info("reply %s", reply)
        return reply

    def _recorder(self, params: Mapping[str, Any]) -> MediaRecorder:
        recorder_id = require_recorder_id(params)
        try:
            return self.recorders[recorder_id]
        except KeyError:
            raise RecorderError(ErrorCode.INVALID_RECORDER_ID) from None

    def _log_recorders(self) -> None:
        log.info("recorders size %d", len(self.recorders))
        for index, recorder_id in enumerate(self.recorders):
            log.info("[%d] recorder %d", index, recorder_id)

    # -- requests --------------------------------------------------------

    def open(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> Mapping[str, Any]:
            video_src = _param(params, "video", str, "")
            audio_src = _param(params, "audio", bool, False)
            recorder = MediaRecorder(self.bus, self._rng, self._clock)
            recorder_id = recorder.open(video_src, audio_src)
            self.recorders[recorder_id] = recorder
            self._log_recorders()
            return {"recorderId": recorder_id}

        return self._serve(payload, action)

    def close(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            recorder_id = require_recorder_id(params)
            self._recorder(params).close()
            del self.recorders[recorder_id]
            self._log_recorders()

        return self._serve(payload, action)

    def set_output_file(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            recorder = self._recorder(params)
            path = _param(params, "path", str)
            if path is None:
                raise RecorderError(ErrorCode.PATH_NOT_SPECIFIED)
            recorder.set_output_file(path)

        return self._serve(payload, action)

    def set_output_format(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            recorder = self._recorder(params)
            fmt = _param(params, "format", str)
            if fmt is None:
                raise RecorderError(ErrorCode.FORMAT_NOT_SPECIFIED)
            recorder.set_output_format(fmt)

        return self._serve(payload, action)

    def set_video_format(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            recorder = self._recorder(params)
            codec = _param(params, "codec", str, DEFAULT_VIDEO_CODEC)
            bit_rate = _param(params, "bitRate", int, DEFAULT_VIDEO_BIT_RATE)
            recorder.set_video_format(codec, bit_rate)

        return self._serve(payload, action)

    def set_audio_format(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            recorder = self._recorder(params)
            default = recorder.default_audio_format
            recorder.set_audio_format(
                _param(params, "codec", str, default.codec),
                _param(params, "sampleRate", int, default.sample_rate),
                _param(params, "channelCount", int, default.channels),
                _param(params, "bitRate", int, default.bit_rate),
            )

        return self._serve(payload, action)

    def start(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            self._recorder(params).start()

        return self._serve(payload, action)

    def stop(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> Mapping[str, Any]:
            return {"path": self._recorder(params).stop()}

        return self._serve(payload, action)

    def take_snapshot(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> Mapping[str, Any]:
            recorder = self._recorder(params)
            path = _param(params, "path", str)
            if path is None:
                raise RecorderError(ErrorCode.PATH_NOT_SPECIFIED)
            fmt = _param(params, "format", str)
            if fmt is None:
                raise RecorderError(ErrorCode.FORMAT_NOT_SPECIFIED)
            return {"path": recorder.take_snapshot(path, fmt)}

        return self._serve(payload, action)

    def pause(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            self._recorder(params).pause()

        return self._serve(payload, action)

    def resume(self, payload: str) -> str:
        def action(params: dict[str, Any]) -> None:
            self._recorder(params).resume()

        return self._serve(payload, action)