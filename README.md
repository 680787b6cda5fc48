# mediarec

A media recording service library. It keeps a set of recorders, each of
which records video from a camera source, audio, or both, and can take
still snapshots while recording. Requests and replies are JSON documents.
The recorders do their work by calling media and camera services over a
message bus.

## Modules

- `mediarec.errors` — the numeric `ErrorCode` values (`NONE` = 0,
  `JSON_PARSING` = 100, … `CANNOT_WRITE` = 900, `LIST_END` = 1000), the
  frozen `Error` record of `code` and `message`, `ErrorManager` with
  `message(code)` and `get_error(code)`, the module-level `get_error(code)`,
  and the `RecorderError` exception, which carries an `ErrorCode` in `code`
  and its `Error` in `error`. Codes without a registered message (such as
  `LIST_END`) get the text `"Unknown error"`.
- `mediarec.connector` — `Bus`, an in-process message bus:
  - `register(uri, method)` / `unregister(uri)` install a function that
    takes a payload string and returns a reply string;
  - `call_sync(uri, payload, timeout)` runs it and waits up to `timeout`
    milliseconds (default 2000), raising `LookupError` when nothing answers
    the URI and `TimeoutError` when no reply comes in time;
  - `subscribe(uri, payload, handler)` returns a subscription key,
    `cancel(key)` ends it, and `publish(uri, message)` hands a message to
    every subscriber of the URI and returns how many there were.

  `LSConnector` is a named client on a bus (the shared `DEFAULT_BUS` unless
  one is given) with `call_sync`, `subscribe` and `unsubscribe`; it holds at
  most one subscription.
- `mediarec.support` — the rules on what is accepted:
  - output containers: `MP4` for video, `M4A` for audio, `JPEG` for snapshots;
  - video codec `H264`;
  - audio: `AAC` at 7350, 8000, 11025, 12000, 16000, 22050, 24000, 32000,
    44100, 48000, 64000, 88200 or 96000 Hz, 1 to 5 channels, any bit rate;
  - output locations under `/media/internal/` or `/tmp/`;
  - `is_supported_extension` accepts `mp4`, `m4a`, `jpg`, `jpeg` in any case;
  - `create_record_file_name(record_path, prefix, now)` keeps a path that
    already ends in a supported extension, and otherwise treats it as a
    directory (`/media/internal` when empty) and names a file
    `<Prefix>DDMMYYYY-HHMMSScc.<ext>` in it (`cc` = hundredths of a second)
    for the prefixes `Record` (`mp4`), `Audio` (`m4a`) and `Capture`
    (`jpeg`); any other prefix raises `ValueError`.
- `mediarec.protocol` — `parse_payload` (malformed JSON → `JSON_PARSING`,
  a non-object → `JSON_TYPE`), `require_recorder_id` (missing →
  `RECORDER_ID_NOT_SPECIFIED`, not an integer → `JSON_TYPE`),
  `error_code_for_exception` (anything unrecognised → `LIST_END`) and
  `build_response`, which writes compact JSON with sorted keys.
- `mediarec.recorder` — `MediaRecorder` with its `State`
  (`CLOSE`, `OPEN`, `RECORDING`, `PAUSE`) and the frozen `VideoFormat`
  (default H264, 1280×720, 30 fps, bit rate 0) and `AudioFormat`
  (default AAC, 44100 Hz, 2 channels, bit rate 0). `open` returns a random
  recorder id from 1000 to 9999; `start` returns the path being written,
  `stop` the recorded path and `take_snapshot` the image path. Failures
  raise `RecorderError`. A video bit rate must lie in 25 000–25 000 000;
  an AAC bit rate above 0 but below 5 × channels is raised to 5 × channels.
  `take_snapshot` waits up to `snapshot_timeout` seconds (10 by default)
  for an `endOfStream` event on `luna://com.webos.media/subscribe`. Used as
  a context manager, an open recorder is closed on exit.
- `mediarec.manager` — `MediaRecorderManager`, which keeps the open
  recorders by id. Each request method (`open`, `close`, `set_output_file`,
  `set_output_format`, `set_video_format`, `set_audio_format`, `start`,
  `stop`, `take_snapshot`, `pause`, `resume`) takes a JSON payload and
  returns the JSON reply. `handle(method, payload)` dispatches by the
  service's method names (`open`, `setOutputFile`, `takeSnapshot`, …) and
  raises `LookupError` for any other name. The same methods are registered
  on the bus under `luna://com.webos.service.mediarecorder/<name>`.
  `setVideoFormat` defaults to `H264` at 10 000 000 bit/s; `setAudioFormat`
  defaults to the recorder's default audio format.

## Replies

Every reply carries `returnValue`. On success `open` adds `recorderId`,
and `stop` and `takeSnapshot` add `path`. On failure the reply carries
`errorCode` and `errorText` instead:

```json
{"errorCode":310,"errorText":"Recorder ID is invalid","returnValue":false}
```

## Examples

```python
from datetime import datetime

from mediarec.support import create_record_file_name, is_in_target_folders

is_in_target_folders("/tmp/clips/")       # True
is_in_target_folders("/home/user/clips")  # False

create_record_file_name("/tmp", "Record", datetime(2024, 3, 5, 14, 7, 9, 120000))
# '/tmp/Record05032024-14070912.mp4'
```

A session through the manager, with stand-in services on a private bus:

```python
import json

from mediarec.connector import Bus
from mediarec.manager import MediaRecorderManager

ok = json.dumps({"returnValue": True})
bus = Bus()
bus.register("luna://com.webos.service.camera2/getFormat",
             lambda p: json.dumps({"returnValue": True,
                                   "params": {"width": 1920, "height": 1080, "fps": 30}}))
bus.register("luna://com.webos.media/load",
             lambda p: json.dumps({"returnValue": True, "mediaId": "media-1"}))
bus.register("luna://com.webos.media/play", lambda p: ok)
bus.register("luna://com.webos.media/unload", lambda p: ok)

manager = MediaRecorderManager(bus)
rid = json.loads(manager.handle("open", '{"video": "camera1"}'))["recorderId"]
request = json.dumps({"recorderId": rid})
manager.handle("start", request)
json.loads(manager.handle("stop", request))
# {'path': '/media/internal/Record<DDMMYYYY-HHMMSScc>.mp4', 'returnValue': True}
manager.handle("close", request)
```

A session goes `open`, optionally `setOutputFile`, `setOutputFormat`,
`setVideoFormat` and `setAudioFormat`, then `start`, `pause`/`resume` as
needed, `takeSnapshot` while recording, `stop`, and finally `close`.

## What it does not do

The package captures no media itself. It has no camera, encoder or media
pipeline; it only sends requests to whatever services are registered on
its `Bus`, which is an in-process bus, not a system service bus. Without
services answering `luna://com.webos.media/...` and
`luna://com.webos.service.camera2/getFormat`, `start` and `take_snapshot`
fail. It offers no command-line program and no long-running server process;
`MediaRecorderManager` is driven by calling it from Python.