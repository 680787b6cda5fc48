"""Rules for supported formats, codecs and output locations."""

from __future__ import annotations

from datetime import datetime

MP4_FORMAT = "MP4"
M4A_FORMAT = "M4A"
JPEG_FORMAT = "JPEG"
H264_CODEC = "H264"
AAC_CODEC = "AAC"

DEFAULT_RECORD_DIR = "/media/internal"
DEFAULT_RECORD_PATH = "/media/internal/"

VIDEO_FILE_FORMATS = frozenset({MP4_FORMAT})
AUDIO_FILE_FORMATS = frozenset({M4A_FORMAT})
IMAGE_FILE_FORMATS = frozenset({JPEG_FORMAT})
VIDEO_CODECS = frozenset({H264_CODEC})

AAC_SAMPLE_RATES = frozenset(
    {7350, 8000, 11025, 12000, 16000, 22050, 24000, 32000, 44100, 48000, 64000, 88200, 96000}
)
AAC_CHANNELS = frozenset({1, 2, 3, 4, 5})

TARGET_FOLDERS = ("/media/internal/", "/tmp/")
SUPPORTED_EXTENSIONS = frozenset({"mp4", "m4a", "jpg", "jpeg"})

# File name prefix and the extension of the file it names.
PREFIX_EXTENSIONS = {"Record": "mp4", "Audio": "m4a", "Capture": "jpeg"}


def is_supported_video_file_format(fmt: str) -> bool:
    return fmt in VIDEO_FILE_FORMATS


def is_supported_audio_file_format(fmt: str) -> bool:
    return fmt in AUDIO_FILE_FORMATS


def is_supported_image_file_format(fmt: str) -> bool:
    return fmt in IMAGE_FILE_FORMATS


def is_supported_video_codec(codec: str) -> bool:
    return codec in VIDEO_CODECS


def is_supported_audio_format(codec: str, sample_rate: int, channels: int, bit_rate: int) -> bool:
    """Return True if the codec accepts this sample rate and channel count.

    The bit rate is not restricted for AAC.
    """
    return codec == AAC_CODEC and sample_rate in AAC_SAMPLE_RATES and channels in AAC_CHANNELS


def is_in_target_folders(path: str) -> bool:
    """Return True if ``path`` lies under a folder the recorder may write to."""
    return path.startswith(TARGET_FOLDERS)


def is_supported_extension(extension: str) -> bool:
    return extension.lower() in SUPPORTED_EXTENSIONS


def create_record_file_name(record_path: str, prefix: str, now: datetime | None = None) -> str:
    """Return the output file for ``record_path``.

    A path that already names a file with a supported extension is kept as
    it is. Otherwise it is taken as a directory and a file named
    ``<prefix>DDMMYYYY-HHMMSScc.<ext>`` is placed in it, where ``cc`` is
    hundredths of a second. Raises ValueError for an unknown prefix.
    """
    path = record_path or DEFAULT_RECORD_DIR

    extension = path.rsplit(".", 1)[-1]
    if is_supported_extension(extension):
        return path

    if not path.endswith("/"):
        path += "/"

    try:
        ext = PREFIX_EXTENSIONS[prefix]
    except KeyError:
        raise ValueError(f"invalid file name prefix: {prefix!r}") from None

    moment = now if now is not None else datetime.now()
    stamp = moment.strftime("%d%m%Y-%H%M%S") + f"{moment.microsecond // 10000:02d}"
    return f"{path}{prefix}{stamp}.{ext}"