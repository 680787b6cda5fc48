from datetime import datetime

import pytest

from mediarec import support


@pytest.mark.parametrize(
    ("check", "good", "bad"),
    [
        (support.is_supported_video_file_format, "MP4", "M4A"),
        (support.is_supported_audio_file_format, "M4A", "MP4"),
        (support.is_supported_image_file_format, "JPEG", "PNG"),
        (support.is_supported_video_codec, "H264", "H265"),
    ],
)
def test_format_checks(check, good, bad):
    assert check(good) is True
    assert check(bad) is False
    assert check(good.lower()) is False


def test_aac_accepted_rates_and_channels():
    assert support.is_supported_audio_format("AAC", 44100, 2, 0) is True
    assert support.is_supported_audio_format("AAC", 7350, 1, 0) is True
    assert support.is_supported_audio_format("AAC", 96000, 5, 0) is True


def test_aac_bit_rate_is_not_checked():
    assert support.is_supported_audio_format("AAC", 48000, 2, 123) is True


@pytest.mark.parametrize(
    ("codec", "rate", "channels"),
    [("AAC", 44000, 2), ("AAC", 44100, 0), ("AAC", 44100, 6), ("MP3", 44100, 2)],
)
def test_unsupported_audio_format(codec, rate, channels):
    assert support.is_supported_audio_format(codec, rate, channels, 0) is False


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/media/internal/", True),
        ("/media/internal/a.mp4", True),
        ("/tmp/", True),
        ("/tmp", False),
        ("/media/internal", False),
        ("/home/user/", False),
        ("", False),
    ],
)
def test_target_folders(path, expected):
    assert support.is_in_target_folders(path) is expected


@pytest.mark.parametrize("ext", ["mp4", "MP4", "m4a", "jpg", "JPEG", "Jpeg"])
def test_supported_extensions(ext):
    assert support.is_supported_extension(ext) is True


@pytest.mark.parametrize("ext", ["avi", "png", "", "/tmp"])
def test_unsupported_extensions(ext):
    assert support.is_supported_extension(ext) is False


def test_file_name_from_directory():
    now = datetime(2023, 5, 7, 9, 8, 3, 120000)
    assert (
        support.create_record_file_name("/tmp", "Record", now)
        == "/tmp/Record07052023-09080312.mp4"
    )


def test_file_name_keeps_trailing_slash():
    now = datetime(2023, 12, 31, 23, 59, 58, 999999)
    assert (
        support.create_record_file_name("/tmp/", "Audio", now)
        == "/tmp/Audio31122023-23595899.m4a"
    )


def test_path_with_supported_extension_is_kept():
    assert support.create_record_file_name("/tmp/clip.mp4", "Record") == "/tmp/clip.mp4"
    assert support.create_record_file_name("/tmp/shot.JPG", "Capture") == "/tmp/shot.JPG"


def test_empty_path_uses_default_directory():
    name = support.create_record_file_name("", "Capture", datetime(2024, 1, 2, 3, 4, 5))
    assert name.startswith("/media/internal/Capture")
    assert name.endswith(".jpeg")


def test_dotted_directory_is_treated_as_directory():
    name = support.create_record_file_name("/tmp/dir.d", "Audio", datetime(2024, 1, 2))
    assert name.startswith("/tmp/dir.d/Audio")
    assert name.endswith(".m4a")


def test_invalid_prefix_raises():
    with pytest.raises(ValueError):
        support.create_record_file_name("/tmp/", "Movie", datetime(2024, 1, 2))


def test_default_time_gives_well_formed_name():
    name = support.create_record_file_name("/tmp/", "Record")
    stem = name[len("/tmp/Record"):-len(".mp4")]
    date, _, clock = stem.partition("-")
    assert len(date) == 8 and date.isdigit()
    assert len(clock) == 8 and clock.isdigit()