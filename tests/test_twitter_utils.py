import pytest

from xdl.utils.twitter import (
    extract_media_id,
    is_progressive_mp4,
    media_id_from_poster,
    normalize_media_id,
    parse_resolution,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://video.twimg.com/amplify_video/111/vid/avc1/640x360/a.mp4", "111"),
        ("https://video.twimg.com/ext_tw_video/222/pu/pl/master.m3u8?tag=12", "222"),
        ("https://video.twimg.com/tweet_video/333/abc.mp4", "333"),
        ("https://video.twimg.com/other/444/a.mp4", ""),
        ("https://video.twimg.com/amplify_video/abc/a.mp4", ""),
        ("", ""),
    ],
)
def test_extract_media_id(url, expected):
    assert extract_media_id(url) == expected


def test_media_id_from_poster():
    poster = "https://pbs.twimg.com/amplify_video_thumb/1790000000000000001/img/x.jpg"
    assert media_id_from_poster(poster) == "1790000000000000001"
    assert media_id_from_poster("https://pbs.twimg.com/media/abc.jpg") == ""
    assert media_id_from_poster(None) == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("13_1234567890", "1234567890"),
        ("1234567890", "1234567890"),
        (1234567890, "1234567890"),
        ("  42 ", "42"),
        ("", ""),
        (None, ""),
        (0, ""),
        (True, ""),
        ({"id": 1}, ""),
    ],
)
def test_normalize_media_id(raw, expected):
    assert normalize_media_id(raw) == expected


def test_normalized_forms_share_a_key():
    assert normalize_media_id("7_555") == normalize_media_id(555) == "555"


def test_parse_resolution():
    assert parse_resolution("https://h/vid/avc1/1280x720/a.mp4") == 921600
    assert parse_resolution("https://h/vid/a.mp4") == 0
    assert parse_resolution("") == 0


@pytest.mark.parametrize(
    "url",
    [
        "https://video.twimg.com/ext_tw_video/123/pu/vid/avc1/1280x720/abc.mp4?tag=12",
        "https://video.twimg.com/amplify_video/999/vid/avc1/640x360/x.mp4",
    ],
)
def test_progressive_mp4_accepted(url):
    assert is_progressive_mp4(url)


@pytest.mark.parametrize(
    "url",
    [
        "https://video.twimg.com/amplify_video/999/vid/avc1/0/0/1280x720/init.mp4",
        "https://video.twimg.com/amplify_video/999/vid/avc1/0/3000/1280x720/seg.mp4",
        "https://video.twimg.com/amplify_video/999/vid/avc1/3000/6000/1280x720/seg.mp4",
        "https://video.twimg.com/amplify_video/999/vid/avc1/1280x720/seg.m4s",
        "https://video.twimg.com/amplify_video/999/pl/master.m3u8",
        "https://video.twimg.com/amplify_video/999/x.mp4",
        "https://cdn.example.com/amplify_video/999/vid/avc1/640x360/x.mp4",
        "",
    ],
)
def test_segments_and_manifests_rejected(url):
    assert not is_progressive_mp4(url)


def test_custom_media_host():
    url = "https://media.example.com/vid/avc1/640x360/x.mp4"
    assert is_progressive_mp4(url, "media.example.com")
    assert not is_progressive_mp4(url)
