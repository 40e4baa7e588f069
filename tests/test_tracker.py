from payloads import MANIFEST, MEDIA_ID, PROGRESSIVE_360, PROGRESSIVE_720

from xdl.engine import RawRequestTracker
from xdl.models.stats import EngineStats
from xdl.storage.registry import TabSessionRegistry


def make_tracker():
    registry = TabSessionRegistry()
    stats = EngineStats()
    return RawRequestTracker(registry, "video.twimg.com", stats), registry, stats


def test_records_media_requests_by_id():
    tracker, registry, stats = make_tracker()
    assert tracker.record(4, MANIFEST)
    session = registry.get(4)
    assert session.requests.get(MEDIA_ID).url == MANIFEST
    assert session.requests.last_seen.url == MANIFEST
    assert stats.requests_tracked == 1


def test_ignores_unrelated_requests():
    tracker, registry, stats = make_tracker()
    assert not tracker.record(4, "https://x.com/home")
    assert not tracker.record(4, "https://video.twimg.com/amplify_video/1/thumb.jpg")
    assert not tracker.record(4, "")
    assert not tracker.record(-1, PROGRESSIVE_720)
    assert registry.get(4) is None
    assert registry.get(-1) is None
    assert stats.requests_ignored == 4


def test_request_without_media_id_sets_last_seen_only():
    tracker, registry, _ = make_tracker()
    url = "https://video.twimg.com/dm_video/abc/vid/avc1/640x360/x.mp4"
    assert tracker.record(2, url)
    session = registry.get(2)
    assert len(session.requests) == 0
    assert session.requests.last_seen.url == url


def test_later_request_overwrites_earlier_one():
    tracker, registry, _ = make_tracker()
    tracker.record(1, PROGRESSIVE_720)
    tracker.record(1, PROGRESSIVE_360)
    assert registry.get(1).requests.get(MEDIA_ID).url == PROGRESSIVE_360
