"""Builders for the API payloads and URLs used across the tests."""

import json

from xdl.models.events import StreamChunk, StreamOpened

GRAPHQL_URL = "https://x.com/i/api/graphql/Qw3rty/TweetDetail?variables=%7B%7D"
MEDIA_ID = "1790000000000000001"

PROGRESSIVE_360 = (
    f"https://video.twimg.com/amplify_video/{MEDIA_ID}/vid/avc1/640x360/low.mp4?tag=14"
)
PROGRESSIVE_720 = (
    f"https://video.twimg.com/amplify_video/{MEDIA_ID}/vid/avc1/1280x720/high.mp4?tag=14"
)
MANIFEST = f"https://video.twimg.com/amplify_video/{MEDIA_ID}/pl/master.m3u8?tag=14"
INIT_SEGMENT = (
    f"https://video.twimg.com/amplify_video/{MEDIA_ID}/vid/avc1/0/0/1280x720/init.mp4"
)


def mp4(url: str, bitrate: int | None = None) -> dict:
    variant = {"content_type": "video/mp4", "url": url}
    if bitrate is not None:
        variant["bitrate"] = bitrate
    return variant


def hls(url: str = MANIFEST) -> dict:
    return {"content_type": "application/x-mpegURL", "url": url}


def media_entity(media_id: str, variants: list, **ids) -> dict:
    entity = {
        "id_str": media_id,
        "media_key": f"13_{media_id}",
        "type": "video",
        "video_info": {"aspect_ratio": [16, 9], "variants": variants},
    }
    entity.update(ids)
    return entity


def tweet_detail(*media: dict) -> dict:
    """Wraps media entities in the nesting of a TweetDetail response."""
    return {
        "data": {
            "threaded_conversation_with_injections_v2": {
                "instructions": [
                    {
                        "type": "TimelineAddEntries",
                        "entries": [
                            {
                                "entryId": "tweet-1",
                                "content": {
                                    "itemContent": {
                                        "tweet_results": {
                                            "result": {
                                                "legacy": {
                                                    "full_text": "clip",
                                                    "extended_entities": {
                                                        "media": list(media)
                                                    },
                                                }
                                            }
                                        }
                                    }
                                },
                            }
                        ],
                    }
                ]
            }
        }
    }


def stream_body(
    engine,
    tab_id: int,
    body: bytes,
    request_id: str = "req-1",
    url: str = GRAPHQL_URL,
    chunk_size: int = 7,
) -> list[bytes]:
    """Streams `body` through the engine and returns the forwarded chunks."""
    engine.handle(StreamOpened(tab_id, request_id, url))
    chunks = [body[i : i + chunk_size] for i in range(0, len(body), chunk_size)] or [b""]
    forwarded = []
    for index, chunk in enumerate(chunks):
        forwarded.append(
            engine.handle(
                StreamChunk(tab_id, request_id, chunk, is_final=index == len(chunks) - 1)
            )
        )
    return forwarded


def stream_json(engine, tab_id: int, payload, **kwargs) -> list[bytes]:
    return stream_body(engine, tab_id, json.dumps(payload).encode("utf-8"), **kwargs)
