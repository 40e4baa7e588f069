"""
mitmproxy addon that feeds live browser traffic into the media engine.

Point the browser at `xdl proxy` and every request is reported to the engine;
responses from the API allow-list are tapped chunk by chunk and forwarded
unchanged. Requests to the control host (``http://xdl.local/`` by default) are
answered by the addon itself:

    GET  /resolve?tab=<id>&media_id=<id>   -> {"ok": true, "url": "..."}
    GET  /resolve?tab=<id>&poster=<url>    -> same, id taken from the poster URL
    POST /close?tab=<id>                   -> {"ok": true}
    POST /message?tab=<id>   (JSON body)   -> download request result
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from mitmproxy import http
from rich.markup import escape

from xdl.core import DownloadManager
from xdl.engine import MediaEngine
from xdl.exceptions import XdlError
from xdl.models.config import XdlConfig
from xdl.models.events import RequestObserved, StreamChunk, StreamOpened, TabClosed
from xdl.utils.twitter import media_id_from_poster

log = logging.getLogger(__name__)

TAB_METADATA_KEY = "xdl_tab_id"
BUFFERED_METADATA_KEY = "xdl_buffered"
IDENTITY_ENCODINGS = ("", "identity")


def parse_tab_id(value: str | None) -> int | None:
    """Parses a tab id; None for anything that is not a non-negative integer."""
    if value is None:
        return None
    try:
        tab_id = int(value.strip())
    except ValueError:
        return None
    return tab_id if tab_id >= 0 else None


def json_response(status: int, payload: dict[str, Any]) -> http.Response:
    return http.Response.make(
        status,
        json.dumps(payload).encode("utf-8"),
        {"Content-Type": "application/json"},
    )


class XdlAddon:
    """Translates mitmproxy flows into engine events and serves the control host."""

    def __init__(
        self,
        config: XdlConfig | None = None,
        engine: MediaEngine | None = None,
        manager: DownloadManager | None = None,
    ):
        self.config = config or XdlConfig()
        self.engine = engine or MediaEngine(self.config)
        self.manager = manager or DownloadManager(self.config, self.engine)
        self._control_routes: dict[str, Callable] = {
            "/resolve": self._control_resolve,
            "/close": self._control_close,
            "/message": self._control_message,
        }

    def tab_id_for(self, flow: http.HTTPFlow) -> int:
        """Tab id from the tab header, falling back to the configured default."""
        tab_id = parse_tab_id(flow.request.headers.get(self.config.tab_header))
        return self.config.default_tab_id if tab_id is None else tab_id

    async def request(self, flow: http.HTTPFlow) -> None:
        if flow.request.host == self.config.control_host:
            flow.response = await self._handle_control(flow)
            return

        tab_id = self.tab_id_for(flow)
        flow.metadata[TAB_METADATA_KEY] = tab_id
        flow.request.headers.pop(self.config.tab_header, None)

        url = flow.request.pretty_url
        self.engine.handle(RequestObserved(tab_id, url))
        if self.engine.should_tap(url):
            # Streamed bodies arrive as sent on the wire; ask for them uncompressed
            flow.request.headers["Accept-Encoding"] = "identity"

    def responseheaders(self, flow: http.HTTPFlow) -> None:
        url = flow.request.pretty_url
        if flow.response is None or not self.engine.should_tap(url):
            return
        tab_id = flow.metadata.get(TAB_METADATA_KEY, self.config.default_tab_id)
        self.engine.handle(StreamOpened(tab_id, flow.id, url))

        encoding = flow.response.headers.get("Content-Encoding", "").strip().lower()
        if encoding in IDENTITY_ENCODINGS:
            flow.response.stream = self._make_tap(tab_id, flow.id)
        else:
            # Let mitmproxy buffer and decode; the body is fed whole in `response`
            flow.metadata[BUFFERED_METADATA_KEY] = True

    def response(self, flow: http.HTTPFlow) -> None:
        if not flow.metadata.pop(BUFFERED_METADATA_KEY, False) or flow.response is None:
            return
        tab_id = flow.metadata.get(TAB_METADATA_KEY, self.config.default_tab_id)
        body = flow.response.get_content(strict=False) or b""
        self.engine.handle(StreamChunk(tab_id, flow.id, body, is_final=True))

    def error(self, flow: http.HTTPFlow) -> None:
        tab_id = flow.metadata.get(TAB_METADATA_KEY, self.config.default_tab_id)
        if self.engine.discard_stream(tab_id, flow.id):
            log.debug(f"Dropped partial response for {escape(flow.request.pretty_url)}")

    def _make_tap(self, tab_id: int, request_id: str) -> Callable[[bytes], bytes]:
        def tap(data: bytes) -> bytes:
            # mitmproxy signals the end of the body with an empty chunk
            return self.engine.handle(
                StreamChunk(tab_id, request_id, data, is_final=not data)
            )

        return tap

    async def _handle_control(self, flow: http.HTTPFlow) -> http.Response:
        route = self._control_routes.get(flow.request.path.split("?", 1)[0])
        if route is None:
            return json_response(404, {"ok": False, "error": "Unknown endpoint"})
        try:
            return await route(flow)
        except XdlError as e:
            return json_response(400, {"ok": False, "error": str(e)})

    def _control_tab_id(self, flow: http.HTTPFlow) -> int | None:
        raw = flow.request.query.get("tab")
        if raw is None:
            return self.tab_id_for(flow)
        return parse_tab_id(raw)

    async def _control_resolve(self, flow: http.HTTPFlow) -> http.Response:
        query = flow.request.query
        media_id = query.get("media_id") or media_id_from_poster(query.get("poster"))
        url = self.engine.resolve(self._control_tab_id(flow), media_id)
        if not url:
            return json_response(
                404, {"ok": False, "error": "Unable to resolve Twitter video URL"}
            )
        return json_response(200, {"ok": True, "url": url})

    async def _control_close(self, flow: http.HTTPFlow) -> http.Response:
        tab_id = self._control_tab_id(flow)
        if tab_id is None:
            return json_response(400, {"ok": False, "error": "Missing tab context"})
        self.engine.handle(TabClosed(tab_id))
        return json_response(200, {"ok": True})

    async def _control_message(self, flow: http.HTTPFlow) -> http.Response:
        try:
            message = json.loads(flow.request.get_text(strict=False) or "")
        except ValueError:
            return json_response(400, {"ok": False, "error": "Body must be JSON"})
        result = await self.manager.handle_message(message, self._control_tab_id(flow))
        if result is None:
            return json_response(400, {"ok": False, "error": "Unknown message type"})
        return json_response(200 if result["ok"] else 422, result)
