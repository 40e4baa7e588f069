import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from xdl.media import Downloader, close_connection_pool


def make_app(attempts: list) -> web.Application:
    async def clip(request):
        return web.Response(body=b"\x00\x00\x00\x18ftypmp42" * 1000)

    async def flaky(request):
        attempts.append(request.path)
        if len(attempts) < 2:
            raise web.HTTPServiceUnavailable()
        return web.Response(body=b"ok")

    async def missing(request):
        attempts.append(request.path)
        raise web.HTTPNotFound()

    app = web.Application()
    app.router.add_get("/clip.mp4", clip)
    app.router.add_get("/flaky.mp4", flaky)
    app.router.add_get("/missing.mp4", missing)
    return app


def run_with_server(attempts, scenario):
    async def runner():
        try:
            async with TestServer(make_app(attempts)) as server:
                return await scenario(server)
        finally:
            await close_connection_pool()

    return asyncio.run(runner())


def test_download_file(tmp_path):
    async def scenario(server):
        downloader = Downloader()
        first = await downloader.download_file(
            str(server.make_url("/clip.mp4")), tmp_path / "videos" / "clip.mp4"
        )
        second = await downloader.download_file(
            str(server.make_url("/clip.mp4")), tmp_path / "videos" / "clip.mp4"
        )
        return first, second

    first, second = run_with_server([], scenario)
    assert first == tmp_path / "videos" / "clip.mp4"
    assert second == tmp_path / "videos" / "clip (1).mp4"
    assert first.read_bytes() == second.read_bytes()
    assert first.stat().st_size == 12000


def test_download_file_retries(tmp_path):
    attempts = []

    async def scenario(server):
        downloader = Downloader(max_attempts=3, base_delay=0)
        return await downloader.download_file(
            str(server.make_url("/flaky.mp4")), tmp_path / "flaky.mp4"
        )

    path = run_with_server(attempts, scenario)
    assert path.read_bytes() == b"ok"
    assert len(attempts) == 2


def test_download_file_gives_up(tmp_path):
    attempts = []

    async def scenario(server):
        downloader = Downloader(max_attempts=2, base_delay=0)
        return await downloader.download_file(
            str(server.make_url("/missing.mp4")), tmp_path / "missing.mp4"
        )

    with pytest.raises(aiohttp.ClientResponseError):
        run_with_server(attempts, scenario)
    assert len(attempts) == 2
    assert not (tmp_path / "missing.mp4").exists()


def test_save_bytes_never_overwrites(tmp_path):
    async def scenario():
        downloader = Downloader()
        first = await downloader.save_bytes(b"one", tmp_path / "shots" / "a.png")
        second = await downloader.save_bytes(b"two", tmp_path / "shots" / "a.png")
        return first, second

    first, second = asyncio.run(scenario())
    assert first.read_bytes() == b"one"
    assert second == tmp_path / "shots" / "a (1).png"
    assert second.read_bytes() == b"two"


def test_concurrent_downloads_get_distinct_files(tmp_path):
    async def scenario(server):
        downloader = Downloader()
        url = str(server.make_url("/clip.mp4"))
        return await asyncio.gather(
            downloader.download_file(url, tmp_path / "x.mp4"),
            downloader.download_file(url, tmp_path / "x.mp4"),
        )

    paths = run_with_server([], scenario)
    assert sorted(paths) == [tmp_path / "x (1).mp4", tmp_path / "x.mp4"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["x (1).mp4", "x.mp4"]
    assert all(p.stat().st_size == 12000 for p in paths)


def test_failed_download_keeps_sibling_with_same_name(tmp_path):
    attempts = []

    async def scenario(server):
        downloader = Downloader(max_attempts=1, base_delay=0)
        return await asyncio.gather(
            downloader.download_file(str(server.make_url("/clip.mp4")), tmp_path / "x.mp4"),
            downloader.download_file(str(server.make_url("/missing.mp4")), tmp_path / "x.mp4"),
            return_exceptions=True,
        )

    saved, failure = run_with_server(attempts, scenario)
    assert isinstance(failure, aiohttp.ClientResponseError)
    assert saved.stat().st_size == 12000
    assert [p.name for p in tmp_path.iterdir()] == [saved.name]


def test_concurrent_saves_get_distinct_files(tmp_path):
    async def scenario():
        downloader = Downloader()
        return await asyncio.gather(
            *(downloader.save_bytes(bytes([i]), tmp_path / "a.png") for i in range(3))
        )

    paths = asyncio.run(scenario())
    assert len(set(paths)) == 3
    assert sorted(p.read_bytes() for p in paths) == [b"\x00", b"\x01", b"\x02"]
