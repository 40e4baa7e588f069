import pytest

from xdl.engine import MediaEngine
from xdl.models.config import XdlConfig


@pytest.fixture
def config(tmp_path):
    return XdlConfig(download_dir=str(tmp_path / "downloads"))


@pytest.fixture
def engine(config):
    return MediaEngine(config)


class RecordingDownloader:
    """Stands in for Downloader and records what would have been saved."""

    def __init__(self):
        self.files = []
        self.blobs = []

    async def download_file(self, url, destination):
        self.files.append((url, destination))
        return destination

    async def save_bytes(self, data, destination):
        self.blobs.append((data, destination))
        return destination


@pytest.fixture
def downloader():
    return RecordingDownloader()
