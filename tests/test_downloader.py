import hashlib

import requests

from fakes import DummyResponse, FakeFetcher
from regex_download.core.errors import DownloadWriteError, FetchError
from regex_download.core.scraping.downloader import Downloader, download_asset

URL = "https://cdn.example.com/photo.png"


def test_download_writes_file_and_metadata(tmp_path):
    body = b"\x89PNG" + b"x" * 20000
    fetcher = FakeFetcher({URL: DummyResponse(body)})
    target = tmp_path / "example-1-01.png"

    outcome = Downloader(fetcher).download(URL, target)

    assert outcome.ok
    assert outcome.path == target
    assert target.read_bytes() == body
    assert outcome.size == len(body)
    assert outcome.sha256 == hashlib.sha256(body).hexdigest()


def test_download_truncates_existing_file(tmp_path):
    target = tmp_path / "out.png"
    target.write_bytes(b"old content that is longer")
    fetcher = FakeFetcher({URL: DummyResponse(b"new")})

    outcome = download_asset(URL, target, fetcher=fetcher)

    assert outcome.ok
    assert target.read_bytes() == b"new"


def test_bad_status_does_not_create_file(tmp_path):
    fetcher = FakeFetcher(
        {URL: DummyResponse(b"", status_code=500, reason="Server Error")}
    )
    target = tmp_path / "out.png"

    outcome = Downloader(fetcher).download(URL, target)

    assert isinstance(outcome.error, FetchError)
    assert "500" in str(outcome.error)
    assert not target.exists()


def test_transport_error(tmp_path):
    fetcher = FakeFetcher({URL: requests.ConnectionError("refused")})

    outcome = Downloader(fetcher).download(URL, tmp_path / "out.png")

    assert isinstance(outcome.error, FetchError)


def test_write_error_is_reported(tmp_path):
    fetcher = FakeFetcher({URL: DummyResponse(b"data")})
    target = tmp_path / "missing-dir" / "out.png"

    outcome = Downloader(fetcher).download(URL, target)

    assert isinstance(outcome.error, DownloadWriteError)
    assert outcome.path == target


def test_stream_interrupted_removes_partial_file(tmp_path):
    class BrokenResponse(DummyResponse):
        def iter_content(self, chunk_size=1):
            yield b"partial"
            raise requests.exceptions.ChunkedEncodingError("connection reset")

    fetcher = FakeFetcher({URL: BrokenResponse()})
    target = tmp_path / "out.png"

    outcome = Downloader(fetcher).download(URL, target)

    assert isinstance(outcome.error, FetchError)
    assert not target.exists()
