"""Core scraping primitives: Fetcher, sanitizer, page processor and downloader.

The Prefect task wrappers live in `prefect_tasks` and are imported from
there, so the core stays usable without a Prefect runtime.
"""

from .downloader import Downloader, download_asset
from .fetcher import Fetcher
from .models import DownloadJob, DownloadOutcome, ProcessOutcome
from .page_processor import PageProcessor, process_page
from .sanitizer import sanitize_prefix

__all__ = [
    "Fetcher",
    "sanitize_prefix",
    "PageProcessor",
    "process_page",
    "Downloader",
    "download_asset",
    "ProcessOutcome",
    "DownloadJob",
    "DownloadOutcome",
]
