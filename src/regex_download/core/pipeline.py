"""Two-phase pipeline: process every seed page, then download every asset.

Phase 1 runs one Page Processor per seed URL, phase 2 one Asset Downloader
per discovered asset. Each phase pushes its outcomes into a queue and the
worker pool is joined before the queue is drained, so phase 2 never starts
while a phase-1 task is still running.
"""

from __future__ import annotations

import logging
import queue
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Sequence, TextIO, TypeVar
from urllib.parse import urlparse

from regex_download.core.config import SiteConfig
from regex_download.core.errors import RegexDownloadError
from regex_download.core.scraping.downloader import download_asset
from regex_download.core.scraping.models import (
    DownloadJob,
    DownloadOutcome,
    ProcessOutcome,
)
from regex_download.core.scraping.page_processor import process_page

logger = logging.getLogger(__name__)

UNKNOWN_EXTENSION = ".unknown"

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class PipelineReport:
    """Everything a run produced, in arrival order."""

    pages: List[ProcessOutcome] = field(default_factory=list)
    downloads: List[DownloadOutcome] = field(default_factory=list)

    @property
    def failed_pages(self) -> List[ProcessOutcome]:
        return [p for p in self.pages if not p.ok]

    @property
    def failed_downloads(self) -> List[DownloadOutcome]:
        return [d for d in self.downloads if not d.ok]

    @property
    def exit_code(self) -> int:
        return 1 if (self.failed_pages or self.failed_downloads) else 0


def asset_extension(url: str) -> str:
    """Extension of the URL path (``.png``), or ``.unknown`` when absent."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix or UNKNOWN_EXTENSION


def target_filename(prefix: str, index: int, url: str) -> str:
    """``<prefix>-<NN><ext>`` with a 1-based, two-digit index."""
    return f"{prefix}-{index:02d}{asset_extension(url)}"


def fan_out(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    on_error: Optional[Callable[[T, Exception], R]] = None,
) -> List[R]:
    """Run `func` over `items` concurrently and return results in arrival order.

    Each worker pushes exactly one result into a queue. The pool is joined
    before the queue is drained. `max_workers=None` means one worker per item.
    Unexpected exceptions are turned into results by `on_error` when given,
    otherwise re-raised after every worker has finished.
    """
    if not items:
        return []
    results: "queue.Queue[R]" = queue.Queue()
    crashes: "queue.Queue[BaseException]" = queue.Queue()

    def worker(item: T) -> None:
        try:
            results.put(func(item))
        except Exception as exc:
            if on_error is None:
                crashes.put(exc)
                return
            logger.exception("Unexpected failure while handling %r", item)
            results.put(on_error(item, exc))

    workers = max_workers or len(items)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for item in items:
            pool.submit(worker, item)
    # barreira: o `with` acima só termina quando todas as tarefas acabaram

    if not crashes.empty():
        raise crashes.get()

    drained: List[R] = []
    while not results.empty():
        drained.append(results.get())
    return drained


def plan_downloads(
    outcomes: Sequence[ProcessOutcome],
    output_dir: str | Path = ".",
    verbose: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> List[DownloadJob]:
    """Report phase-1 results and turn surviving outcomes into download jobs.

    Failed seeds are printed to `stderr` and skipped; seeds without assets
    are skipped (noted when verbose).
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    output_dir = Path(output_dir)
    jobs: List[DownloadJob] = []

    for outcome in outcomes:
        if verbose:
            for message in outcome.messages:
                print(message, file=stdout)
        if not outcome.ok:
            print(f"Error: {outcome.url}: {outcome.error}", file=stderr)
            continue
        if not outcome.asset_urls:
            if verbose:
                print(f"{outcome.url}: no asset URLs found", file=stdout)
            continue
        for index, asset_url in enumerate(outcome.asset_urls, start=1):
            target = output_dir / target_filename(outcome.prefix, index, asset_url)
            jobs.append(
                DownloadJob(
                    url=asset_url, target=target, source_url=outcome.url, index=index
                )
            )
    return jobs


def report_downloads(
    downloads: Sequence[DownloadOutcome],
    verbose: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """One line per download: the file path, or ``url -> path`` when verbose."""
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    for outcome in downloads:
        if not outcome.ok:
            print(f"Error: {outcome.url}: {outcome.error}", file=stderr)
        elif verbose:
            print(f"{outcome.url} -> {outcome.path}", file=stdout)
        else:
            print(str(outcome.path), file=stdout)


def download_job(job: DownloadJob, timeout: float = 30.0) -> DownloadOutcome:
    return download_asset(job.url, job.target, timeout=timeout)


def page_crashed(url: str, exc: Exception) -> ProcessOutcome:
    return ProcessOutcome(url=url, error=RegexDownloadError(f"unexpected error: {exc}"))


def download_crashed(job: DownloadJob, exc: Exception) -> DownloadOutcome:
    error = RegexDownloadError(f"unexpected error: {exc}")
    return DownloadOutcome(url=job.url, path=job.target, error=error)


def run_pipeline(
    urls: Sequence[str],
    config: SiteConfig,
    *,
    keep_snapshot: bool = False,
    verbose: bool = False,
    max_workers: Optional[int] = None,
    output_dir: str | Path = ".",
    timeout: float = 30.0,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    processor: Optional[Callable[[str], ProcessOutcome]] = None,
    downloader: Optional[Callable[[DownloadJob], DownloadOutcome]] = None,
) -> PipelineReport:
    """Run both phases and print the report.

    `processor` and `downloader` replace the default workers (used by tests
    and by callers that need a custom HTTP client).
    """
    output_dir = Path(output_dir)
    if processor is None:
        processor = partial(
            process_page,
            config=config,
            keep_snapshot=keep_snapshot,
            output_dir=output_dir,
            timeout=timeout,
        )
    if downloader is None:
        downloader = partial(download_job, timeout=timeout)

    report = PipelineReport()

    logger.debug("Phase 1: processing %d seed URL(s)", len(urls))
    report.pages = fan_out(processor, list(urls), max_workers, page_crashed)

    jobs = plan_downloads(
        report.pages, output_dir, verbose=verbose, stdout=stdout, stderr=stderr
    )

    logger.debug("Phase 2: downloading %d asset(s)", len(jobs))
    report.downloads = fan_out(downloader, jobs, max_workers, download_crashed)

    report_downloads(report.downloads, verbose=verbose, stdout=stdout, stderr=stderr)
    return report
