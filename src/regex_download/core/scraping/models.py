"""Outcome records exchanged between pipeline phases."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from regex_download.core.errors import RegexDownloadError


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of processing one seed URL.

    `error` is set when the seed failed; in that case `asset_urls` is empty
    and `prefix` may be empty too.
    """

    url: str
    section: str = ""
    prefix: str = ""
    asset_urls: Tuple[str, ...] = ()
    messages: Tuple[str, ...] = ()
    error: Optional[RegexDownloadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DownloadJob:
    """One asset scheduled for download, with its generated target path."""

    url: str
    target: Path
    source_url: str
    index: int


@dataclass(frozen=True)
class DownloadOutcome:
    """Result of downloading one asset."""

    url: str
    path: Path
    error: Optional[RegexDownloadError] = None
    size: int = 0
    sha256: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
