"""Page processor: fetch one seed URL and extract its prefix and asset URLs.

Passo a passo para cada URL semente:

1. valida a URL e descobre a seção da configuração pelo domínio
   (`loja.example.com` -> seção `example`);
2. calcula o prefixo padrão `<seção>-<timestamp>`;
3. baixa a página para um arquivo temporário (sempre apagado no final, a
   menos que o snapshot deva ser mantido);
4. aplica o padrão `prefix` (se houver) e todas as regras `re*` sobre o
   conteúdo baixado.

Qualquer falha vira um `ProcessOutcome` com `error`; nada é levantado para
o orquestrador.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional
from urllib.parse import ParseResult, urljoin, urlparse

import requests

from regex_download.core.config import ExtractionRule, SiteConfig
from regex_download.core.errors import (
    FetchError,
    InvalidDomainError,
    InvalidURLError,
    PatternError,
    RegexDownloadError,
    SnapshotError,
)
from regex_download.core.scraping.fetcher import Fetcher, is_success, status_error
from regex_download.core.scraping.models import ProcessOutcome
from regex_download.core.scraping.sanitizer import sanitize_prefix

logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http", "https")
CHUNK_SIZE = 8192

# whitespace or ASCII control characters are never valid inside a URL
_INVALID_URL_CHARS = re.compile(r"[\x00-\x20\x7f]")


def _now() -> int:
    return int(time.time())


def _now_ns() -> int:
    return time.time_ns()


def parse_seed_url(url: str) -> ParseResult:
    """Parse a seed URL, raising `InvalidURLError` when it is malformed."""
    if not url or url.startswith(":"):
        raise InvalidURLError(f"invalid URL {url!r}: missing protocol scheme")
    if _INVALID_URL_CHARS.search(url):
        raise InvalidURLError(f"invalid URL {url!r}: invalid character")
    try:
        parsed = urlparse(url)
        # acessar .port valida a porta (levanta ValueError se não for número)
        parsed.port
    except ValueError as exc:
        raise InvalidURLError(f"invalid URL {url!r}: {exc}") from exc
    return parsed


def section_name_for(parsed: ParseResult) -> str:
    """Return the second-level domain label used as configuration key."""
    host = parsed.hostname or ""
    labels = host.split(".")
    if len(labels) < 2:
        raise InvalidDomainError(f"invalid domain {host!r}")
    return labels[-2]


def fallback_prefix(section_name: str) -> str:
    return f"{section_name}-{_now()}"


class Snapshot:
    """Temporary copy of a fetched page body."""

    def __init__(self, path: Path):
        self.path = path
        self.retained = False

    def retain(self, destination: Path) -> Path:
        self.path.rename(destination)
        self.path = destination
        self.retained = True
        return destination


@contextmanager
def scoped_snapshot(directory: Path) -> Iterator[Snapshot]:
    """Create a temp file in `directory`; delete it on exit unless retained."""
    try:
        fd, name = tempfile.mkstemp(
            prefix=".regexdownload-", suffix=".tmp", dir=directory
        )
        os.close(fd)
    except OSError as exc:
        raise SnapshotError(f"could not create temporary file: {exc}") from exc

    snapshot = Snapshot(Path(name))
    try:
        yield snapshot
    finally:
        if not snapshot.retained:
            try:
                snapshot.path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning(
                    "Could not remove temporary file %s: %s", snapshot.path, exc
                )


def fetch_into(fetcher: Fetcher, url: str, snapshot: Snapshot) -> bytes:
    """Stream the body of `url` into the snapshot file and read it back."""
    try:
        resp = fetcher.stream_get(url)
    except requests.RequestException as exc:
        raise FetchError(str(exc)) from exc

    with resp as r:
        if not is_success(r.status_code):
            raise status_error(r)
        try:
            with open(snapshot.path, "wb") as fh:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        except requests.RequestException as exc:
            raise FetchError(str(exc)) from exc
        except OSError as exc:
            raise SnapshotError(f"could not write temporary file: {exc}") from exc

    try:
        return snapshot.path.read_bytes()
    except OSError as exc:
        raise SnapshotError(f"could not read temporary file: {exc}") from exc


def _compile(pattern: str) -> "re.Pattern[bytes]":
    # o conteúdo é tratado como bytes, então o padrão também
    return re.compile(pattern.encode("utf-8"))


def match_prefix(pattern: str, body: bytes) -> Optional[str]:
    """Return the first capture group of the first match, if any.

    Raises `PatternError` when the pattern does not compile.
    """
    try:
        regex = _compile(pattern)
    except (re.error, OverflowError) as exc:
        raise PatternError(f"invalid prefix pattern {pattern!r}: {exc}") from exc
    if regex.groups < 1:
        return None
    match = regex.search(body)
    if match is None or match.group(1) is None:
        return None
    return match.group(1).decode("utf-8", errors="replace")


def extract_asset_urls(
    rules: Iterable[ExtractionRule],
    body: bytes,
    base_url: str,
    notes: List[str],
) -> List[str]:
    """Apply every extraction rule and collect the first capture groups.

    Rules run in configuration order; matches of one rule keep document
    order. A rule that fails to compile is skipped with a warning note.
    Captured text is resolved against `base_url`, so absolute URLs pass
    through unchanged.
    """
    urls: List[str] = []
    for rule in rules:
        try:
            regex = _compile(rule.pattern)
        except (re.error, OverflowError) as exc:
            notes.append(f"warning: skipping rule {rule.name}: {exc}")
            logger.warning("Invalid pattern for %s: %s", rule.name, exc)
            continue
        if regex.groups < 1:
            notes.append(f"warning: rule {rule.name} has no capture group")
            continue

        found = 0
        for match in regex.finditer(body):
            raw = match.group(1)
            if not raw:
                continue
            text = raw.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            urls.append(urljoin(base_url, text))
            found += 1
        notes.append(f"rule {rule.name} matched {found} URL(s)")
    return urls


class PageProcessor:
    """Process seed URLs against a read-only `SiteConfig`.

    Holds no per-URL state, so a single instance may serve one worker; the
    `Fetcher` it owns must not be shared between threads.
    """

    def __init__(
        self,
        config: SiteConfig,
        fetcher: Fetcher | None = None,
        keep_snapshot: bool = False,
        output_dir: str | Path = ".",
    ) -> None:
        self.config = config
        self.fetcher = fetcher or Fetcher()
        self.keep_snapshot = keep_snapshot
        self.output_dir = Path(output_dir)

    def process(self, url: str) -> ProcessOutcome:
        notes: List[str] = []
        section_name = ""
        prefix = ""
        try:
            parsed = parse_seed_url(url)
            section_name = section_name_for(parsed)
            section = self.config.section(section_name)
            prefix = fallback_prefix(section_name)

            if parsed.scheme.lower() not in HTTP_SCHEMES:
                notes.append(f"{url}: not an HTTP(S) URL, nothing fetched")
                return ProcessOutcome(
                    url=url,
                    section=section_name,
                    prefix=sanitize_prefix(prefix),
                    messages=tuple(notes),
                )

            with scoped_snapshot(self.output_dir) as snapshot:
                body = fetch_into(self.fetcher, url, snapshot)
                notes.append(f"{url}: fetched {len(body)} bytes")

                if section.prefix is not None:
                    prefix = self._resolve_prefix(section.prefix, body, prefix, notes)

                assets = extract_asset_urls(section.rules, body, url, notes)

                if self.keep_snapshot:
                    self._retain(snapshot, section_name, notes)

        except RegexDownloadError as exc:
            logger.debug("Processing %s failed: %s", url, exc)
            return ProcessOutcome(
                url=url,
                section=section_name,
                prefix=sanitize_prefix(prefix),
                messages=tuple(notes),
                error=exc,
            )

        return ProcessOutcome(
            url=url,
            section=section_name,
            prefix=sanitize_prefix(prefix),
            asset_urls=tuple(assets),
            messages=tuple(notes),
        )

    def _resolve_prefix(
        self, pattern: str, body: bytes, fallback: str, notes: List[str]
    ) -> str:
        captured = match_prefix(pattern, body)
        if captured is not None and sanitize_prefix(captured):
            notes.append(f"prefix found: {captured}")
            return captured
        notes.append(f"prefix pattern did not match, using {fallback}")
        return fallback

    def _retain(self, snapshot: Snapshot, section_name: str, notes: List[str]) -> None:
        destination = self.output_dir / f"{section_name}-{_now_ns()}.html"
        try:
            snapshot.retain(destination)
        except OSError as exc:
            # o arquivo temporário será apagado ao sair do `with`
            notes.append(f"warning: could not keep snapshot {destination}: {exc}")
            logger.warning("Could not keep snapshot %s: %s", destination, exc)
            return
        notes.append(f"snapshot saved to {destination}")


def process_page(
    url: str,
    config: SiteConfig,
    *,
    keep_snapshot: bool = False,
    output_dir: str | Path = ".",
    fetcher: Fetcher | None = None,
    timeout: float = 30.0,
) -> ProcessOutcome:
    """Process one seed URL with its own `Fetcher` unless one is given."""
    if fetcher is not None:
        return PageProcessor(config, fetcher, keep_snapshot, output_dir).process(url)
    with Fetcher(timeout=timeout) as own:
        return PageProcessor(config, own, keep_snapshot, output_dir).process(url)
