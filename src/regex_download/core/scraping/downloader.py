"""
Downloader (explicação para leigos)

Este arquivo contém o componente que baixa um único arquivo (asset) da
internet e grava no caminho de destino já calculado pelo orquestrador
(ex: `minha-galeria-01.png`).

- baixa o arquivo em pedaços (stream), para não ocupar muita memória;
- calcula um hash (SHA-256) durante o download para conferir integridade;
- nunca levanta exceção: qualquer falha vira um `DownloadOutcome` com
  `error` preenchido, e as outras tarefas continuam normalmente.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import requests

from regex_download.core.errors import DownloadWriteError, FetchError
from regex_download.core.scraping.fetcher import Fetcher, is_success, status_error
from regex_download.core.scraping.models import DownloadOutcome

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class Downloader:
    """Download one asset to a target path and describe the result.

    Receives an optional `Fetcher` so tests can inject a fake that returns
    controlled responses.
    """

    def __init__(self, fetcher: Fetcher | None = None):
        # se nenhum fetcher for passado, criamos um padrão
        self.fetcher = fetcher or Fetcher()

    def download(self, url: str, target: str | Path) -> DownloadOutcome:
        """Stream `url` into `target`, creating or truncating the file.

        A non-2xx status or a transport error yields a `FetchError` outcome
        and leaves the filesystem untouched. An I/O error while writing
        yields a `DownloadWriteError` outcome and removes the partial file.
        """
        target = Path(target)
        try:
            resp = self.fetcher.stream_get(url)
        except requests.RequestException as exc:
            return DownloadOutcome(url=url, path=target, error=FetchError(str(exc)))

        hasher = hashlib.sha256()
        total = 0
        with resp as r:
            if not is_success(r.status_code):
                return DownloadOutcome(url=url, path=target, error=status_error(r))
            try:
                # binário para suportar qualquer tipo de arquivo
                with open(target, "wb") as fh:
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        fh.write(chunk)
                        hasher.update(chunk)
                        total += len(chunk)
            except requests.RequestException as exc:
                _remove_partial(target)
                return DownloadOutcome(url=url, path=target, error=FetchError(str(exc)))
            except OSError as exc:
                _remove_partial(target)
                return DownloadOutcome(
                    url=url, path=target, error=DownloadWriteError(str(exc))
                )

        logger.debug("Saved %s -> %s (%d bytes)", url, target, total)
        return DownloadOutcome(
            url=url, path=target, size=total, sha256=hasher.hexdigest()
        )


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove partial file %s: %s", path, exc)


def download_asset(
    url: str,
    target: str | Path,
    fetcher: Fetcher | None = None,
    timeout: float = 30.0,
) -> DownloadOutcome:
    """Download one asset with a fresh `Fetcher` unless one is given."""
    if fetcher is not None:
        return Downloader(fetcher).download(url, target)
    with Fetcher(timeout=timeout) as own:
        return Downloader(own).download(url, target)
