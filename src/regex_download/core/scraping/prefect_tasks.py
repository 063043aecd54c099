"""Tarefas Prefect que usam os componentes de scraping.

Este arquivo adapta as funções "de baixo" (processar página, baixar asset)
para o modelo de execução do Prefect. Cada task é uma unidade de trabalho
com logs e estado; o flow submete uma task por URL.

Diferente de outros pipelines, aqui não há retries: uma falha é registrada
uma única vez no resultado (`error`) e a task termina normalmente, para que
as outras URLs não sejam afetadas. O cache também fica desligado, porque
baixar de novo a mesma URL em outra execução é o comportamento esperado.
"""

from __future__ import annotations

from pathlib import Path

from prefect import get_run_logger, task
from prefect.cache_policies import NO_CACHE

from regex_download.core.config import SiteConfig
from regex_download.core.scraping.downloader import download_asset
from regex_download.core.scraping.models import (
    DownloadJob,
    DownloadOutcome,
    ProcessOutcome,
)
from regex_download.core.scraping.page_processor import process_page


@task(name="process_page", retries=0, cache_policy=NO_CACHE)
def process_page_task(
    url: str,
    config: SiteConfig,
    keep_snapshot: bool = False,
    output_dir: str = ".",
    timeout: float = 30.0,
) -> ProcessOutcome:
    logger = get_run_logger()
    logger.info("Processing seed URL: %s", url)
    outcome = process_page(
        url,
        config,
        keep_snapshot=keep_snapshot,
        output_dir=Path(output_dir),
        timeout=timeout,
    )
    if outcome.ok:
        logger.info("Found %d asset(s) on %s", len(outcome.asset_urls), url)
    else:
        logger.error("Processing %s failed: %s", url, outcome.error)
    return outcome


@task(name="download_asset", retries=0, cache_policy=NO_CACHE)
def download_asset_task(job: DownloadJob, timeout: float = 30.0) -> DownloadOutcome:
    logger = get_run_logger()
    outcome = download_asset(job.url, job.target, timeout=timeout)
    if outcome.ok:
        logger.info("Saved file %s (size=%s bytes)", outcome.path, outcome.size)
    else:
        logger.error("Download of %s failed: %s", job.url, outcome.error)
    return outcome
