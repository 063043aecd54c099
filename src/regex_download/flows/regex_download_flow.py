"""
Fluxo de download por regex (explicado para leigos)

Este arquivo define um "flow" do Prefect que executa o mesmo pipeline da
linha de comando, mas com tasks do Prefect (logs, estado, UI):

1. Valida a configuração dos sites (uma seção por domínio).
2. Fase 1: submete uma task `process_page` por URL semente. Cada task baixa
   a página e aplica os padrões `prefix` e `re*` da seção do domínio.
3. Espera TODAS as tasks da fase 1 terminarem (barreira).
4. Fase 2: para cada asset encontrado, submete uma task `download_asset`
   que grava `<prefixo>-<NN><extensão>` no diretório de saída.
5. Imprime o relatório e devolve um `PipelineReport`.

Uma URL com erro nunca impede o processamento das outras.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from prefect import flow, get_run_logger
from prefect.futures import wait
from prefect.task_runners import ThreadPoolTaskRunner

from regex_download.core.config import SiteConfig
from regex_download.core.pipeline import (
    PipelineReport,
    download_crashed,
    page_crashed,
    plan_downloads,
    report_downloads,
)
from regex_download.core.scraping.prefect_tasks import (
    download_asset_task,
    process_page_task,
)


def _outcome_or_crash(future, item, on_crash):
    # uma task que levantou exceção vira um resultado com `error`
    result = future.result(raise_on_failure=False)
    if isinstance(result, Exception):
        return on_crash(item, result)
    return result


@flow(name="Regex Download", log_prints=True, task_runner=ThreadPoolTaskRunner())
def regex_download_flow(
    urls: List[str],
    config_dict: Dict[str, Dict[str, str]],
    keep_snapshot: bool = False,
    verbose: bool = False,
    output_dir: str = ".",
    timeout: float = 30.0,
) -> PipelineReport:
    """Two-phase scrape-then-download flow.

    config_dict: ``{section: {"prefix": ..., "reXxx": ...}}``, the same
    shape as the INI configuration file.
    """
    logger = get_run_logger()
    try:
        config = SiteConfig.from_mapping(config_dict)
        logger.info("Config valid: %d section(s)", len(config.sections))
    except Exception as e:
        logger.error("Invalid config: %s", e)
        raise

    page_futures = [
        process_page_task.submit(url, config, keep_snapshot, output_dir, timeout)
        for url in urls
    ]
    # barreira: nenhuma task da fase 2 começa antes de todas da fase 1
    wait(page_futures)
    report = PipelineReport(
        pages=[
            _outcome_or_crash(f, url, page_crashed)
            for f, url in zip(page_futures, urls)
        ]
    )

    jobs = plan_downloads(report.pages, output_dir, verbose=verbose)
    logger.info("Phase 1 done: %d asset(s) to download", len(jobs))

    download_futures = [download_asset_task.submit(job, timeout) for job in jobs]
    wait(download_futures)
    report.downloads = [
        _outcome_or_crash(f, job, download_crashed)
        for f, job in zip(download_futures, jobs)
    ]

    report_downloads(report.downloads, verbose=verbose)
    logger.info(
        "Finished: %d/%d page(s) ok, %d/%d download(s) ok",
        len(report.pages) - len(report.failed_pages),
        len(report.pages),
        len(report.downloads) - len(report.failed_downloads),
        len(report.downloads),
    )
    return report


def run_regex_download_flow(
    urls: List[str],
    config_dict: Dict[str, Dict[str, str]],
    max_workers: Optional[int] = None,
    **kwargs,
) -> PipelineReport:
    """Run the flow with an optional cap on concurrent tasks."""
    runner = ThreadPoolTaskRunner(max_workers=max_workers)
    return regex_download_flow.with_options(task_runner=runner)(
        urls, config_dict, **kwargs
    )


if __name__ == "__main__":
    # Exemplo: imagens de uma galeria em example.com
    payload = {
        "example": {
            "prefix": r"<title>(.*?)</title>",
            "reImages": r'<img[^>]+src="([^"]+)"',
        }
    }
    run_regex_download_flow(["https://www.example.com/gallery"], payload, verbose=True)
