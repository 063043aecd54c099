"""Failure types carried by pipeline outcomes.

Nenhuma destas exceções interrompe o pipeline: elas são capturadas e
anexadas ao resultado de cada URL (ProcessOutcome / DownloadOutcome) e só
são reportadas no final, pelo orquestrador.
"""

from __future__ import annotations


class RegexDownloadError(Exception):
    """Base class for every failure reported by the pipeline."""


# Erros de entrada (URL mal formada, domínio curto demais)
class InvalidURLError(RegexDownloadError):
    pass


class InvalidDomainError(RegexDownloadError):
    pass


# Erros de configuração
class SectionNotFoundError(RegexDownloadError, KeyError):
    def __str__(self) -> str:
        # KeyError.__str__ would quote the message
        return str(self.args[0]) if self.args else ""


class ConfigFileError(RegexDownloadError):
    pass


# Erros de rede (falha de conexão, status HTTP fora de 2xx)
class FetchError(RegexDownloadError):
    pass


# Padrão de prefixo inválido (fatal para a URL)
class PatternError(RegexDownloadError):
    pass


# Erros de sistema de arquivos
class SnapshotError(RegexDownloadError):
    pass


class DownloadWriteError(RegexDownloadError):
    pass
