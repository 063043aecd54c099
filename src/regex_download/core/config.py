"""Site configuration: per-domain prefix and extraction patterns.

The configuration file is INI-like, one section per second-level domain
label::

    [example]
    prefix = <title>(.*?)</title>
    reImages = <img src="([^"]+)"
    reVideos = <source src="([^"]+)"

`prefix` is optional; every key starting with `re` is an extraction rule.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from regex_download.core.errors import ConfigFileError, SectionNotFoundError

PROGRAM_NAME = "regexdownload"
RULE_KEY_PREFIX = "re"
PREFIX_KEY = "prefix"
SYSTEM_CONFIG_DIRS = (Path("/opt/local/etc"), Path("/etc"))


class ExtractionRule(BaseModel):
    """One named pattern whose first capture group yields an asset URL."""

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str


class SiteSection(BaseModel):
    """Settings for one site, keyed by its second-level domain label."""

    model_config = ConfigDict(frozen=True)

    name: str
    prefix: Optional[str] = None
    rules: Tuple[ExtractionRule, ...] = ()

    @field_validator("name")
    def name_is_lowercase(cls, v):
        # hostnames are case-insensitive; urlparse lowercases them
        return v.lower()

    @classmethod
    def from_items(cls, name: str, items: Mapping[str, str]) -> "SiteSection":
        """Build a section from raw key/value pairs, keeping key order."""
        rules = tuple(
            ExtractionRule(name=key, pattern=value)
            for key, value in items.items()
            if key.startswith(RULE_KEY_PREFIX)
        )
        return cls(name=name, prefix=items.get(PREFIX_KEY), rules=rules)


class SiteConfig(BaseModel):
    """Read-only collection of sections shared by every worker."""

    model_config = ConfigDict(frozen=True)

    sections: Dict[str, SiteSection] = Field(default_factory=dict)

    def section(self, name: str) -> SiteSection:
        try:
            return self.sections[name.lower()]
        except KeyError:
            raise SectionNotFoundError(f"section {name!r} not found") from None

    def __contains__(self, name: str) -> bool:
        return name.lower() in self.sections

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, str]]) -> "SiteConfig":
        """Build the configuration from ``{section: {key: value}}``."""
        sections = {}
        for name, items in data.items():
            section = SiteSection.from_items(name, dict(items))
            sections[section.name] = section
        return cls(sections=sections)


class RunSettings(BaseModel):
    """Knobs for one pipeline run (normally filled from the command line)."""

    keep_snapshot: bool = False
    verbose: bool = False
    # None = um worker por tarefa (sem limite)
    max_workers: Optional[int] = Field(default=None, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    output_dir: Path = Path(".")


def load_config(path: str | os.PathLike) -> SiteConfig:
    """Parse an INI configuration file into a `SiteConfig`.

    Interpolation is disabled because regular expressions routinely contain
    `%`, and key case is preserved so rule names read as written.
    """
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment]
    try:
        with open(path, encoding="utf-8") as fh:
            parser.read_file(fh)
    except (OSError, configparser.Error) as exc:
        raise ConfigFileError(f"could not read configuration {path}: {exc}") from exc

    data = {name: dict(parser.items(name)) for name in parser.sections()}
    return SiteConfig.from_mapping(data)


def find_config_file(
    program: str = PROGRAM_NAME,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    system_dirs: Tuple[Path, ...] = SYSTEM_CONFIG_DIRS,
) -> Optional[Path]:
    """Locate the configuration file.

    Search order:
    1. the file named by ``<PROGRAM>_CONFIG`` (if it exists);
    2. ``./.<program>.conf``;
    3. ``/opt/local/etc/<program>.conf``;
    4. ``/etc/<program>.conf``.

    Returns None when nothing is found.
    """
    environ = os.environ if environ is None else environ
    cwd = Path.cwd() if cwd is None else cwd

    env_path = environ.get(f"{program.upper()}_CONFIG")
    if env_path and Path(env_path).is_file():
        return Path(env_path)

    candidates = [cwd / f".{program}.conf"]
    candidates.extend(d / f"{program}.conf" for d in system_dirs)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None
