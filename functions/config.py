#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/config.py
# [PROJECT] ChannelMerge
# [ROLE] YAML config -> typed settings and policy tables
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

"""
Config Keys (channelmerge.yml)
- pipeline.user_agent, pipeline.fetch_timeout_sec, pipeline.min_channels
- sources[] {tag, url}
- probe.{timeout_sec, max_redirects, grace_sec, batch_size, min_height, user_agent}
- cache.{file, max_age_days}
- output.{playlist, report, epg_url}
- filter.unwanted.<category>[], filter.sources.<tag>.{extra_keywords, allow, exclude_prefixes}
- dedupe.regional_qualifiers[]
- sort.{deprioritized_id_prefixes, news_source, news_keyword, preferred_news}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from functions.models import SourceTag
from functions.paths import config_path, resolve

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ConfigError(Exception):
    pass


@dataclass
class SourcePolicy:
    extra_keywords: List[str] = field(default_factory=list)
    allow: List[str] = field(default_factory=list)
    exclude_prefixes: List[str] = field(default_factory=list)


@dataclass
class FilterPolicy:
    unwanted: Dict[str, List[str]] = field(default_factory=dict)
    sources: Dict[SourceTag, SourcePolicy] = field(default_factory=dict)

    def keywords_for(self, source: SourceTag) -> List[str]:
        words = [w for ws in self.unwanted.values() for w in ws]
        words.extend(self.for_source(source).extra_keywords)
        return words

    def for_source(self, source: SourceTag) -> SourcePolicy:
        return self.sources.get(source) or SourcePolicy()


@dataclass
class SortPolicy:
    deprioritized_id_prefixes: List[str] = field(default_factory=list)
    news_source: Optional[SourceTag] = None
    news_keyword: str = "news"
    preferred_news: List[str] = field(default_factory=list)


@dataclass
class ProbeSettings:
    timeout_sec: float = 5.0
    max_redirects: int = 5
    grace_sec: float = 1.0
    batch_size: int = 8
    min_height: int = 720
    user_agent: str = DEFAULT_UA


@dataclass
class Settings:
    sources: List[Tuple[SourceTag, str]]
    user_agent: str = "ChannelMerge/1.0"
    fetch_timeout_sec: int = 30
    min_channels: int = 0
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    cache_file: Path = field(default_factory=lambda: resolve("cache/probe_cache.json"))
    cache_max_age_days: int = 7
    playlist_path: Path = field(default_factory=lambda: resolve("outputs/playlist.m3u"))
    report_path: Path = field(default_factory=lambda: resolve("outputs/report.json"))
    epg_url: Optional[str] = None
    filter: FilterPolicy = field(default_factory=FilterPolicy)
    regional_qualifiers: List[str] = field(default_factory=list)
    sort: SortPolicy = field(default_factory=SortPolicy)


# ----------------------------
# Helpers
# ----------------------------

def load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _tag(value, where: str) -> SourceTag:
    try:
        return SourceTag(str(value).strip().lower())
    except ValueError:
        raise ConfigError(f"{where}: unknown source tag {value!r}") from None


def _strs(items) -> List[str]:
    return [str(x).strip().lower() for x in (items or []) if str(x).strip()]


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


# ----------------------------
# Build
# ----------------------------

def build_settings(cfg: dict) -> Settings:
    pipe = cfg.get("pipeline", {}) or {}

    sources: List[Tuple[SourceTag, str]] = []
    for i, src in enumerate(cfg.get("sources") or []):
        url = str((src or {}).get("url", "")).strip()
        if not url:
            raise ConfigError(f"sources[{i}]: missing url")
        sources.append((_tag(src.get("tag"), f"sources[{i}]"), url))
    if not sources:
        raise ConfigError("no sources configured")

    pcfg = cfg.get("probe", {}) or {}
    probe = ProbeSettings(
        timeout_sec=float(pcfg.get("timeout_sec", 5.0)),
        max_redirects=int(pcfg.get("max_redirects", 5)),
        grace_sec=float(pcfg.get("grace_sec", 1.0)),
        batch_size=_clamp(int(pcfg.get("batch_size", 8)), 5, 10),
        min_height=int(pcfg.get("min_height", 720)),
        user_agent=str(pcfg.get("user_agent") or DEFAULT_UA),
    )

    fcfg = cfg.get("filter", {}) or {}
    unwanted = {str(cat): _strs(words) for cat, words in (fcfg.get("unwanted") or {}).items()}
    per_source: Dict[SourceTag, SourcePolicy] = {}
    for tag, sp in (fcfg.get("sources") or {}).items():
        sp = sp or {}
        per_source[_tag(tag, "filter.sources")] = SourcePolicy(
            extra_keywords=_strs(sp.get("extra_keywords")),
            allow=_strs(sp.get("allow")),
            exclude_prefixes=_strs(sp.get("exclude_prefixes")),
        )

    scfg = cfg.get("sort", {}) or {}
    news_source = scfg.get("news_source")
    sort = SortPolicy(
        deprioritized_id_prefixes=_strs(scfg.get("deprioritized_id_prefixes")),
        news_source=_tag(news_source, "sort.news_source") if news_source else None,
        news_keyword=str(scfg.get("news_keyword", "news")).strip().lower(),
        preferred_news=_strs(scfg.get("preferred_news")),
    )

    ccfg = cfg.get("cache", {}) or {}
    ocfg = cfg.get("output", {}) or {}

    return Settings(
        sources=sources,
        user_agent=str(pipe.get("user_agent", "ChannelMerge/1.0")),
        fetch_timeout_sec=int(pipe.get("fetch_timeout_sec", 30)),
        min_channels=int(pipe.get("min_channels", 0)),
        probe=probe,
        cache_file=resolve(str(ccfg.get("file", "cache/probe_cache.json"))),
        cache_max_age_days=int(ccfg.get("max_age_days", 7)),
        playlist_path=resolve(str(ocfg.get("playlist", "outputs/playlist.m3u"))),
        report_path=resolve(str(ocfg.get("report", "outputs/report.json"))),
        epg_url=(str(ocfg["epg_url"]).strip() or None) if ocfg.get("epg_url") else None,
        filter=FilterPolicy(unwanted=unwanted, sources=per_source),
        regional_qualifiers=_strs((cfg.get("dedupe", {}) or {}).get("regional_qualifiers")),
        sort=sort,
    )


def load_settings(path: Optional[Path] = None) -> Settings:
    path = Path(path) if path else config_path()
    try:
        cfg = load_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"config {path} is not a mapping")
    return build_settings(cfg)
