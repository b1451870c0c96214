#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/models.py
# [PROJECT] ChannelMerge
# [ROLE] Shared data structures: channel entries, probe results, source tags
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union


class SourceTag(str, Enum):
    """Region/origin of a playlist source."""

    AU = "au"
    NZ = "nz"
    SAMSUNG = "samsung"
    PLUTO = "pluto"
    PLEX = "plex"


class ProbeError(str, Enum):
    TIMEOUT = "Timeout"
    ABSOLUTE_TIMEOUT = "AbsoluteTimeout"
    TOO_MANY_REDIRECTS = "TooManyRedirects"
    BAD_STATUS = "BadStatus"
    INVALID_CONTENT = "InvalidContent"
    LOW_RESOLUTION = "LowResolution"
    NO_DATA = "NoData"
    NETWORK_ERROR = "NetworkError"


@dataclass(frozen=True)
class ExtinfInfo:
    """Typed view of one #EXTINF directive."""

    duration: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    name: str = ""

    @property
    def channel_id(self) -> str:
        return (self.attrs.get("channel-id") or self.attrs.get("tvg-id") or "").strip()

    @property
    def channel_number(self) -> Optional[Union[int, float]]:
        raw = (self.attrs.get("tvg-chno") or self.attrs.get("channel-number") or "").strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            num = float(raw)
        except ValueError:
            return None
        # nan/inf would break ordering
        return num if num == num and num not in (float("inf"), float("-inf")) else None


@dataclass(frozen=True)
class ChannelEntry:
    extinf: str
    url: str
    source: SourceTag

    @property
    def info(self) -> ExtinfInfo:
        # local import: m3u imports models
        from functions.m3u import parse_extinf

        return parse_extinf(self.extinf)

    @property
    def display_name(self) -> str:
        """Text after the last comma of the directive, outside quoted values."""
        return self.info.name


@dataclass
class ProbeResult:
    url: str
    working: bool
    status_code: Optional[int] = None
    bytes: Optional[int] = None
    error: Optional[ProbeError] = None
    height: Optional[int] = None
    timestamp: int = 0

    @property
    def reason(self) -> str:
        if self.working:
            return "ok"
        if self.error is ProbeError.LOW_RESOLUTION and self.height is not None:
            return f"{self.error.value}({self.height})"
        if self.error is ProbeError.BAD_STATUS and self.status_code is not None:
            return f"{self.error.value}({self.status_code})"
        return self.error.value if self.error else "unknown"
