#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/dedupe.py
# [PROJECT] ChannelMerge
# [ROLE] Canonical channel keys and cross-source de-duplication
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Set

from functions.models import ChannelEntry

log = logging.getLogger(__name__)

BRACKETED_RX = re.compile(r"\([^)]*\)|\[[^\]]*\]")
TRAILING_HD_RX = re.compile(r"(?:^|\s)hd\s*$")
TRAILING_PLUS_RX = re.compile(r"\s*\+\s*\d+\s*$")
NON_ALNUM_RX = re.compile(r"[^a-z0-9]+")
NEVER_RX = re.compile(r"(?!x)x")


def qualifier_pattern(qualifiers: Iterable[str]) -> re.Pattern:
    words = sorted({q.strip().lower() for q in qualifiers if q.strip()}, key=len, reverse=True)
    if not words:
        return NEVER_RX
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


def _key(name: str, qualifier_rx: re.Pattern) -> str:
    s = (name or "").lower()
    s = BRACKETED_RX.sub(" ", s)
    s = TRAILING_HD_RX.sub("", s.rstrip())
    s = TRAILING_PLUS_RX.sub("", s)
    s = qualifier_rx.sub(" ", s)
    return NON_ALNUM_RX.sub("", s)


def canonical_key(name: str, qualifiers: Iterable[str] = ()) -> str:
    """
    "Channel One (Sydney)" and "Channel One NSW HD" -> "channelone".
    """
    return _key(name, qualifier_pattern(qualifiers))


def dedupe(entries: List[ChannelEntry], qualifiers: Iterable[str] = ()) -> List[ChannelEntry]:
    """Keep the first entry per URL (case-insensitive) and per non-empty canonical key."""
    rx = qualifier_pattern(qualifiers)
    seen_urls: Set[str] = set()
    seen_keys: Set[str] = set()
    out: List[ChannelEntry] = []

    for e in entries:
        url = e.url.lower()
        key = _key(e.display_name, rx)
        if url in seen_urls or (key and key in seen_keys):
            continue
        seen_urls.add(url)
        if key:
            seen_keys.add(key)
        out.append(e)

    log.info("Dedupe: %d -> %d", len(entries), len(out))
    return out
