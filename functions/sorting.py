#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/sorting.py
# [PROJECT] ChannelMerge
# [ROLE] Deterministic, policy-aware channel ordering
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

"""
Ordering rules, first decisive rule wins:
1..k  channel-id starting with each deprioritized namespace sorts after the rest
      (one rule per namespace, in config order)
k+1   designated news source: news first, preferred broadcasters in order
k+2   numbered channels ascending, numbered before unnumbered
last  input order (sorted() is stable)
"""

from __future__ import annotations

from typing import List, Tuple

from functions.config import SortPolicy
from functions.models import ChannelEntry


def news_rank(entry: ChannelEntry, policy: SortPolicy) -> int:
    neutral = len(policy.preferred_news) + 1
    if policy.news_source is None or entry.source != policy.news_source:
        return neutral
    name = entry.display_name.lower()
    if policy.news_keyword not in name:
        return neutral
    for i, pref in enumerate(policy.preferred_news):
        if pref in name:
            return i
    return len(policy.preferred_news)


def sort_key(entry: ChannelEntry, policy: SortPolicy) -> Tuple:
    info = entry.info
    cid = info.channel_id.lower()
    tiers = tuple(cid.startswith(p) for p in policy.deprioritized_id_prefixes)
    number = info.channel_number
    return tiers + (
        news_rank(entry, policy),
        (0, number) if number is not None else (1, 0),
    )


def sort_entries(entries: List[ChannelEntry], policy: SortPolicy) -> List[ChannelEntry]:
    return sorted(entries, key=lambda e: sort_key(e, policy))
