#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/filters.py
# [PROJECT] ChannelMerge
# [ROLE] Keyword / allow-list / prefix filtering per source
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

from functions.config import FilterPolicy
from functions.models import ChannelEntry

log = logging.getLogger(__name__)


def drop_reason(entry: ChannelEntry, policy: FilterPolicy) -> Optional[str]:
    """Returns the rule that drops this entry, or None if it is kept."""
    name = entry.display_name.lower()
    sp = policy.for_source(entry.source)

    if any(name.startswith(p) for p in sp.exclude_prefixes):
        return "prefix"

    if any(kw in name for kw in policy.keywords_for(entry.source)):
        return "keyword"

    if sp.allow and not any(a in name for a in sp.allow):
        return "not_allowed"

    return None


def filter_entries(entries: List[ChannelEntry], policy: FilterPolicy) -> List[ChannelEntry]:
    kept: List[ChannelEntry] = []
    dropped: Counter = Counter()
    for e in entries:
        reason = drop_reason(e, policy)
        if reason is None:
            kept.append(e)
        else:
            dropped[reason] += 1
    log.info("Filter: kept=%d dropped=%s", len(kept), dict(dropped))
    return kept
