#!/usr/bin/env python3
# ==============================================================================
# [FILE] src/parse_m3u.py
# [PROJECT] ChannelMerge
# [ROLE] Step 2 - parse fetched playlists and apply the channel filter
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

import logging
from typing import List, Tuple

from functions.config import FilterPolicy
from functions.filters import filter_entries
from functions.m3u import parse
from functions.models import ChannelEntry, SourceTag

log = logging.getLogger(__name__)


def parse_and_filter_m3u(
    raw: List[Tuple[SourceTag, str]], policy: FilterPolicy
) -> Tuple[List[ChannelEntry], List[ChannelEntry]]:
    """Returns (all parsed entries, entries surviving the filter)."""
    parsed: List[ChannelEntry] = []
    for tag, text in raw:
        entries = parse(text, tag)
        log.info("Parsed %d entries from %s", len(entries), tag.value)
        parsed.extend(entries)

    return parsed, filter_entries(parsed, policy)
