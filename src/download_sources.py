#!/usr/bin/env python3
# ==============================================================================
# [FILE] src/download_sources.py
# [PROJECT] ChannelMerge
# [ROLE] Step 1 - fetch every configured source playlist
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

import logging
from typing import List, Tuple

from functions.config import Settings
from functions.http import fetch
from functions.models import SourceTag

log = logging.getLogger(__name__)


def download_all(settings: Settings) -> List[Tuple[SourceTag, str]]:
    """Any FetchError propagates: one unreachable source aborts the run."""
    raw: List[Tuple[SourceTag, str]] = []
    for tag, url in settings.sources:
        text = fetch(url, user_agent=settings.user_agent, timeout_sec=settings.fetch_timeout_sec)
        log.info("Fetched %s source: %s (%d chars)", tag.value, url, len(text))
        raw.append((tag, text))
    return raw
