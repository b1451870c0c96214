#!/usr/bin/env python3
# ==============================================================================
# [FILE] src/validate_streams.py
# [PROJECT] ChannelMerge
# [ROLE] Step 3 - probe candidate streams in fixed-size batches (read-through cache)
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from functions.cache import now_ms
from functions.config import ProbeSettings
from functions.models import ChannelEntry, ProbeResult
from functions.probe import make_session, probe

log = logging.getLogger(__name__)

ProbeFn = Callable[..., Awaitable[ProbeResult]]


def batches(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


async def probe_urls(
    urls: List[str],
    cache: Dict[str, ProbeResult],
    ps: ProbeSettings,
    probe_fn: Optional[ProbeFn] = None,
) -> dict:
    """
    Fill `cache` for every url. Cached results are reused; misses are probed one
    batch at a time with asyncio.gather and inserted on the loop thread.
    """
    probe_fn = probe_fn or probe
    stats = {"unique": len(urls), "cached": 0, "probed": 0}
    misses = [u for u in urls if u not in cache]
    stats["cached"] = len(urls) - len(misses)

    if not misses:
        return stats

    groups = batches(misses, ps.batch_size)
    async with make_session(ps.user_agent) as session:
        for n, group in enumerate(groups, 1):
            results = await asyncio.gather(
                *(
                    probe_fn(
                        session,
                        u,
                        timeout=ps.timeout_sec,
                        max_redirects=ps.max_redirects,
                        grace=ps.grace_sec,
                        min_height=ps.min_height,
                    )
                    for u in group
                )
            )
            stamp = now_ms()
            for u, r in zip(group, results):
                r.timestamp = stamp
                cache[u] = r
            stats["probed"] += len(group)
            log.debug("Probe batch %d/%d done (%d urls)", n, len(groups), len(group))

    return stats


def validate_streams(
    entries: List[ChannelEntry],
    cache: Dict[str, ProbeResult],
    ps: ProbeSettings,
    probe_fn: Optional[ProbeFn] = None,
) -> Tuple[List[ChannelEntry], dict]:
    """Returns (working entries in input order, validation stats)."""
    urls = list(dict.fromkeys(e.url for e in entries))

    started = time.time()
    stats = asyncio.run(probe_urls(urls, cache, ps, probe_fn))

    reasons: Dict[str, int] = {}
    working = failed = 0
    for u in urls:
        r = cache[u]
        reasons[r.reason] = reasons.get(r.reason, 0) + 1
        if r.working:
            working += 1
        else:
            failed += 1

    stats.update({"working": working, "failed": failed, "reasons": reasons})
    log.info(
        "Validation: %d unique urls, working=%d failed=%d cached=%d (%.1fs)",
        len(urls),
        working,
        failed,
        stats["cached"],
        time.time() - started,
    )
    return [e for e in entries if cache[e.url].working], stats
