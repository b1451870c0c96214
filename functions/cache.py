#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/cache.py
# [PROJECT] ChannelMerge
# [ROLE] Persistent probe-result cache (JSON, 7-day expiry)
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Dict, Optional

from functions.models import ProbeError, ProbeResult

log = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
MAX_AGE_MS = 7 * DAY_MS


def now_ms() -> int:
    return int(time.time() * 1000)


def to_record(r: ProbeResult) -> dict:
    rec = {
        "working": r.working,
        "statusCode": r.status_code,
        "error": r.error.value if r.error else None,
        "height": r.height,
        "bytes": r.bytes,
        "timestamp": r.timestamp,
    }
    return {k: v for k, v in rec.items() if v is not None}


def from_record(url: str, rec: dict) -> ProbeResult:
    """Raises on malformed records; callers skip them."""
    if not isinstance(rec, dict):
        raise TypeError(f"record for {url} is {type(rec).__name__}, not an object")
    error = rec.get("error")
    status = rec.get("statusCode")
    height = rec.get("height")
    size = rec.get("bytes")
    return ProbeResult(
        url=url,
        working=bool(rec["working"]),
        status_code=int(status) if status is not None else None,
        bytes=int(size) if size is not None else None,
        error=ProbeError(error) if error else None,
        height=int(height) if height is not None else None,
        timestamp=int(rec["timestamp"]),
    )


def load(path: Path, now: Optional[int] = None, max_age_ms: int = MAX_AGE_MS) -> Dict[str, ProbeResult]:
    """Missing or corrupt cache -> empty mapping. Expired entries are dropped."""
    path = Path(path)
    if not path.exists():
        log.warning("Probe cache not found: %s (starting empty)", path)
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Probe cache unreadable: %s :: %s (starting empty)", path, e)
        return {}
    if not isinstance(raw, dict):
        log.warning("Probe cache is not a mapping: %s (starting empty)", path)
        return {}

    cutoff = (now if now is not None else now_ms()) - max_age_ms
    out: Dict[str, ProbeResult] = {}
    expired = malformed = 0
    for url, rec in raw.items():
        try:
            result = from_record(url, rec)
        except (KeyError, TypeError, ValueError):
            malformed += 1
            continue
        if result.timestamp < cutoff:
            expired += 1
            continue
        out[url] = result

    log.info("Probe cache loaded: %d valid, %d expired, %d malformed", len(out), expired, malformed)
    return out


def save(path: Path, cache: Dict[str, ProbeResult]) -> bool:
    """Rewrite the whole cache. Failure is logged, never raised."""
    path = Path(path)
    payload = {url: to_record(r) for url, r in sorted(cache.items())}
    tmp = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError as e:
        log.error("Probe cache save failed: %s :: %s", path, e)
        if tmp:
            Path(tmp).unlink(missing_ok=True)
        return False
    log.info("Probe cache saved: %d entries -> %s", len(payload), path)
    return True
