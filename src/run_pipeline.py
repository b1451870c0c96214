#!/usr/bin/env python3
# ==============================================================================
# [FILE] src/run_pipeline.py
# [PROJECT] ChannelMerge
# [ROLE] Main entrypoint - fetch, parse, filter, probe, dedupe, sort, write
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

"""
ChannelMerge - one pipeline run per invocation.

Exit Behavior
- 0 on success
- 2 on fatal error (source fetch failure, bad config); details in
  logs/run_pipeline.error.json
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

from functions import cache as probe_cache
from functions.config import Settings, load_settings
from functions.dedupe import dedupe
from functions.paths import logs_dir
from functions.sorting import sort_entries
from src.download_sources import download_all
from src.parse_m3u import parse_and_filter_m3u
from src.validate_streams import validate_streams
from src.write_outputs import write_json, write_outputs

__app__ = "ChannelMerge"
__component__ = "run_pipeline"
__version__ = "1.1.0"

log = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[
            logging.FileHandler(logs_dir() / "run_pipeline.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )


def run(settings: Settings) -> dict:
    log.info("Pipeline started (%d sources)", len(settings.sources))

    raw = download_all(settings)
    parsed, filtered = parse_and_filter_m3u(raw, settings.filter)

    cache = probe_cache.load(
        settings.cache_file, max_age_ms=settings.cache_max_age_days * probe_cache.DAY_MS
    )
    working, validation = validate_streams(filtered, cache, settings.probe)
    probe_cache.save(settings.cache_file, cache)

    unique = dedupe(working, settings.regional_qualifiers)
    ordered = sort_entries(unique, settings.sort)

    report = {
        "timestamp_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "app": __app__,
        "component": __component__,
        "version": __version__,
        "counts": {
            "fetched": len(raw),
            "parsed": len(parsed),
            "filtered": len(filtered),
            "probed_unique": validation["unique"],
            "working": validation["working"],
            "failed": validation["failed"],
            "cached": validation["cached"],
            "deduped": len(unique),
        },
        "validation": validation,
        "warnings": [],
    }
    if len(ordered) < settings.min_channels:
        msg = f"final_written_below_min: {len(ordered)} < {settings.min_channels}"
        report["warnings"].append(msg)
        log.warning(msg)
    write_outputs(ordered, report, settings)

    log.info("Pipeline complete: %d channels", len(ordered))
    print(
        f"Written {len(ordered)} channels → {settings.playlist_path} "
        f"(working={validation['working']} failed={validation['failed']} cached={validation['cached']})"
    )
    return report


def main(config: Optional[Path] = None) -> int:
    setup_logging()
    run(load_settings(config))
    return 0


def cli() -> int:
    try:
        return main()
    except Exception as e:
        err = {
            "timestamp_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "component": __component__,
            "version": __version__,
            "error_type": type(e).__name__,
            "error": str(e),
        }
        write_json(logs_dir() / f"{__component__}.error.json", err)
        log.error("FATAL: %s: %s", type(e).__name__, e)
        print(f"FATAL: {type(e).__name__}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(cli())
