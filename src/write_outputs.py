#!/usr/bin/env python3
# ==============================================================================
# [FILE] src/write_outputs.py
# [PROJECT] ChannelMerge
# [ROLE] Step 5 - write the consolidated playlist and the run report
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

import json
import logging
import time
from pathlib import Path
from typing import List

from functions.config import Settings
from functions.m3u import write_m3u
from functions.models import ChannelEntry

log = logging.getLogger(__name__)


def write_json(path: Path, obj: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")


def write_outputs(channels: List[ChannelEntry], report: dict, settings: Settings) -> Path:
    out = write_m3u(channels, settings.playlist_path, epg_url=settings.epg_url)

    report.setdefault("timestamp_utc", time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
    report.setdefault("counts", {})["written"] = len(channels)
    report["output"] = str(out)
    write_json(settings.report_path, report)
    log.info("Wrote report %s", settings.report_path)
    return out
