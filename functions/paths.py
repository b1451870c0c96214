#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/paths.py
# [PROJECT] ChannelMerge
# [ROLE] Path helpers for config, cache, outputs, logs
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

import os
from pathlib import Path

BASE_DIR = Path(__file__).parent.parent

CONFIG_ENV = "CHANNELMERGE_CONFIG"


def config_path() -> Path:
    override = os.getenv(CONFIG_ENV, "").strip()
    if override:
        return Path(override)
    return BASE_DIR / "config" / "channelmerge.yml"


def resolve(rel: str) -> Path:
    """Relative paths in config are anchored at the project root."""
    p = Path(rel)
    return p if p.is_absolute() else BASE_DIR / p


def logs_dir() -> Path:
    d = BASE_DIR / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d
