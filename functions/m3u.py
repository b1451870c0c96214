#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/m3u.py
# [PROJECT] ChannelMerge
# [ROLE] M3U parsing (EXTINF tokenizer) and atomic playlist writing
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from functions.models import ChannelEntry, ExtinfInfo, SourceTag

log = logging.getLogger(__name__)

EXTINF = "#EXTINF:"


def parse_extinf(line: str) -> ExtinfInfo:
    """
    Tokenize `#EXTINF:<duration> key="value" ...,<Display Name>`.

    Quoted values may contain spaces and commas. Attributes end at the first
    comma outside quotes; the display name is the text after the last comma.
    Never raises.
    """
    body = line[len(EXTINF):] if line.startswith(EXTINF) else line
    n = len(body)
    i = 0

    while i < n and body[i].isspace():
        i += 1
    start = i
    while i < n and not body[i].isspace() and body[i] != ",":
        i += 1
    duration = body[start:i]

    attrs: Dict[str, str] = {}
    while i < n:
        ch = body[i]
        if ch.isspace():
            i += 1
            continue
        if ch == ",":
            name = body[i + 1:].rsplit(",", 1)[-1]
            return ExtinfInfo(duration=duration, attrs=attrs, name=name.strip())

        key_start = i
        while i < n and body[i] not in "=," and not body[i].isspace():
            i += 1
        key = body[key_start:i]
        if i >= n or body[i] != "=":
            # bare word, not an attribute
            continue
        i += 1

        if i < n and body[i] in "\"'":
            quote = body[i]
            i += 1
            val_start = i
            while i < n and body[i] != quote:
                i += 1
            value = body[val_start:i]
            i += 1  # closing quote (or past end)
        else:
            val_start = i
            while i < n and not body[i].isspace() and body[i] != ",":
                i += 1
            value = body[val_start:i]

        if key:
            attrs[key.lower()] = value.strip()

    return ExtinfInfo(duration=duration, attrs=attrs, name="")


def parse(text: str, source: SourceTag) -> List[ChannelEntry]:
    """
    Parse #EXTINF + URL pairs, in input order.

    Each #EXTINF takes the next non-blank, non-comment line as its URL, so
    back-to-back directives share one URL. Directives left open at the end of
    input are dropped.
    """
    out: List[ChannelEntry] = []
    pending: List[str] = []
    for raw in text.lstrip("\ufeff").splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(EXTINF):
            pending.append(line)
            continue
        if line.startswith("#"):
            continue
        out.extend(ChannelEntry(extinf=ext, url=line, source=source) for ext in pending)
        pending = []
    return out


def render_m3u(entries: Iterable[ChannelEntry], epg_url: Optional[str] = None) -> str:
    header = f'#EXTM3U x-tvg-url="{epg_url}"' if epg_url else "#EXTM3U"
    parts = [header, ""]
    for e in entries:
        parts.extend([e.extinf, e.url, ""])
    return "\n".join(parts).rstrip() + "\n"


def write_m3u(entries: Iterable[ChannelEntry], path: Path, epg_url: Optional[str] = None) -> Path:
    """Write the playlist via temp file + rename so readers never see a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = render_m3u(entries, epg_url)

    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    log.info("Wrote playlist %s (%d bytes)", path, len(content.encode("utf-8")))
    return path
