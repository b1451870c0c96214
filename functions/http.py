#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/http.py
# [PROJECT] ChannelMerge
# [ROLE] Source playlist fetch (single attempt, fatal on failure)
# [VERSION] v1.1
# [UPDATED] 2026-10-17
# ==============================================================================

from typing import Optional

import requests


class FetchError(Exception):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        detail = f"http={status_code}" if status_code is not None else (reason or "transport error")
        super().__init__(f"fetch failed: {url} ({detail})")


def fetch(url: str, user_agent: str = None, timeout_sec: int = 30) -> str:
    headers = {"User-Agent": user_agent or "ChannelMerge/1.0"}
    try:
        response = requests.get(url, timeout=timeout_sec, headers=headers)
    except requests.RequestException as e:
        raise FetchError(url, reason=f"exc={type(e).__name__}") from e
    if response.status_code != 200:
        raise FetchError(url, status_code=response.status_code)
    if not response.encoding or response.encoding.lower() == "iso-8859-1":
        # playlists are UTF-8 even when the server says nothing
        response.encoding = "utf-8"
    return response.text
