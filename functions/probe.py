#!/usr/bin/env python3
# ==============================================================================
# [FILE] functions/probe.py
# [PROJECT] ChannelMerge
# [ROLE] Stream liveness/quality probe (aiohttp, bounded redirects, failsafe timer)
# [VERSION] v1.0
# [UPDATED] 2026-10-17
# ==============================================================================

"""
StreamProbe

- GET with a browser User-Agent, redirects followed manually (bounded loop).
- On 2xx only the first 4096 bytes are read, then the connection is closed.
- .m3u8 URLs must look like HLS; RESOLUTION= tags below min_height fail.
- An absolute timer (timeout + grace) settles the probe if the socket-level
  timeouts never fire. Whichever side settles first wins; the other is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

import aiohttp

from functions.models import ProbeError, ProbeResult

log = logging.getLogger(__name__)

HEAD_BYTES = 4096
HLS_MARKERS = (b"#EXTM3U", b"#EXT-X-", b".ts", b".m3u8")
RESOLUTION_RX = re.compile(rb"RESOLUTION=(\d+)x(\d+)", re.IGNORECASE)

BROWSER_HEADERS = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}


def make_session(user_agent: str) -> aiohttp.ClientSession:
    headers = dict(BROWSER_HEADERS)
    headers["User-Agent"] = user_agent
    return aiohttp.ClientSession(headers=headers)


def max_resolution_height(data: bytes) -> Optional[int]:
    heights = [int(h) for _w, h in RESOLUTION_RX.findall(data)]
    return max(heights) if heights else None


def evaluate(url: str, final_url: str, status: int, data: bytes, min_height: int = 720) -> ProbeResult:
    """Judge the first bytes of a 2xx response."""
    if urlparse(final_url).path.lower().endswith(".m3u8"):
        if not any(m in data for m in HLS_MARKERS):
            return ProbeResult(url=url, working=False, status_code=status, error=ProbeError.INVALID_CONTENT)
        height = max_resolution_height(data)
        if height is not None and height < min_height:
            return ProbeResult(
                url=url, working=False, status_code=status, error=ProbeError.LOW_RESOLUTION, height=height
            )

    if not data:
        return ProbeResult(url=url, working=False, status_code=status, error=ProbeError.NO_DATA)

    return ProbeResult(url=url, working=True, status_code=status, bytes=len(data))


async def read_head(resp: aiohttp.ClientResponse, limit: int = HEAD_BYTES) -> bytes:
    buf = bytearray()
    while len(buf) < limit:
        chunk = await resp.content.read(limit - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


async def _probe_chain(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float,
    max_redirects: int,
    min_height: int,
) -> ProbeResult:
    client_timeout = aiohttp.ClientTimeout(total=None, sock_connect=timeout, sock_read=timeout)
    current = url
    redirects = 0

    try:
        while True:
            async with session.get(current, allow_redirects=False, timeout=client_timeout) as resp:
                status = resp.status
                location = resp.headers.get("Location")

                if 300 <= status < 400 and location:
                    resp.close()
                    if redirects >= max_redirects:
                        return ProbeResult(
                            url=url, working=False, status_code=status, error=ProbeError.TOO_MANY_REDIRECTS
                        )
                    redirects += 1
                    current = urljoin(current, location)
                    continue

                if not 200 <= status < 300:
                    resp.close()
                    return ProbeResult(url=url, working=False, status_code=status, error=ProbeError.BAD_STATUS)

                data = await read_head(resp)
                resp.close()
                return evaluate(url, current, status, data, min_height)

    except asyncio.TimeoutError:
        return ProbeResult(url=url, working=False, error=ProbeError.TIMEOUT)
    except (aiohttp.ClientError, OSError, ValueError) as e:
        log.debug("Probe network error: %s :: %s", url, e)
        return ProbeResult(url=url, working=False, error=ProbeError.NETWORK_ERROR)


async def probe(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float = 5.0,
    max_redirects: int = 5,
    grace: float = 1.0,
    min_height: int = 720,
) -> ProbeResult:
    """Resolves exactly once, within timeout + grace seconds."""
    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def settle(result: ProbeResult) -> None:
        if not outcome.done():
            outcome.set_result(result)

    async def run() -> None:
        try:
            result = await _probe_chain(session, url, timeout, max_redirects, min_height)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not outcome.done():
                outcome.set_exception(e)
            return
        settle(result)

    worker = asyncio.ensure_future(run())
    timer = loop.call_later(
        timeout + grace,
        settle,
        ProbeResult(url=url, working=False, error=ProbeError.ABSOLUTE_TIMEOUT),
    )
    try:
        return await outcome
    finally:
        timer.cancel()
        if not worker.done():
            worker.cancel()
