"""
Packed-player common — streamwish-family pages ship a p.a.c.k.e.r script
whose unpacked body holds an object of "hlsN" links.
"""
from __future__ import annotations
import re

from ..base import NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher
from ..toolkit import unpacker

HLS_RE = re.compile(r'"hls(\d+)":\s?[\'"]([^"]+)[\'"]')


async def unpacked_page(url: str, fetcher: Fetcher, *, headers: dict | None = None) -> str:
    """Fetch a page and return its unpacked player script."""
    html = await fetcher.get(url, headers=headers)
    packed = unpacker.find_packed(html)
    if not packed:
        raise MalformedInputError(f"no packer script at {url}")
    return unpacker.unpack(packed)


def hls_links(script: str, host: str, prefix: str) -> list[NormalizedSource]:
    """Every "hlsN" entry, in script order; relative links get `host` in front."""
    out = []
    for idx, link in HLS_RE.findall(script):
        if link.startswith("/"):
            link = f"{host}{link}"
        out.append(NormalizedSource.video(link, f"{prefix} hls{idx}."))
    return out
