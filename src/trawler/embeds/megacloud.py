"""
Megacloud (e-1) embed extractor.

getSources returns either a plain source list or a CryptoJS `Salted__`
string. In the latter case the AES password is spliced into the base64 text
at positions read from the player script; those (offset, length) pairs
rotate roughly hourly and are served through a single-flight cache.
"""
from __future__ import annotations
import logging
import re
from typing import Optional, Sequence

from .. import config, jwplayer
from ..base import ExtractionContext, Locator, NormalizedSource
from ..cache import SingleFlightCache
from ..errors import MalformedInputError
from ..fetcher import Fetcher, parse_json
from ..runner import register_embed
from ..toolkit import b64decode, decrypt_openssl_salted, utf8

log = logging.getLogger("trawler.embeds.megacloud")

BASE = "https://megacloud.tv"
SCRIPT_URL = "https://megacloud.tv/js/player/a/prod/e1-player.min.js"
CASE_RE = re.compile(r"case\s*0x[0-9a-f]+:\s*\w+\s*=\s*(\w+)\s*,\s*\w+\s*=\s*(\w+);")


def _key_value(name: str, script: str) -> Optional[int]:
    m = re.search(rf",{re.escape(name)}=((?:0x)?([0-9a-fA-F]+))", script)
    if not m:
        return None
    try:
        return int(m.group(2), 16)
    except ValueError:
        return None


def parse_keys(script: str) -> list[tuple[int, int]]:
    """(offset, length) pairs from the player's switch statement."""
    keys = []
    for a, b in CASE_RE.findall(script):
        if b.startswith("partKey"):
            continue
        offset, length = _key_value(a, script), _key_value(b, script)
        if offset is not None and length is not None:
            keys.append((offset, length))
    return keys


def extract_password_and_data(keys: Sequence[tuple[int, int]], encrypted: str) -> tuple[str, str]:
    """
    Pull the password out of `encrypted`.

    Offsets are relative to the text with earlier password chunks still in
    place, so each chunk starts at offset + total length taken so far.
    """
    taken = [False] * len(encrypted)
    password = []
    consumed = 0
    for offset, length in keys:
        start = offset + consumed
        end = start + length
        if end > len(encrypted):
            raise MalformedInputError(f"[megacloud] key ({offset}, {length}) out of range")
        for i in range(start, end):
            password.append(encrypted[i])
            taken[i] = True
        consumed += length
    data = "".join(ch for ch, gone in zip(encrypted, taken) if not gone)
    return "".join(password), data


@register_embed
class Megacloud:
    id = "megacloud"
    name = "Megacloud"

    def __init__(self, cache: SingleFlightCache | None = None):
        self.keys = cache or SingleFlightCache(config.KEY_TTL)

    async def load_keys(self, fetcher: Fetcher) -> list[tuple[int, int]]:
        async def _load():
            keys = parse_keys(await fetcher.get(SCRIPT_URL))
            if not keys:
                raise MalformedInputError("[megacloud] no keys in player script")
            log.info(f"[{self.id}] loaded {len(keys)} key pairs")
            return keys
        return await self.keys.get(SCRIPT_URL, _load)

    async def decrypt_sources(self, encrypted: str, fetcher: Fetcher) -> list:
        keys = await self.load_keys(fetcher)
        password, data = extract_password_and_data(keys, encrypted)
        plain = utf8(decrypt_openssl_salted(password, b64decode(data)))
        sources = parse_json(plain, "megacloud sources")
        if not isinstance(sources, list):
            raise MalformedInputError("[megacloud] decrypted sources are not a list")
        return sources

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        url = locator.ref
        vid_id = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        if not vid_id:
            raise MalformedInputError("[megacloud] no id found in link")

        res = await fetcher.get_json(f"{BASE}/embed-2/ajax/e-1/getSources",
                                     params={"id": vid_id}, headers={"Referer": url})
        if not isinstance(res, dict):
            raise MalformedInputError("[megacloud] unexpected getSources response")

        sources = res.get("sources")
        if isinstance(sources, str):
            sources = await self.decrypt_sources(sources, fetcher)
        elif not isinstance(sources, list):
            raise MalformedInputError("[megacloud] no sources found")

        player = {"sources": sources, "tracks": res.get("tracks") or []}
        return jwplayer.to_sources(player, ctx.label or self.name, langs=ctx.langs)
