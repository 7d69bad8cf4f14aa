"""
vidsrc.net — three chained iframes, then a hidden div whose id names the
decoding variant for its content. The variant table lives in
trawler/data/vidsrc_net_decoders.json and grows whenever the site adds one;
`register_variant` extends it at runtime.

Flow: /embed/... → #player_iframe src → /prorcp/... → <div id=VARIANT>payload</div>
→ decode → "url1 or url2 or ..."
"""
from __future__ import annotations
import codecs
import json
import logging
import re
from importlib import resources
from typing import Callable

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import EncodingError, MalformedInputError
from ..fetcher import Fetcher
from ..runner import register_source
from ..toolkit import b64decode, hex_decode, utf8

log = logging.getLogger("trawler.sources.vidsrc_net")

BASE = "https://vidsrc.xyz"
HOST_URL = "https://edgedeliverynetwork.com"

IFRAME_RE = re.compile(r'id="player_iframe" src="([^"]+)"')
PRORCP_RE = re.compile(r"src: '(/prorcp/[^']+)'")
PAYLOAD_RE = re.compile(r'<div id="([^"]+)" style="display:none;">([^>]+)</div>')


# ──────────────────────────────
#  Decoding methods
# ──────────────────────────────
def _identity(text: str) -> str:
    return text


def _hex_xor_b64(text: str, key: str, shift: int = 0) -> str:
    k = key.encode("latin-1")
    raw = bytes(((b ^ k[i % len(k)]) - shift) & 0xFF for i, b in enumerate(hex_decode(text)))
    return utf8(b64decode(raw))


def _rot13_b64(text: str) -> str:
    return utf8(b64decode(codecs.encode(text, "rot13")))


def _even_chars_b64(text: str) -> str:
    return utf8(b64decode(text[::2]))


def _reverse_shift_hex(text: str, shift: int = 1) -> str:
    shifted = "".join(chr(ord(ch) - shift) for ch in reversed(text))
    return utf8(hex_decode(shifted))


def _slice_b64_xor(text: str, key: str, start: int, end: int) -> str:
    k = key.encode("latin-1")
    raw = b64decode(text[start:end])
    return utf8(bytes(b ^ k[i % len(k)] for i, b in enumerate(raw)))


def _unsupported(text: str) -> str:
    raise EncodingError("decoding variant not implemented")


METHODS: dict[str, Callable[..., str]] = {
    "identity": _identity,
    "hex_xor_b64": _hex_xor_b64,
    "rot13_b64": _rot13_b64,
    "even_chars_b64": _even_chars_b64,
    "reverse_shift_hex": _reverse_shift_hex,
    "slice_b64_xor": _slice_b64_xor,
    "unsupported": _unsupported,
}


def _load_variants() -> dict[str, dict]:
    text = resources.files("trawler.data").joinpath("vidsrc_net_decoders.json").read_text("utf-8")
    return json.loads(text)["variants"]


VARIANTS: dict[str, dict] = _load_variants()


def register_variant(magic_id: str, method: str, **options):
    if method not in METHODS:
        raise ValueError(f"unknown decoding method: {method}")
    VARIANTS[magic_id] = {"method": method, **options}


def decode_payload(magic_id: str, content: str) -> str:
    spec = VARIANTS.get(magic_id)
    if spec is None:
        raise EncodingError(f"unknown encoding variant: {magic_id}")
    options = {k: v for k, v in spec.items() if k != "method"}
    try:
        return METHODS[spec["method"]](content, **options)
    except EncodingError as e:
        raise EncodingError(f"variant {magic_id}: {e}") from e


def _full_url(url: str) -> str:
    return f"https:{url}" if url.startswith("//") else url


@register_source
class VidsrcNet:
    id = "vidsrc_net"
    name = "vidsrc.net"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        vid = locator.imdb_id or locator.ref
        ep = locator.episode
        if ep:
            url = f"{BASE}/embed/tv/{vid}/{ep.season}-{ep.episode}"
        else:
            url = f"{BASE}/embed/movie/{vid}"

        m = IFRAME_RE.search(await fetcher.get(url))
        if not m:
            raise MalformedInputError("[vidsrc_net] no second iframe found")
        second_url = _full_url(m.group(1))

        m = PRORCP_RE.search(await fetcher.get(second_url, headers={"Referer": BASE}))
        if not m:
            raise MalformedInputError("[vidsrc_net] no third iframe found")
        third_url = f"{HOST_URL}{m.group(1)}"

        m = PAYLOAD_RE.search(await fetcher.get(third_url, headers={"Referer": second_url}))
        if not m:
            raise MalformedInputError("[vidsrc_net] no payload in third iframe")
        magic_id, content = m.groups()

        decoded = decode_payload(magic_id, content)
        links = [u.strip() for u in decoded.split(" or ") if u.strip()]
        headers = {"Referer": f"{HOST_URL}/"}
        return [NormalizedSource.video(link, f"[vidsrc_net] {num}.", headers)
                for num, link in enumerate(links, start=1)]
