"""
Vidpro — the server API returns base64 JSON {iv, key, salt, iterations,
encryptedData}; the AES key is PBKDF2-SHA256(key, salt). The decrypted
payload lists qualities lowest first, they're emitted highest first.
"""
from __future__ import annotations

from ..base import ExtractionContext, Locator, NormalizedSource
from ..errors import MalformedInputError
from ..fetcher import Fetcher, parse_json
from ..runner import register_source
from ..toolkit import AES_CBC, b64decode, derive_key, hex_decode, symmetric_decrypt, utf8

BASE = "https://player.vidpro.top"


def decrypt_envelope(data: str) -> dict:
    env = parse_json(utf8(b64decode(data)), "vidpro envelope")
    try:
        iv = hex_decode(env["iv"])
        salt = hex_decode(env["salt"])
        key = derive_key(env["key"], salt, int(env["iterations"]), 32, hash_name="sha256")
        ct = b64decode(env.get("encryptedData") or env["encrypted_data"])
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedInputError(f"[vidpro] bad envelope: {e}") from e
    payload = parse_json(utf8(symmetric_decrypt(AES_CBC, key, iv, ct)), "vidpro payload")
    if not isinstance(payload, dict):
        raise MalformedInputError("[vidpro] payload is not an object")
    return payload


@register_source
class Vidpro:
    id = "vidpro"
    name = "Vidpro"

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        params = {"id": locator.ref, "sr": "1"}
        if locator.episode:
            params.update(ep=str(locator.episode.episode), ss=str(locator.episode.season))

        res = await fetcher.get_json(f"{BASE}/api/server", params=params,
                                     headers={"Referer": BASE})
        if not isinstance(res, dict) or not res.get("data"):
            raise MalformedInputError("[vidpro] no data in response")

        payload = decrypt_envelope(res["data"])
        headers = payload.get("headers") or {}
        if payload.get("hasMultiQuality"):
            return [
                NormalizedSource.video(f"{BASE}{q['url']}", f"[Vidpro] {q.get('quality', '')}", headers)
                for q in reversed(payload.get("quality") or [])
                if q.get("url")
            ]
        if not payload.get("url"):
            raise MalformedInputError("[vidpro] no url in payload")
        return [NormalizedSource.video(f"{BASE}{payload['url']}", self.name, headers)]
