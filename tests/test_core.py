import asyncio
import gc

import pytest

from trawler import jwplayer
from trawler.base import ExtractionContext, Locator, NormalizedSource, SourceKind
from trawler.cache import SingleFlightCache
from trawler.errors import MalformedInputError
from trawler.lang import is_allowed, match_lang


# ──────────────────────────────
#  Language filter
# ──────────────────────────────
def test_empty_filter_accepts_everything():
    assert is_allowed([], "Klingon")


def test_english_aliases():
    assert is_allowed(["en"], "English")
    assert is_allowed(["en"], "eng")
    assert is_allowed(["EN"], "english - SDH")
    assert not is_allowed(["en"], "Ukrainian")


def test_ukrainian_aliases():
    """Check if common misspellings of Ukrainian are accepted"""
    for label in ("ukr", "Ukrainian", "urk", "Ukranian"):
        assert is_allowed(["uk"], label)


def test_match_lang_returns_the_code():
    assert match_lang(["fr", "en"], "English (forced)") == "en"
    assert match_lang(["fr"], "English") is None
    assert match_lang(["fr"], "fr") == "fr"


# ──────────────────────────────
#  Sources
# ──────────────────────────────
def test_source_requires_url():
    with pytest.raises(ValueError):
        NormalizedSource.video("", "empty")


def test_source_headers_are_copied():
    headers = {"Referer": "https://a.example"}
    src = NormalizedSource.video("https://a.example/v.m3u8", " label ", headers)
    headers["Referer"] = "changed"
    assert src.headers == {"Referer": "https://a.example"}
    assert src.label == "label"
    with pytest.raises(TypeError):
        src.headers["Referer"] = "https://other.example"
    assert src.headers["Referer"] == "https://a.example"


def test_sources_are_hashable():
    a = NormalizedSource.video("https://a.example/v.m3u8", "v", {"Referer": "https://a.example"})
    b = NormalizedSource.video("https://a.example/v.m3u8", "v", {"Referer": "https://a.example"})
    assert a == b
    assert len({a, b}) == 1


def test_source_to_dict():
    sub = NormalizedSource.subtitle("https://a.example/en.vtt", "English", lang="en")
    assert sub.to_dict() == {"kind": "subtitle", "url": "https://a.example/en.vtt",
                             "label": "English", "lang": "en"}
    manga = NormalizedSource.manga("https://a.example/vol/1", "en", ["p1.jpg", "p2.jpg"])
    assert manga.to_dict()["page_count"] == 2


# ──────────────────────────────
#  Single-flight cache
# ──────────────────────────────
class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


async def test_cache_collapses_concurrent_loads():
    cache = SingleFlightCache(60, clock=Clock())
    calls = 0

    async def loader():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return [(1, 2)]

    results = await asyncio.gather(*(cache.get("keys", loader) for _ in range(5)))
    assert calls == 1
    assert all(r == [(1, 2)] for r in results)


async def test_cache_expires():
    clock = Clock()
    cache = SingleFlightCache(60, clock=clock)
    values = iter(["first", "second"])

    async def loader():
        return next(values)

    assert await cache.get("k", loader) == "first"
    clock.now = 59
    assert await cache.get("k", loader) == "first"
    assert "k" in cache
    clock.now = 61
    assert "k" not in cache
    assert await cache.get("k", loader) == "second"


async def test_cache_does_not_keep_failures():
    cache = SingleFlightCache(60, clock=Clock())
    attempts = 0

    async def loader():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise MalformedInputError("no keys")
        return "ok"

    with pytest.raises(MalformedInputError):
        await cache.get("k", loader)
    assert await cache.get("k", loader) == "ok"
    assert attempts == 2


async def test_cache_failure_after_callers_left_is_retrieved():
    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    gate = asyncio.Event()

    async def loader():
        await gate.wait()
        raise MalformedInputError("no keys")

    cache = SingleFlightCache(60, clock=Clock())
    try:
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(cache.get("k", loader), 0.01)
        gate.set()
        await asyncio.sleep(0.01)
        gc.collect()
        assert reported == []
        assert "k" not in cache
    finally:
        loop.set_exception_handler(None)


async def test_cache_invalidate():
    cache = SingleFlightCache(60, clock=Clock())

    async def loader():
        return 1

    await cache.get("a", loader)
    await cache.get("b", loader)
    cache.invalidate("a")
    assert "a" not in cache and "b" in cache
    cache.invalidate()
    assert "b" not in cache


# ──────────────────────────────
#  JW player configs
# ──────────────────────────────
def test_jwplayer_sources_and_tracks():
    config = {
        "sources": [{"file": "https://a.example/1.m3u8", "label": "1080p"},
                    {"url": "https://a.example/2.m3u8"}],
        "tracks": [
            {"file": "https://a.example/thumbs.vtt", "kind": "thumbnails"},
            {"file": "https://a.example/en.vtt", "kind": "captions", "label": "English"},
            {"file": "https://a.example/fr.vtt", "kind": "captions", "label": "French"},
        ],
    }
    out = jwplayer.to_sources(config, "Host", {"Referer": "https://a.example/"})
    assert [s.label for s in out] == ["Host 1. 1080p", "Host 2.", "Host 1. English", "Host 2. French"]
    assert out[0].headers == {"Referer": "https://a.example/"}
    assert out[2].kind is SourceKind.SUBTITLE and out[2].headers == {}


def test_jwplayer_language_filter():
    config = {"tracks": [
        {"file": "https://a.example/en.vtt", "kind": "captions", "label": "English"},
        {"file": "https://a.example/fr.vtt", "kind": "subtitle", "label": "French"},
    ]}
    out = jwplayer.to_sources(config, "Host", langs=("en",))
    assert len(out) == 1
    assert out[0].lang == "en"


def test_jwplayer_rejects_non_objects():
    with pytest.raises(MalformedInputError):
        jwplayer.to_sources(["not", "a", "config"], "Host")


def test_context_derive_keeps_langs():
    ctx = ExtractionContext(langs=("en",))
    derived = ctx.derive(label="[PrimeWire] 1. Dood")
    assert derived.langs == ("en",) and derived.label == "[PrimeWire] 1. Dood"
    assert Locator("603").with_ref("https://x.example/e/1").ref == "https://x.example/e/1"
