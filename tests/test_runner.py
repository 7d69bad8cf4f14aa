import asyncio

import pytest

from trawler import runner
from trawler.base import ExtractionContext, Locator, NormalizedSource
from trawler.errors import (
    BatchTimeoutError, CipherError, ExtractorTimeout, FetchError, MalformedInputError, NotFoundError,
)
from trawler.runner import Orchestrator

from conftest import FakeFetcher


class Scripted:
    """Extractor that sleeps, then returns sources or raises."""

    def __init__(self, id, result=(), delay=0.0):
        self.id = id
        self.name = id
        self.result = result
        self.delay = delay

    async def extract(self, locator, ctx, fetcher):
        await asyncio.sleep(self.delay)
        if isinstance(self.result, BaseException):
            raise self.result
        return list(self.result)


def video(n):
    return NormalizedSource.video(f"https://cdn.example/{n}.m3u8", f"video {n}")


@pytest.fixture
def orch():
    return Orchestrator(FakeFetcher(), extractor_timeout=1, batch_timeout=2)


async def test_results_follow_registration_order(orch):
    """Check if a fast second extractor still comes out second"""
    slow = Scripted("slow", [video(1)], delay=0.05)
    fast = Scripted("fast", [video(2), video(3)])
    out = await orch.run(Locator("603"), ExtractionContext(), [slow, fast])
    assert [s.url for s in out] == [
        "https://cdn.example/1.m3u8", "https://cdn.example/2.m3u8", "https://cdn.example/3.m3u8"]


async def test_failures_are_isolated(orch):
    extractors = [
        Scripted("a", [video(1)]),
        Scripted("b", FetchError("https://down.example", "HTTP 503")),
        Scripted("c", CipherError("bad padding")),
        Scripted("d", RuntimeError("boom")),
        Scripted("e", [video(5)]),
    ]
    outcomes = await orch.outcomes(Locator("603"), ExtractionContext(), extractors)
    assert [o.extractor_id for o in outcomes] == ["a", "b", "c", "d", "e"]
    assert [o.ok for o in outcomes] == [True, False, False, False, True]
    assert isinstance(outcomes[2].error, CipherError)
    out = runner.flatten(outcomes)
    assert [s.url for s in out] == ["https://cdn.example/1.m3u8", "https://cdn.example/5.m3u8"]


async def test_malformed_input_means_no_sources(orch):
    outcomes = await orch.outcomes(Locator("603"), ExtractionContext(),
                                   [Scripted("m", MalformedInputError("no marker"))])
    assert outcomes[0].ok
    assert outcomes[0].sources == []


async def test_extractor_timeout():
    orch = Orchestrator(FakeFetcher(), extractor_timeout=0.05, batch_timeout=2)
    outcomes = await orch.outcomes(Locator("603"), ExtractionContext(), [
        Scripted("stuck", [video(1)], delay=5),
        Scripted("quick", [video(2)]),
    ])
    assert isinstance(outcomes[0].error, ExtractorTimeout)
    assert outcomes[1].sources[0].url == "https://cdn.example/2.m3u8"


async def test_batch_timeout():
    """Check if the whole batch is abandoned once its budget runs out"""
    orch = Orchestrator(FakeFetcher(), extractor_timeout=5, batch_timeout=0.05)
    with pytest.raises(BatchTimeoutError):
        await orch.run(Locator("603"), ExtractionContext(), [Scripted("stuck", [video(1)], delay=1)])


async def test_subtitles_outside_the_filter_are_dropped(orch):
    subs = [
        NormalizedSource.subtitle("https://cdn.example/en.vtt", "English", lang="en"),
        NormalizedSource.subtitle("https://cdn.example/xx.vtt", "Unknown"),
        video(1),
    ]
    out = await orch.run(Locator("603"), ExtractionContext(langs=("en",)), [Scripted("s", subs)])
    assert [s.url for s in out] == ["https://cdn.example/en.vtt", "https://cdn.example/1.m3u8"]

    out = await orch.run(Locator("603"), ExtractionContext(), [Scripted("s", subs)])
    assert len(out) == 3


async def test_bindings_carry_their_own_context(orch):
    seen = []

    class Recorder:
        id = name = "recorder"

        async def extract(self, locator, ctx, fetcher):
            seen.append((locator.ref, ctx.label))
            return []

    rec = Recorder()
    await orch.run_bound([
        (rec, Locator("https://a.example/e/1")),
        (rec, Locator("https://b.example/e/2"), ExtractionContext(label="second")),
    ], ExtractionContext(label="shared"))
    assert seen == [("https://a.example/e/1", "shared"), ("https://b.example/e/2", "second")]


def test_registered_source_order():
    ids = [s.id for s in runner.registered_sources()]
    assert ids == ["xprime", "autoembed", "primewire", "two_embed", "vidpro",
                   "vidrock", "embed_su", "vidsrc_cc", "vidsrc_net"]


def test_embed_registry():
    assert runner.get_embed("streamwish").id == "streamwish"
    assert {e["id"] for e in runner.list_embeds()} >= {"mixdrop", "megacloud", "megacloud_v3"}
    with pytest.raises(NotFoundError):
        runner.get_embed("nope")


def test_register_source_replaces_same_id(monkeypatch):
    monkeypatch.setattr(runner, "_SOURCES", [])

    @runner.register_source
    class First:
        id = "dup"
        name = "first"

    @runner.register_source
    class Other:
        id = "other"
        name = "other"

    @runner.register_source
    class Second:
        id = "dup"
        name = "second"

    @runner.register_source
    class Off:
        id = "off"
        name = "off"
        disabled = True

    assert [(s.id, s.name) for s in runner.registered_sources()] == [("dup", "second"), ("other", "other")]


async def test_nested_bounded_calls_share_the_outer_deadline():
    orch = Orchestrator(FakeFetcher(), extractor_timeout=5, batch_timeout=0.3)

    async def two_stages():
        await orch.bounded(asyncio.sleep(0.2), "first")
        await orch.bounded(asyncio.sleep(0.2), "second")

    with pytest.raises(BatchTimeoutError):
        await orch.bounded(two_stages(), "outer")

    # sequential top-level calls each get a fresh budget
    await orch.bounded(asyncio.sleep(0.2), "again")
    await orch.bounded(asyncio.sleep(0.2), "again")
