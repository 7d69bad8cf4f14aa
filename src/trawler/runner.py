"""
Extraction orchestrator — keeps the extractor registries and runs a set of
extractors concurrently against one locator.

Usage:
    orch = Orchestrator()
    sources = await orch.run(Locator("603"), ExtractionContext(langs=("en",)))
    for s in sources:
        print(s.to_dict())
    await orch.close()

Every extractor is fault-isolated: its failure (or timeout) is logged and
recorded in its ExtractionOutcome, the others carry on. Results are joined
in registration order, never completion order.
"""
from __future__ import annotations
import asyncio
import contextvars
import logging
from typing import Awaitable, Iterable, Optional, Sequence, TypeVar, Union

from . import config
from .base import (
    ExtractionContext, ExtractionOutcome, Locator, NormalizedSource, SourceKind,
)
from .errors import (
    BatchTimeoutError, CipherError, EncodingError, ExtractorTimeout, FetchError,
    MalformedInputError, NotFoundError,
)
from .fetcher import Fetcher

log = logging.getLogger("trawler.runner")

T = TypeVar("T")

# loop time at which the innermost enclosing batch budget runs out
_deadline: contextvars.ContextVar[Optional[float]] = contextvars.ContextVar(
    "trawler_deadline", default=None)


# ──────────────────────────────
#  Extractor registries
# ──────────────────────────────
class Extractor:
    id: str
    name: str
    disabled: bool = False

    async def extract(self, locator: Locator, ctx: ExtractionContext,
                      fetcher: Fetcher) -> list[NormalizedSource]:
        raise NotImplementedError


# Global registries, populated when source/embed modules are imported
_SOURCES: list[Extractor] = []
_EMBEDS: dict[str, Extractor] = {}

Binding = Union[tuple[Extractor, Locator], tuple[Extractor, Locator, ExtractionContext]]


def register_source(extractor):
    """Decorator to register a TMDB source extractor class. Order of registration is output order."""
    inst = extractor()
    if getattr(inst, "disabled", False):
        return extractor
    for i, existing in enumerate(_SOURCES):
        if existing.id == inst.id:
            _SOURCES[i] = inst
            break
    else:
        _SOURCES.append(inst)
    return extractor


def register_embed(extractor):
    """Decorator to register a host (embed) extractor class."""
    inst = extractor()
    _EMBEDS[inst.id] = inst
    return extractor


def registered_sources() -> list[Extractor]:
    return list(_SOURCES)


def get_embed(embed_id: str) -> Extractor:
    try:
        return _EMBEDS[embed_id]
    except KeyError:
        raise NotFoundError(f"unknown embed extractor: {embed_id}") from None


def list_sources():
    return [{"id": s.id, "name": s.name} for s in _SOURCES]


def list_embeds():
    return [{"id": e.id, "name": e.name, "disabled": getattr(e, "disabled", False)}
            for e in _EMBEDS.values()]


# ──────────────────────────────
#  Fan-out
# ──────────────────────────────
def _accepts(langs: Sequence[str], source: NormalizedSource) -> bool:
    if source.kind is not SourceKind.SUBTITLE or not langs:
        return True
    return source.lang is not None and source.lang.lower() in {l.lower() for l in langs}


async def _run_one(extractor: Extractor, locator: Locator, ctx: ExtractionContext,
                   fetcher: Fetcher, timeout: float) -> ExtractionOutcome:
    eid = extractor.id
    try:
        sources = await asyncio.wait_for(extractor.extract(locator, ctx, fetcher), timeout=timeout)
    except MalformedInputError as e:
        log.warning(f"[{eid}] no sources: {e}")
        return ExtractionOutcome(eid)
    except (CipherError, EncodingError) as e:
        log.error(f"[{eid}] decoding failed for {locator.ref}: {e}")
        return ExtractionOutcome(eid, error=e)
    except asyncio.TimeoutError:
        err = ExtractorTimeout(f"{eid} exceeded {timeout}s")
        log.warning(f"[{eid}] timed out after {timeout}s")
        return ExtractionOutcome(eid, error=err)
    except FetchError as e:
        log.warning(f"[{eid}] fetch failed: {e}")
        return ExtractionOutcome(eid, error=e)
    except Exception as e:
        log.warning(f"[{eid}] extractor failed: {e!r}")
        return ExtractionOutcome(eid, error=e)

    kept = [s for s in sources if _accepts(ctx.langs, s)]
    log.info(f"[{eid}] {len(kept)} source(s)")
    return ExtractionOutcome(eid, kept)


async def gather_outcomes(
    pairs: Sequence[Binding],
    ctx: ExtractionContext,
    fetcher: Fetcher,
    *,
    timeout: float | None = None,
) -> list[ExtractionOutcome]:
    """
    Run every (extractor, locator[, ctx]) binding concurrently; outcomes come
    back in input order. A binding's own ctx overrides the shared one.
    """
    timeout = timeout or config.EXTRACTOR_TIMEOUT
    return list(await asyncio.gather(
        *(_run_one(b[0], b[1], b[2] if len(b) > 2 else ctx, fetcher, timeout) for b in pairs)))


def flatten(outcomes: Iterable[ExtractionOutcome]) -> list[NormalizedSource]:
    out: list[NormalizedSource] = []
    for o in outcomes:
        out.extend(o.sources)
    return out


# ──────────────────────────────
#  Orchestrator
# ──────────────────────────────
class Orchestrator:
    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        *,
        extractor_timeout: float | None = None,
        batch_timeout: float | None = None,
    ):
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher()
        self.extractor_timeout = extractor_timeout or config.EXTRACTOR_TIMEOUT
        self.batch_timeout = batch_timeout or config.BATCH_TIMEOUT

    async def close(self):
        if self._owns_fetcher:
            await self.fetcher.close()

    async def bounded(self, aw: Awaitable[T], what: str = "batch") -> T:
        """
        Await `aw` under the batch budget; on expiry everything still pending is
        cancelled and BatchTimeoutError is raised. A bounded call made inside
        another one never outlives the enclosing deadline.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.batch_timeout
        outer = _deadline.get()
        if outer is not None:
            deadline = min(deadline, outer)
        token = _deadline.set(deadline)
        try:
            return await asyncio.wait_for(aw, timeout=max(deadline - loop.time(), 0))
        except asyncio.TimeoutError:
            log.warning(f"{what} exceeded {self.batch_timeout}s, discarding")
            raise BatchTimeoutError(f"{what} exceeded {self.batch_timeout}s") from None
        finally:
            _deadline.reset(token)

    async def outcomes_bound(
        self,
        pairs: Sequence[Binding],
        ctx: ExtractionContext,
    ) -> list[ExtractionOutcome]:
        ids = ", ".join(b[0].id for b in pairs)
        return await self.bounded(
            gather_outcomes(pairs, ctx, self.fetcher, timeout=self.extractor_timeout),
            f"batch [{ids}]",
        )

    async def outcomes(
        self,
        locator: Locator,
        ctx: ExtractionContext,
        extractors: Sequence[Extractor] | None = None,
    ) -> list[ExtractionOutcome]:
        if extractors is None:
            extractors = registered_sources()
        return await self.outcomes_bound([(ex, locator) for ex in extractors], ctx)

    async def run(
        self,
        locator: Locator,
        ctx: ExtractionContext,
        extractors: Sequence[Extractor] | None = None,
    ) -> list[NormalizedSource]:
        """All extractors (default: every registered source) against one locator."""
        return flatten(await self.outcomes(locator, ctx, extractors))

    async def run_bound(
        self,
        pairs: Sequence[Binding],
        ctx: ExtractionContext,
    ) -> list[NormalizedSource]:
        """Each extractor against its own locator (server lists from one page)."""
        return flatten(await self.outcomes_bound(pairs, ctx))


# ──────────────────────────────
#  Import all extractors to register them
# ──────────────────────────────
def _load_extractors():
    # ── Embeds ──
    from .embeds import streamwish      # noqa: F401
    from .embeds import filelions       # noqa: F401
    from .embeds import mixdrop         # noqa: F401
    from .embeds import mp4upload       # noqa: F401
    from .embeds import dood            # noqa: F401
    from .embeds import primevid        # noqa: F401
    from .embeds import gogostream      # noqa: F401
    from .embeds import megacloud       # noqa: F401
    from .embeds import megacloud_v3    # noqa: F401
    # ── Sources (registration order is output order) ──
    from .sources import xprime         # noqa: F401
    from .sources import autoembed      # noqa: F401
    from .sources import primewire      # noqa: F401
    from .sources import two_embed      # noqa: F401
    from .sources import vidpro         # noqa: F401
    from .sources import vidrock        # noqa: F401
    from .sources import embed_su       # noqa: F401
    from .sources import vidsrc_cc      # noqa: F401
    from .sources import vidsrc_net     # noqa: F401

_load_extractors()
