"""
Content supplier registry — provider name → supplier constructor.

Usage:
    sources = await load_media_item_sources("TMDB", "603", ["en"], ['{"id": 603}'])

Unknown names raise NotFoundError from the lookup itself, before any I/O.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence

from ..base import NormalizedSource
from ..errors import NotFoundError
from ..runner import Orchestrator
from .base import ContentSupplier

log = logging.getLogger("trawler.suppliers")

_SUPPLIERS: dict[str, Callable[[], ContentSupplier]] = {}


def register_supplier(supplier):
    """Decorator to register a supplier class under its `name`."""
    _SUPPLIERS[supplier.name] = supplier
    return supplier


def available_suppliers() -> list[str]:
    return list(_SUPPLIERS)


def get_supplier(name: str) -> ContentSupplier:
    try:
        return _SUPPLIERS[name]()
    except KeyError:
        raise NotFoundError(f"unknown supplier: {name}") from None


async def load_media_item_sources(
    supplier: str,
    id: str,
    langs: Sequence[str],
    params: Sequence[str],
    *,
    orchestrator: Optional[Orchestrator] = None,
) -> list[NormalizedSource]:
    sup = get_supplier(supplier)
    own = orchestrator is None
    orch = orchestrator or Orchestrator()
    try:
        # one budget for the whole call, whatever the supplier does inside it
        return await orch.bounded(sup.load_media_item_sources(id, langs, params, orchestrator=orch),
                                  f"[{supplier}] {id}")
    finally:
        if own:
            await orch.close()


# ──────────────────────────────
#  Import all suppliers to register them
# ──────────────────────────────
def _load_suppliers():
    from . import tmdb          # noqa: F401
    from . import anitaku       # noqa: F401
    from . import hianime       # noqa: F401
    from . import mangafire     # noqa: F401

_load_suppliers()
