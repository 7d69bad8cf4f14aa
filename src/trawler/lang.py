"""
Language filter for subtitle and audio labels.

Providers label tracks inconsistently ("eng", "English", "English - SDH"),
so a caller's language code is matched against a small alias table,
case-insensitively.
"""
from __future__ import annotations
from typing import Iterable, Optional

LANG_ALIASES: dict[str, frozenset[str]] = {
    "en": frozenset({"eng", "english"}),
    # "urk" and "ukranian" do turn up in the wild
    "uk": frozenset({"ukr", "ukrainian", "urk", "ukranian"}),
}


def _candidates(label: str) -> set[str]:
    text = label.strip().lower()
    out = {text}
    head = text.replace("-", " ").replace("(", " ").replace(",", " ").split()
    if head:
        out.add(head[0])
    return out


def match_lang(langs: Iterable[str], label: str) -> Optional[str]:
    """Filter code that accepts `label`, or None."""
    cands = _candidates(label)
    for code in langs:
        code = code.strip().lower()
        if code in cands or cands & LANG_ALIASES.get(code, frozenset()):
            return code
    return None


def is_allowed(langs: Iterable[str], label: str) -> bool:
    """
    True if `label` names one of `langs`. An empty filter accepts everything.

        is_allowed(["en"], "English")   -> True
        is_allowed(["en"], "eng")       -> True
        is_allowed(["en"], "Ukrainian") -> False
    """
    langs = list(langs)
    if not langs:
        return True
    return match_lang(langs, label) is not None
