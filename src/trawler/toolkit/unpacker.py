"""
JavaScript p,a,c,k,e,d unpacker.

Many streaming embed hosts use Dean Edwards' JS packer:
  eval(function(p,a,c,k,e,d){...}('payload', radix, count, 'sym0|sym1'.split('|'), ...))

Every word token of the payload is a base-`radix` index into the symbol
table; unpacking substitutes the symbols back so the stream URLs can be
pulled out with a regex.
"""
from __future__ import annotations
import re
from typing import Optional

from bs4 import BeautifulSoup

from ..errors import UnpackError

_PREFIX = "eval(function(p,a,c,k,e,"
_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\b\w+\b")

# Full form first (trailing `, 0, {}))`), then the bare argument list.
_JUICERS = (
    re.compile(
        r"\}\('(.*)', *(\d+|\[\]), *(\d+), *'(.*)'\.split\('\|'\), *(\d+), *(.*)\)\)",
        re.DOTALL,
    ),
    re.compile(r"\}\('(.*)', *(\d+|\[\]), *(\d+), *'(.*)'\.split\('\|'\)", re.DOTALL),
)

ALPHABET_62 = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
ALPHABET_95 = (
    " !\"#$%&'()*+,-./0123456789:;<=>?@ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "[\\]^_`abcdefghijklmnopqrstuvwxyz{|}~"
)
_INDEX_62 = {ch: i for i, ch in enumerate(ALPHABET_62)}
_INDEX_95 = {ch: i for i, ch in enumerate(ALPHABET_95)}


def detect(source: str) -> bool:
    """Cheap check: does the script start with the packer header?"""
    return _WHITESPACE_RE.sub("", source).startswith(_PREFIX)


def _filter_args(source: str) -> tuple[str, list[str], int, int]:
    for juicer in _JUICERS:
        m = juicer.search(source)
        if not m:
            continue
        payload, radix_s, count_s, symtab_raw = m.group(1, 2, 3, 4)
        radix = 62 if radix_s == "[]" else int(radix_s)
        if not 2 <= radix <= 95:
            raise UnpackError(f"radix {radix} out of range")
        return payload, symtab_raw.split("|"), radix, int(count_s)
    raise UnpackError("could not make sense of p.a.c.k.e.r data (unexpected code structure)")


def unbase(word: str, radix: int) -> Optional[int]:
    """Value of `word` as a base-`radix` numeral, or None if it isn't one."""
    if radix <= 36:
        try:
            return int(word, radix)
        except ValueError:
            return None

    alphabet = _INDEX_62 if radix <= 62 else _INDEX_95
    val = 0
    for ch in word:
        digit = alphabet.get(ch)
        if digit is None or digit >= radix:
            return None
        val = val * radix + digit
    return val


def unpack(source: str) -> str:
    """Unpack packed JS. Raises UnpackError if the symbol table is inconsistent."""
    payload, symtab, radix, count = _filter_args(source)
    if count != len(symtab):
        raise UnpackError("malformed p.a.c.k.e.r. symtab")

    payload = payload.replace("\\\\", "\\").replace("\\'", "'")

    def _replacer(m: re.Match) -> str:
        word = m.group(0)
        idx = unbase(word, radix)
        if idx is None or idx >= len(symtab):
            return word
        return symtab[idx] or word

    return _WORD_RE.sub(_replacer, payload)


def find_packed(html: str) -> Optional[str]:
    """First <script> body (or line of one) that is packed JS."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script"):
        body = script.string or script.get_text()
        if not body:
            continue
        if detect(body):
            return body
        for line in body.splitlines():
            if detect(line):
                return line
    return None


deobfuscate_packed_script = unpack
