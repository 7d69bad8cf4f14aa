"""
Keyed schedule transforms.

Some providers scramble an identifier through several alternating layers of
RC4 and a position-dependent byte schedule before base64url-encoding it, and
the remote recomputes the same thing to validate the token. The tables are
lifted from the site's JavaScript and rotate, so they live in JSON files
under trawler/data/ rather than in code.

A schedule entry is "<op>:<n>" with op one of add, sub, xor, rotl, rotr.
"""
from __future__ import annotations
import json
from dataclasses import dataclass
from importlib import resources
from typing import Callable, Sequence
from urllib.parse import quote

from ..errors import MalformedInputError
from .ciphers import stream_cipher_apply
from .encoding import b64decode, b64url_encode

ByteOp = Callable[[int], int]


def _rotl(c: int, n: int) -> int:
    n %= 8
    return ((c << n) | (c >> (8 - n))) & 0xFF


_OPS: dict[str, Callable[[int, int], int]] = {
    "add": lambda c, n: (c + n) & 0xFF,
    "sub": lambda c, n: (c - n) & 0xFF,
    "xor": lambda c, n: c ^ (n & 0xFF),
    "rotl": _rotl,
    "rotr": lambda c, n: _rotl(c, 8 - n % 8),
}


def parse_op(spec: str) -> ByteOp:
    name, _, arg = spec.partition(":")
    try:
        fn = _OPS[name.strip()]
        n = int(arg)
    except (KeyError, ValueError):
        raise MalformedInputError(f"bad schedule op: {spec!r}") from None
    return lambda c: fn(c, n)


def schedule_transform(
    data: bytes,
    seed: bytes,
    prefix: bytes,
    schedule: Sequence[ByteOp | str],
) -> bytes:
    """
    out_i = schedule[i mod |schedule|](data_i XOR seed[i mod |seed|]),
    with prefix[i] emitted right before out_i for every i < |prefix|.
    """
    if not seed or not schedule:
        raise MalformedInputError("schedule transform needs a seed and a schedule")
    ops = [parse_op(s) if isinstance(s, str) else s for s in schedule]

    out = bytearray()
    for i, byte in enumerate(data):
        if i < len(prefix):
            out.append(prefix[i])
        out.append(ops[i % len(ops)](byte ^ seed[i % len(seed)]))
    return bytes(out)


@dataclass(frozen=True)
class Stage:
    rc4_key: bytes
    seed: bytes
    prefix: bytes
    schedule: tuple[ByteOp, ...]

    def apply(self, data: bytes) -> bytes:
        return schedule_transform(stream_cipher_apply(self.rc4_key, data),
                                  self.seed, self.prefix, self.schedule)


class SchedulePipeline:
    """RC4 → schedule, repeated for every stage, then base64url without padding."""

    def __init__(self, stages: Sequence[Stage]):
        if not stages:
            raise MalformedInputError("schedule pipeline has no stages")
        self.stages = tuple(stages)

    @classmethod
    def from_dict(cls, table: dict) -> "SchedulePipeline":
        try:
            stages = [
                Stage(
                    rc4_key=b64decode(st["rc4_key"]),
                    seed=b64decode(st["seed"]),
                    prefix=b64decode(st.get("prefix", "")),
                    schedule=tuple(parse_op(op) for op in st["schedule"]),
                )
                for st in table["stages"]
            ]
        except (KeyError, TypeError) as e:
            raise MalformedInputError(f"bad schedule table: {e}") from e
        return cls(stages)

    @classmethod
    def load(cls, name: str) -> "SchedulePipeline":
        """Load trawler/data/<name>.json."""
        text = resources.files("trawler.data").joinpath(f"{name}.json").read_text("utf-8")
        return cls.from_dict(json.loads(text))

    def transform(self, data: bytes) -> bytes:
        for stage in self.stages:
            data = stage.apply(data)
        return data

    def encode(self, text: str) -> str:
        raw = quote(text, safe="").encode("ascii")
        return b64url_encode(self.transform(raw))
