# missiondir/ids.py
from __future__ import annotations

import os
import time
from typing import Callable, Optional

from missiondir.errors import GenerationError

# Crockford base32, lowercase. Sort order of the alphabet matches byte order.
_ALPHABET = "0123456789abcdefghjkmnpqrstvwxyz"
_DECODE = {c: i for i, c in enumerate(_ALPHABET)}

TIME_LEN = 10
RANDOM_LEN = 16
ID_LEN = TIME_LEN + RANDOM_LEN
MAX_TIMESTAMP_MS = (1 << 48) - 1


def _encode(value: int, length: int) -> str:
    out = []
    for _ in range(length):
        out.append(_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(out))


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate(
    *,
    now_ms: Optional[int] = None,
    entropy: Callable[[int], bytes] = os.urandom,
) -> str:
    """
    Mint a lowercase ULID: 48-bit millisecond timestamp + 80 random bits.

    Ids from different processes never need coordination; ordering between
    ids minted in the same millisecond is random.
    """
    ts = _now_ms() if now_ms is None else int(now_ms)
    if ts < 0 or ts > MAX_TIMESTAMP_MS:
        raise GenerationError(f"timestamp out of range: {ts}")

    try:
        rnd = entropy(10)
    except (OSError, NotImplementedError) as e:
        raise GenerationError(f"entropy source unavailable: {type(e).__name__}: {e}") from e
    if len(rnd) != 10:
        raise GenerationError("entropy source returned short read")

    return _encode(ts, TIME_LEN) + _encode(int.from_bytes(rnd, "big"), RANDOM_LEN)


def timestamp_of(identifier: str) -> int:
    """Creation time (ms since epoch) encoded in an identifier."""
    normalized = (identifier or "").strip().lower()
    if len(normalized) != ID_LEN:
        raise ValueError(f"not an identifier: {identifier!r}")
    value = 0
    for ch in normalized[:TIME_LEN]:
        if ch not in _DECODE:
            raise ValueError(f"not an identifier: {identifier!r}")
        value = (value << 5) | _DECODE[ch]
    return value
