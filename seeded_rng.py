from __future__ import annotations

import hashlib
import os
import random
from datetime import date, datetime, timezone
from typing import Optional, Union

SeedLike = Union[bytes, str, int, None]

_MASK64 = (1 << 64) - 1
# xorshift never leaves the all-zero state, so a zero hash gets this instead
_ZERO_STATE_REPLACEMENT = 0x9E3779B97F4A7C15

DEFAULT_DAILY_VERSION = "TETRAD_v1"
DEFAULT_LEVEL_VERSION = "SQWORD_level_v1"


# -----------------------------------------------------------------------------
# Seeding helpers
# -----------------------------------------------------------------------------
def _seed_bytes(seed: SeedLike) -> bytes:
    """Turn any accepted seed value into the bytes we hash."""
    if seed is None:
        return os.urandom(8)
    if isinstance(seed, bytes):
        return seed
    if isinstance(seed, bool):
        seed = int(seed)
    if isinstance(seed, int):
        return (seed & _MASK64).to_bytes(8, "little")
    return str(seed).encode("utf-8")


def _hash64(data: bytes) -> int:
    """First 8 bytes of SHA-256, read little-endian."""
    return int.from_bytes(hashlib.sha256(data).digest()[:8], "little")


def seed_from_text(text: str) -> int:
    """Hash a key string (e.g. 'TETRAD_v1|2025-01-01') into a 64-bit seed."""
    return _hash64(str(text).encode("utf-8"))


# -----------------------------------------------------------------------------
# The generator
# -----------------------------------------------------------------------------
class SeededRandom(random.Random):
    """
    Deterministic random source: SHA-256 seeding + xorshift64 step.

    Subclasses random.Random, so shuffle/choice/randrange all draw from the
    xorshift stream. The same seed gives the same stream on every run of the
    same build.

      seed bytes : bytes as-is, str as UTF-8, int as 8 little-endian bytes
      state      : first 8 bytes (LE) of sha256(seed bytes)
      step       : x ^= x << 13; x ^= x >> 7; x ^= x << 17   (mod 2**64)
    """

    def __init__(self, seed: SeedLike = None) -> None:
        self._state = _ZERO_STATE_REPLACEMENT
        super().__init__(seed)

    def seed(self, a: SeedLike = None, version: int = 2) -> None:
        state = _hash64(_seed_bytes(a))
        self._state = state or _ZERO_STATE_REPLACEMENT
        self.gauss_next = None

    def next_u64(self) -> int:
        x = self._state
        x ^= (x << 13) & _MASK64
        x ^= x >> 7
        x ^= (x << 17) & _MASK64
        self._state = x
        return x

    def getrandbits(self, k: int) -> int:
        if k < 0:
            raise ValueError("number of bits must be non-negative")
        out = 0
        filled = 0
        while filled < k:
            out |= self.next_u64() << filled
            filled += 64
        return out & ((1 << k) - 1)

    def random(self) -> float:
        return (self.next_u64() >> 11) * (1.0 / (1 << 53))

    def getstate(self):
        return (self._state, self.gauss_next)

    def setstate(self, state) -> None:
        self._state, self.gauss_next = state

    def __repr__(self) -> str:
        return f"SeededRandom(state=0x{self._state:016x})"


# -----------------------------------------------------------------------------
# Daily / level seeds
# -----------------------------------------------------------------------------
def utc_day_key(moment: Optional[Union[date, datetime, str]] = None) -> str:
    """
    YYYY-MM-DD for the given moment, in UTC.
    Naive datetimes are taken as UTC; plain dates and ISO strings pass through.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    if isinstance(moment, str):
        moment = date.fromisoformat(moment.strip()[:10])
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        return moment.date().isoformat()
    return moment.isoformat()


def daily_key(
    day: Optional[Union[date, datetime, str]] = None,
    version: str = DEFAULT_DAILY_VERSION,
    fingerprint: Optional[str] = None,
) -> str:
    key = f"{version}|{utc_day_key(day)}"
    if fingerprint:
        key += f"|{fingerprint}"
    return key


def daily_seed(
    day: Optional[Union[date, datetime, str]] = None,
    version: str = DEFAULT_DAILY_VERSION,
    fingerprint: Optional[str] = None,
) -> int:
    """Seed for the daily puzzle: version tag + UTC date (+ dictionary fingerprint)."""
    return seed_from_text(daily_key(day, version, fingerprint))


def level_seed(
    world_id: str,
    level_index: int,
    salt: int = 0,
    version: str = DEFAULT_LEVEL_VERSION,
) -> int:
    """Seed for one level: stable for a given (world, level, salt)."""
    key = f"{version}|{world_id}|L{int(level_index)}|{int(salt) & _MASK64}"
    return SeededRandom(key).next_u64()
