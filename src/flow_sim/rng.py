"""
Seeded random source.

A thin wrapper around numpy's MT19937 bit generator. Every consumer receives
the stream explicitly; there is no module level generator, so two drawings
built in the same process never disturb each other.

The stream is seeded the classic Mersenne Twister way (numpy's legacy
RandomState seeding): seeds that fit in 32 bits go through init_genrand,
wider seeds through init_by_array with the low word first. Published MT19937
reference outputs therefore apply unchanged.

64-bit draws are built from two consecutive 32-bit Mersenne Twister outputs
(first draw in the low word), and floats take the top 53 bits of that value.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .errors import ConfigError

U64_MAX = (1 << 64) - 1

_MANTISSA_BITS = 53
_HALF_OPEN_SCALE = 1.0 / float(1 << _MANTISSA_BITS)
_CLOSED_SCALE = 1.0 / float((1 << _MANTISSA_BITS) - 1)


def _mersenne_twister(seed: int) -> np.random.MT19937:
    key = seed if seed <= 0xFFFFFFFF else [seed & 0xFFFFFFFF, seed >> 32]
    bits = np.random.MT19937()
    bits.state = np.random.RandomState(key).get_state(legacy=False)
    return bits


class SeededRandom:
    """Deterministic random stream derived from an unsigned 64-bit seed."""

    def __init__(self, seed: int) -> None:
        seed = int(seed)
        if not 0 <= seed <= U64_MAX:
            raise ConfigError(f"seed must be an unsigned 64-bit integer, got {seed}")
        self.seed = seed
        self._bits = _mersenne_twister(seed)

    def next_u32(self) -> int:
        return int(self._bits.random_raw()) & 0xFFFFFFFF

    def next_u64(self) -> int:
        low = self.next_u32()
        high = self.next_u32()
        return low | (high << 32)

    def uniform(self, lo: float, hi: float, closed: bool = False) -> float:
        """
        Uniform float in [lo, hi) or, with ``closed=True``, in [lo, hi].
        """
        bits = self.next_u64() >> (64 - _MANTISSA_BITS)
        unit = bits * (_CLOSED_SCALE if closed else _HALF_OPEN_SCALE)
        return lo + (hi - lo) * unit

    def point_in(self, rect) -> Tuple[float, float]:
        """Random point inside ``rect``; x is drawn before y."""
        x = self.uniform(rect.x, rect.x + rect.width)
        y = self.uniform(rect.y, rect.y + rect.height)
        return x, y


__all__ = ["SeededRandom", "U64_MAX"]
