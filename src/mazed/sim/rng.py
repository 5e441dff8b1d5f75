from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
MULBERRY_INCREMENT = 0x6D2B79F5
UINT32_RANGE = 4294967296


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


def hash_string(text: str) -> str:
    """32-bit FNV-1a over UTF-16 code units, as 8 lowercase hex digits."""
    value = FNV_OFFSET_BASIS
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    for index in range(0, len(encoded), 2):
        value ^= encoded[index] | (encoded[index + 1] << 8)
        value = _imul(value, FNV_PRIME)
    return f"{value:08x}"


def derive_stream_seed(base_seed: str, stream_name: str) -> int:
    """Derive a deterministic child seed from (base_seed, stream_name)."""
    return int(hash_string(f"{base_seed}:{stream_name}"), 16)


def stream_rng(base_seed: str, stream_name: str) -> "SeededRandom":
    return SeededRandom(f"{base_seed}:{stream_name}")


class SeededRandom:
    """Reproducible [0, 1) source seeded from an arbitrary string."""

    def __init__(self, seed: str) -> None:
        if not isinstance(seed, str):
            raise ValueError("seed must be a string")
        self.seed = seed
        self.state = int(hash_string(seed), 16) or 1

    def next(self) -> float:
        self.state = (self.state + MULBERRY_INCREMENT) & UINT32_MASK
        value = self.state
        value = _imul(value ^ (value >> 15), value | 1)
        value ^= (value + _imul(value ^ (value >> 7), value | 61)) & UINT32_MASK
        return ((value ^ (value >> 14)) & UINT32_MASK) / UINT32_RANGE

    def next_int(self, minimum: int, maximum_inclusive: int) -> int:
        if maximum_inclusive < minimum:
            raise ValueError("maximum_inclusive must be >= minimum")
        return int(self.next() * (maximum_inclusive - minimum + 1)) + minimum

    def pick(self, values: Sequence[T]) -> T:
        if not values:
            raise ValueError("cannot pick from an empty sequence")
        return values[self.next_int(0, len(values) - 1)]

    def shuffle(self, values: Sequence[T]) -> list[T]:
        shuffled = list(values)
        for index in range(len(shuffled) - 1, 0, -1):
            swap_index = self.next_int(0, index)
            shuffled[index], shuffled[swap_index] = shuffled[swap_index], shuffled[index]
        return shuffled
