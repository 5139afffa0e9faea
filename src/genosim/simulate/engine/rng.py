"""
Random number sources

Two interchangeable backends share the RandomSource interface:

- AleaRng: the deterministic "mash" seeded three-register generator. An
  identical list of seed strings always reproduces the identical stream,
  which is what regression baselines rely on.
- PhiloxRng: numpy's counter-based Philox generator, for runs where
  statistical quality matters more than bit-for-bit reproducibility
  across implementations.

The source is always passed explicitly to every sampling call; models never
keep their own copy.
"""

import hashlib
import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, MutableSequence, Optional, Sequence, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 2^32 as a float; the mash accumulator folds fractions back with it
MASH_NORM = 4294967296.0
MASH_INIT = 0xEFC8249D
MASH_MULTIPLIER = 0.02519603282416938

ALEA_MULTIPLIER = 2091639.0
# Carry scale: reciprocal of the largest u32, as in the regression baselines
ALEA_CARRY_SCALE = 1.0 / 4294967295.0

U64_SPAN = 18446744073709551616.0  # 2^64
U32_MAX = 4294967295


class Mash:
    """
    String hash accumulator used to seed AleaRng.

    The accumulator state persists across calls, so hashing the same string
    twice yields different values.
    """

    def __init__(self):
        self.n = MASH_INIT

    def mash(self, data: str) -> float:
        n = self.n
        for char in data:
            n += ord(char)
            h = MASH_MULTIPLIER * float(n)
            n = int(h)
            h -= n
            h *= n
            n = int(h)
            h -= n
            n += int(h * MASH_NORM)
        self.n = n
        return n / MASH_NORM


def seed_from_string(seed: Optional[str]) -> List[str]:
    """Split a single seed string on whitespace into a seed list."""
    if seed is None:
        return []
    return str(seed).split()


def random_seed_string() -> str:
    """Draw a fresh seed from OS entropy so an unseeded run can be replayed."""
    return str(int(np.random.default_rng().integers(0, 2**62)))


class RandomSource(ABC):
    """
    Common sampling interface.

    Subclasses provide ``random`` and ``next_u64``; every derived helper is
    built on those two so both backends consume randomness the same way.
    """

    seed_list: List[str]

    @abstractmethod
    def random(self) -> float:
        """Float in [0, 1)."""

    @abstractmethod
    def next_u64(self) -> int:
        """Integer in [0, 2^64)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name"""

    def next_u32(self) -> int:
        return self.next_u64() % U32_MAX

    def gen_bool(self, probability: float) -> bool:
        """
        Bernoulli trial.

        Args:
            probability: chance of True, within [0, 1]

        Raises:
            ValueError: If probability is outside [0, 1]
        """
        if not 0.0 <= probability < 1.0:
            if probability == 1.0:
                return True
            raise ValueError(f"Invalid probability for gen_bool: {probability} (must be in [0, 1])")
        threshold = int(probability * U64_SPAN)
        return self.next_u64() < threshold

    def range_int(self, low: int, high: int) -> int:
        """Integer in [low, high); truncates toward zero."""
        return int(low + self.random() * (high - low))

    def shuffle(self, items: MutableSequence[T]) -> None:
        """In-place Fisher-Yates, walking from the last index down."""
        for i in range(len(items) - 1, -1, -1):
            j = int(math.floor(self.random() * i))
            items[i], items[j] = items[j], items[i]

    def choose(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        for i in range(len(items) - 1, -1, -1):
            j = int(math.floor(self.random() * i))
            if j == 0:
                return items[i]
        return items[0]


class AleaRng(RandomSource):
    """
    Deterministic mash-seeded generator.

    Three float registers (s0, s1, s2) and an integer carry c. Each draw
    computes ``t = 2091639 * s0 + c * carry_scale``, rotates the registers,
    sets ``c = floor(t)`` and returns the fractional part as the new s2.
    An empty seed list is legal and gives a fixed default stream.
    """

    def __init__(self, seed_list: Optional[Sequence[str]] = None):
        self.seed_list = [str(s) for s in (seed_list or [])]
        masher = Mash()
        s0 = masher.mash(" ")
        s1 = masher.mash(" ")
        s2 = masher.mash(" ")
        for seed in self.seed_list:
            s0 -= masher.mash(seed)
            if s0 < 0:
                s0 += 1.0
            s1 -= masher.mash(seed)
            if s1 < 0:
                s1 += 1.0
            s2 -= masher.mash(seed)
            if s2 < 0:
                s2 += 1.0
        self.s0 = s0
        self.s1 = s1
        self.s2 = s2
        self.c = 1

    @property
    def name(self) -> str:
        return "alea"

    def random(self) -> float:
        t = ALEA_MULTIPLIER * self.s0 + self.c * ALEA_CARRY_SCALE
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(math.floor(t))
        self.s2 = t - self.c
        return self.s2

    def next_u64(self) -> int:
        return int(self.random() * U64_SPAN)


class PhiloxRng(RandomSource):
    """
    Philox4x64 backed source.

    With seed strings the key is derived from their SHA-256 digest, so runs
    are repeatable with this backend; without seeds it draws from OS entropy.
    """

    def __init__(self, seed_list: Optional[Sequence[str]] = None):
        self.seed_list = [str(s) for s in (seed_list or [])]
        if self.seed_list:
            digest = hashlib.sha256("\x00".join(self.seed_list).encode("utf-8")).digest()
            bit_generator = np.random.Philox(int.from_bytes(digest, "big"))
        else:
            bit_generator = np.random.Philox()
        self._generator = np.random.Generator(bit_generator)

    @property
    def name(self) -> str:
        return "philox"

    def random(self) -> float:
        return float(self._generator.random())

    def next_u64(self) -> int:
        return int(self._generator.bit_generator.random_raw())


_BACKENDS: Dict[str, Callable[..., RandomSource]] = {
    "alea": AleaRng,
    "philox": PhiloxRng,
}

RNG_BACKENDS = tuple(_BACKENDS)


def make_rng(backend: str = "alea", seed_list: Optional[Sequence[str]] = None) -> RandomSource:
    """
    Build a random source by backend name.

    Args:
        backend: "alea" (deterministic) or "philox"
        seed_list: ordered seed strings

    Returns:
        RandomSource instance
    """
    key = backend.lower()
    if key not in _BACKENDS:
        raise ValueError(f"Unknown RNG backend: {backend}. Available: {list(_BACKENDS.keys())}")
    rng = _BACKENDS[key](seed_list)
    logger.debug(f"RNG backend={rng.name} seed={rng.seed_list}")
    return rng
