# terrain_synth/permutation.py

"""
================================================================================
PERMUTATION TABLE & RANDOMNESS SOURCES
================================================================================
This module builds the 512-entry permutation table that drives gradient noise,
and the two randomness sources used to shuffle it.

Data Contract:
---------------
- Inputs:
    - seed: A number, a text string, or None.
    - source: An explicit randomness source (SeededSource or EntropySource).
- Outputs:
    - PermutationTable: A read-only uint8 array of 512 entries.
- Side Effects: EntropySource reads operating-system entropy.
- Invariants: Entries 0..255 are a bijection of 0..255 and entry i + 256
  equals entry i. The same seeded source and seed always yield the same table.
================================================================================
"""

import re

import numpy as np

from . import config as DEFAULTS

# Leading decimal literal of a text seed ("12abc" -> "12", ".5e3x" -> ".5e3").
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class SeededSource:
    """A reproducible linear-congruential source reseeded from a numeric seed."""

    def __init__(self, seed: float):
        seed = float(seed)
        if not np.isfinite(seed):
            raise ValueError(f"SeededSource needs a finite seed, got {seed!r}.")
        self.seed = seed
        # Reducing first keeps state * multiplier far from float overflow.
        self._state = seed % DEFAULTS.LCG_MODULUS

    def next_float(self) -> float:
        """Advances the generator and returns a value in [0, 1)."""
        # Python's modulo keeps the state non-negative even for negative seeds.
        self._state = (
            self._state * DEFAULTS.LCG_MULTIPLIER + DEFAULTS.LCG_INCREMENT
        ) % DEFAULTS.LCG_MODULUS
        return self._state / DEFAULTS.LCG_MODULUS

    def next_index(self, upper: int) -> int:
        """Returns a uniformly chosen index in [0, upper]."""
        return min(int(self.next_float() * (upper + 1)), upper)


class EntropySource:
    """A non-reproducible source backed by operating-system entropy."""

    def __init__(self, rng: np.random.Generator = None):
        self._rng = rng if rng is not None else np.random.default_rng()

    def next_float(self) -> float:
        return float(self._rng.random())

    def next_index(self, upper: int) -> int:
        return min(int(self.next_float() * (upper + 1)), upper)


def hash_seed_string(text: str) -> float:
    """
    Folds a text seed into [0, 1) with a signed 32-bit rolling polynomial hash
    (hash * 31 + char code per character).
    """
    value = 0
    for char in text:
        value = value * DEFAULTS.SEED_HASH_MULTIPLIER + ord(char)
        # Wrap to signed 32-bit.
        value = (value + 2**31) % 2**32 - 2**31
    return abs(value) / DEFAULTS.SEED_HASH_DIVISOR


def resolve_seed(value) -> float | None:
    """
    Converts user seed input into a numeric seed.

    Numbers are used as-is. Text with a leading decimal literal ("12", "0.5",
    "12abc") is used as that number when it is finite and non-zero; any other
    text is hashed. None or blank text means "no seed",
    which callers treat as a request for entropy.
    """
    if value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)

    text = str(value).strip()
    if not text:
        return None
    match = _NUMERIC_PREFIX.match(text)
    if match is None:
        return hash_seed_string(text)
    number = float(match.group(0))
    if number == 0 or not np.isfinite(number):
        return hash_seed_string(text)
    return number


class PermutationTable:
    """
    An immutable 512-entry permutation table. Use `generate` to build one.
    """

    def __init__(self, values: np.ndarray):
        values = np.asarray(values, dtype=np.uint8)
        size = DEFAULTS.PERMUTATION_SIZE
        if values.shape != (2 * size,):
            raise ValueError(f"Permutation table must have {2 * size} entries, got shape {values.shape}.")
        if not np.array_equal(np.sort(values[:size]), np.arange(size)):
            raise ValueError("Permutation table entries 0..255 must be a bijection of 0..255.")
        if not np.array_equal(values[:size], values[size:]):
            raise ValueError("Permutation table entries 256..511 must repeat entries 0..255.")

        self._values = values.copy()
        self._values.setflags(write=False)

    @classmethod
    def generate(cls, seed=None, source=None) -> "PermutationTable":
        """
        Shuffles the identity permutation with Fisher-Yates and duplicates it.

        Args:
            seed: Optional numeric seed for a SeededSource. Ignored when an
                explicit source is given.
            source: Optional randomness source. Defaults to a SeededSource when
                a seed is given, otherwise to an EntropySource.
        """
        if source is None:
            source = SeededSource(seed) if seed is not None else EntropySource()

        size = DEFAULTS.PERMUTATION_SIZE
        p = list(range(size))
        for i in range(size - 1, 0, -1):
            j = source.next_index(i)
            temp = p[i]
            p[i] = p[j]
            p[j] = temp

        return cls(np.array(p + p, dtype=np.uint8))

    @property
    def values(self) -> np.ndarray:
        """The read-only uint8 table of 512 entries."""
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index):
        return self._values[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PermutationTable):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self) -> int:
        return hash(self._values.tobytes())
