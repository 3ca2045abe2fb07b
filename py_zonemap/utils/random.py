"""
Random number generation utilities.

All randomness in py_zonemap flows through NumPy ``Generator`` instances so a
whole generation run can be reproduced from one seed. String seeds are
hashed to a stable integer first.
"""

import hashlib
from typing import Optional, Union

import numpy as np

Seed = Union[None, int, str, np.random.Generator]

SUFFIX_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


def create_rng(seed: Seed = None) -> np.random.Generator:
    """
    Build a NumPy random generator.

    Args:
        seed: None for OS entropy, an int, a string (hashed), or an
              existing Generator which is returned unchanged

    Returns:
        np.random.Generator
    """
    if isinstance(seed, np.random.Generator):
        return seed
    if isinstance(seed, str):
        digest = hashlib.sha256(seed.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:8], "little")
    return np.random.default_rng(seed)


def random_suffix(rng: np.random.Generator, length: int = 6) -> str:
    """Random lower-case alphanumeric string used for zone identifiers."""
    indices = rng.integers(0, len(SUFFIX_ALPHABET), size=length)
    return "".join(SUFFIX_ALPHABET[i] for i in indices)


def uniform_in_range(rng: np.random.Generator, low: float, high: float,
                     decimals: Optional[int] = 3) -> float:
    """Sample uniformly between two bounds (in either order) and round."""
    value = rng.random() * (high - low) + low
    if decimals is None:
        return float(value)
    return round(float(value), decimals)
