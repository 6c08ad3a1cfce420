"""
Injectable randomness for every draw.

Samplers never touch a global generator. Each draw consumes the source
explicitly, so a seeded source reproduces the same card sequence.
"""

import numpy as np
from typing import Optional, Union


class RandomSource:
    """
    Thin wrapper around ``numpy.random.Generator``.

    Exposes the two primitives the samplers need: a uniform float in
    [0, 1) and a uniform index in [0, n). Not thread-safe; confine one
    source per thread.
    """

    def __init__(self, seed: Optional[int] = None, generator: Optional[np.random.Generator] = None):
        if generator is not None and seed is not None:
            raise ValueError("Pass either seed or generator, not both")
        self.seed = seed
        self.generator = generator if generator is not None else np.random.default_rng(seed)

    def random(self) -> float:
        return float(self.generator.random())

    def index(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"Cannot draw an index from an empty range (n={n})")
        return int(self.generator.integers(n))


RandomLike = Union[None, int, np.random.Generator, RandomSource]


def as_random_source(source: RandomLike = None) -> RandomSource:
    """Accept a seed, a numpy Generator, an existing source or None."""
    if isinstance(source, RandomSource):
        return source
    if isinstance(source, np.random.Generator):
        return RandomSource(generator=source)
    if source is None or isinstance(source, (int, np.integer)):
        return RandomSource(seed=None if source is None else int(source))
    raise TypeError(f"Unsupported random source: {type(source).__name__}")
