"""
Bag randomizer for Tetrix.

Every refill holds each (shape, rotation) pair of the catalog exactly once,
in a shuffled order. A pair can therefore never repeat before the whole
bag has been dealt, which bounds how long the player can wait for any
given orientation.

The shuffle is driven by numpy's Philox generator, a counter-based stream:
the same seed always produces the same sequence of bags.
"""

from __future__ import annotations
from typing import Optional
import logging
import secrets
import time

import numpy as np

from .shapes import Piece, Shape, catalog, make_piece

logger = logging.getLogger(__name__)


def entropy_seed() -> int:
    """A fresh 64-bit seed from the clock mixed with OS entropy."""
    return (time.time_ns() ^ secrets.randbits(64)) & 0xFFFFFFFFFFFFFFFF


class BagRandomizer:
    """
    Deals pieces from a shuffled bag of every catalog orientation.

    Args:
        seed: Seed for the generator. None draws one from entropy_seed().
        include_mirrored: Include the J and Z families (19 pairs instead of 13).
    """

    def __init__(self, seed: Optional[int] = None, include_mirrored: bool = True):
        self.include_mirrored = include_mirrored
        self.pairs: list[tuple[Shape, int]] = catalog(include_mirrored)
        self.bag: list[tuple[Shape, int]] = []
        self.seed: int = 0
        self.rng: np.random.Generator
        self.bags_dealt = 0
        self.reset(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed and refill, discarding whatever was left of the current bag."""
        self.seed = entropy_seed() if seed is None else seed
        self.rng = np.random.Generator(np.random.Philox(self.seed))
        self.bags_dealt = 0
        self._refill()

    def _refill(self) -> None:
        order = self.rng.permutation(len(self.pairs))
        self.bag = [self.pairs[int(i)] for i in order]
        self.bags_dealt += 1
        logger.debug(
            "New bag #%d: %s",
            self.bags_dealt,
            ", ".join(f"{shape.value}-{rotation}" for shape, rotation in self.bag),
        )

    @property
    def remaining(self) -> int:
        """Pairs left before the next refill."""
        return len(self.bag)

    def peek(self) -> tuple[Shape, int]:
        """The pair the next call to next() will deal."""
        if not self.bag:
            self._refill()
        return self.bag[0]

    def next_pair(self) -> tuple[Shape, int]:
        """Remove and return the front (shape, rotation) pair."""
        if not self.bag:
            self._refill()
        return self.bag.pop(0)

    def next(self) -> Piece:
        """Deal the next piece."""
        shape, rotation = self.next_pair()
        return make_piece(shape, rotation)

    def __iter__(self):
        return self

    def __next__(self) -> Piece:
        return self.next()
