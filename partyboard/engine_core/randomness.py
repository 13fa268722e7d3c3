"""Random helpers shared by the selector resolver and the draw engine."""

from __future__ import annotations
from typing import Any, MutableSequence
import random


def shuffle_list(items: MutableSequence[Any], rng: random.Random) -> None:
    """Fisher-Yates shuffle, in place."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
