from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomChoice:
    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def between(self, low: int, high: int) -> int:
        # Inclusive on both ends.
        return self._rng.randint(low, high)

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("cannot pick from an empty sequence")
        return items[self.between(0, len(items) - 1)]

    def shuffled(self, items: Sequence[T]) -> List[T]:
        copy = list(items)
        self._rng.shuffle(copy)
        return copy
