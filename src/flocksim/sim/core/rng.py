from __future__ import annotations

import random
from typing import Optional


class DeterministicRng:
    def __init__(self, seed: Optional[int]):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        # Half-open [low, high); random.uniform may return high.
        return low + self._random.random() * (high - low)
