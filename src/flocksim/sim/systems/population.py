from __future__ import annotations

import logging
import math
from typing import Optional, TYPE_CHECKING

from ...config import PopulationControlConfig
from ..core.rng import DeterministicRng

if TYPE_CHECKING:
    from ..core.flock import Flock

logger = logging.getLogger(__name__)


class PopulationController:
    """Grows or shrinks the flock one agent at a time to hold a target tick rate.

    Call :meth:`record_tick` once per tick with a monotonic timestamp in
    seconds. When a sampling window closes the measured rate is compared with
    the configured band.
    """

    def __init__(
        self,
        flock: Flock,
        config: PopulationControlConfig | None = None,
        rng: DeterministicRng | None = None,
    ) -> None:
        self._flock = flock
        self._config = config if config is not None else PopulationControlConfig()
        self._rng = rng if rng is not None else DeterministicRng(None)
        self._window_start: Optional[float] = None
        self._frames = 0
        self._rate = 0.0

    @property
    def rate(self) -> float:
        return self._rate

    def record_tick(self, now: float) -> Optional[float]:
        if self._window_start is None:
            self._window_start = now
            return None
        self._frames += 1
        elapsed = now - self._window_start
        if elapsed < self._config.sample_seconds:
            return None
        # Halves round up.
        self._rate = math.floor(self._frames / elapsed + 0.5)
        self._frames = 0
        self._window_start = now
        self.adjust(self._rate)
        return self._rate

    def adjust(self, rate: float) -> None:
        config = self._config
        flock = self._flock
        count = len(flock.agents)
        if rate <= config.low_rate and count > config.min_agents:
            flock.remove_agent(count - 1)
            logger.debug("rate %.1f below %.1f, population %d -> %d", rate, config.low_rate, count, count - 1)
        elif rate >= config.high_rate and count < config.max_agents:
            speed = config.spawn_speed
            flock.add_agent(0.0, 0.0, self._rng.next_range(-speed, speed), self._rng.next_range(-speed, speed))
            logger.debug("rate %.1f above %.1f, population %d -> %d", rate, config.high_rate, count, count + 1)
