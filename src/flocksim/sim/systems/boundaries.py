from __future__ import annotations

from typing import List

from ..core.agent import Agent


class Wraparound:
    """Tick observer that teleports agents leaving the viewport to the opposite edge.

    The viewport is centred on the origin.
    """

    def __init__(self, width: float, height: float) -> None:
        self._half_width = width / 2
        self._half_height = height / 2

    @property
    def half_extents(self) -> tuple[float, float]:
        return self._half_width, self._half_height

    def resize(self, width: float, height: float) -> None:
        self._half_width = width / 2
        self._half_height = height / 2

    def __call__(self, agents: List[Agent]) -> None:
        half_width = self._half_width
        half_height = self._half_height
        for agent in agents:
            position = agent.position
            x = position.x
            y = position.y
            position.x = -half_width if x > half_width else half_width if -x > half_width else x
            position.y = -half_height if y > half_height else half_height if -y > half_height else y
