from __future__ import annotations

from typing import List

from ..core.agent import Agent
from ..types.metrics import TickMetrics
from ..utils.math2d import approx_hypot


def create_metrics(tick: int, agents: List[Agent], attractor_count: int, duration_ms: float) -> TickMetrics:
    population = len(agents)
    speed_sum = 0.0
    max_speed = 0.0
    for agent in agents:
        speed = approx_hypot(agent.velocity.x, agent.velocity.y)
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
    return TickMetrics(
        tick=tick,
        population=population,
        attractors=attractor_count,
        average_speed=0.0 if population == 0 else speed_sum / population,
        max_speed=max_speed,
        tick_duration_ms=duration_ms,
    )
