from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.agent import Agent
from ..utils.math2d import _clamp_length_ip

if TYPE_CHECKING:
    from ...config import SimulationParameters


def integrate(agent: Agent, params: SimulationParameters) -> None:
    acceleration = agent.acceleration
    velocity = agent.velocity
    position = agent.position

    _clamp_length_ip(acceleration, params.acceleration_limit, params.acceleration_limit_root)
    velocity.x += acceleration.x
    velocity.y += acceleration.y
    _clamp_length_ip(velocity, params.speed_limit, params.speed_limit_root)
    position.x += velocity.x
    position.y += velocity.y
    acceleration.x = 0.0
    acceleration.y = 0.0
