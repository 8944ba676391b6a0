from __future__ import annotations

from typing import List, TYPE_CHECKING

from ..core.agent import Agent, Attractor
from ..utils.math2d import _safe_ratio, _scaled_direction_xy, approx_hypot

if TYPE_CHECKING:
    from ...config import SimulationParameters


def apply_attractors(agent: Agent, attractors: List[Attractor]) -> None:
    """Nudge ``agent.velocity`` towards (or away from) every attractor in range.

    The nudge is applied to velocity directly, so it is not subject to the
    acceleration limit.
    """
    pos_x = agent.position.x
    pos_y = agent.position.y
    velocity = agent.velocity
    for attractor in attractors:
        offset_x = pos_x - attractor.position.x
        offset_y = pos_y - attractor.position.y
        dist_sq = offset_x * offset_x + offset_y * offset_y
        if dist_sq < attractor.radius * attractor.radius:
            length = approx_hypot(offset_x, offset_y)
            velocity.x -= _safe_ratio(attractor.force * offset_x, length)
            velocity.y -= _safe_ratio(attractor.force * offset_y, length)


def accumulate_forces(
    index: int,
    agents: List[Agent],
    attractors: List[Attractor],
    params: SimulationParameters,
) -> None:
    agent = agents[index]
    if attractors:
        apply_attractors(agent, attractors)

    sep_dist = params.separation_distance
    coh_dist = params.cohesion_distance
    ali_dist = params.alignment_distance
    sep_x = sep_y = 0.0
    coh_x = coh_y = 0.0
    ali_x = ali_y = 0.0
    pos_x = agent.position.x
    pos_y = agent.position.y

    for target, other in enumerate(agents):
        if target == index:
            continue
        offset_x = pos_x - other.position.x
        offset_y = pos_y - other.position.y
        dist_sq = offset_x * offset_x + offset_y * offset_y
        if dist_sq < sep_dist:
            sep_x += offset_x
            sep_y += offset_y
        else:
            if dist_sq < coh_dist:
                coh_x += offset_x
                coh_y += offset_y
            if dist_sq < ali_dist:
                ali_x += other.velocity.x
                ali_y += other.velocity.y

    acceleration = agent.acceleration
    force_x, force_y = _scaled_direction_xy(sep_x, sep_y, params.separation_force)
    acceleration.x += force_x
    acceleration.y += force_y
    force_x, force_y = _scaled_direction_xy(coh_x, coh_y, params.cohesion_force)
    acceleration.x -= force_x
    acceleration.y -= force_y
    force_x, force_y = _scaled_direction_xy(ali_x, ali_y, params.alignment_force)
    acceleration.x -= force_x
    acceleration.y -= force_y
