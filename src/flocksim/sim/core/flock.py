from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional

from pygame.math import Vector2

from ...config import FlockConfig, SimulationParameters
from ..systems import integration, metrics as metrics_system, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot
from ..utils.math2d import approx_hypot
from .agent import Agent, Attractor
from .rng import DeterministicRng

logger = logging.getLogger(__name__)

TickCallback = Callable[[List[Agent]], Any]


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


class Flock:
    """Boids flock with separation, alignment, cohesion and point attractors.

    ``agents`` and ``attractors`` are the live lists the simulator reads on the
    next tick. Tick observers receive the same ``agents`` list, so edits they
    make (wrapping positions at a screen edge, say) carry into the next step.
    """

    def __init__(self, config: Optional[FlockConfig] = None, callback: Optional[TickCallback] = None):
        self._config = config if config is not None else FlockConfig()
        self._params = SimulationParameters.from_config(self._config)
        self._rng = DeterministicRng(self._config.seed)
        self._agents: List[Agent] = []
        self._attractors: List[Attractor] = []
        self._observers: List[TickCallback] = []
        self._tick_count = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        self._bootstrap_attractors()
        if callback is not None:
            self.on_tick(callback)
        logger.debug(
            "flock created with %d agents and %d attractors (seed=%s)",
            len(self._agents),
            len(self._attractors),
            self._config.seed,
        )

    @property
    def config(self) -> FlockConfig:
        return self._config

    @property
    def params(self) -> SimulationParameters:
        return self._params

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def attractors(self) -> List[Attractor]:
        return self._attractors

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self) -> None:
        self._agents.clear()
        self._attractors.clear()
        self._rng.reset()
        self._tick_count = 0
        self._metrics = None
        self._bootstrap_population()
        self._bootstrap_attractors()

    def tick(self) -> TickMetrics:
        start = perf_counter()
        agents = self._agents
        attractors = self._attractors
        params = self._params

        # Every agent's forces are gathered before anyone moves.
        for index in range(len(agents)):
            steering.accumulate_forces(index, agents, attractors, params)

        for agent in agents:
            integration.integrate(agent, params)

        self._tick_count += 1
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(self._tick_count, agents, len(attractors), duration_ms)

        for observer in list(self._observers):
            observer(agents)
        return self._metrics

    def on_tick(self, callback: TickCallback) -> TickCallback:
        self._observers.append(callback)
        return callback

    def off_tick(self, callback: TickCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def add_agent(self, x: float, y: float, vx: float = 0.0, vy: float = 0.0) -> Agent:
        agent = Agent.from_components(x, y, vx, vy)
        self._agents.append(agent)
        logger.debug("added agent %d at (%s, %s)", len(self._agents) - 1, x, y)
        return agent

    def remove_agent(self, index: int) -> None:
        if 0 <= index < len(self._agents):
            del self._agents[index]
            logger.debug("removed agent %d, %d left", index, len(self._agents))

    def clear_agents(self) -> None:
        logger.debug("cleared %d agents", len(self._agents))
        self._agents.clear()

    def add_attractor(self, x: float, y: float, radius: float, force: float) -> Attractor:
        attractor = Attractor.from_components(x, y, radius, force)
        self._attractors.append(attractor)
        return attractor

    def remove_attractor(self, index: int) -> None:
        if 0 <= index < len(self._attractors):
            del self._attractors[index]

    def clear_attractors(self) -> None:
        self._attractors.clear()

    def snapshot(self) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(self._tick_count, self._agents, len(self._attractors), 0.0)
        return Snapshot(
            tick=self._tick_count,
            metrics=metrics,
            agents=[self._agent_snapshot(index, agent) for index, agent in enumerate(self._agents)],
            attractors=[self._attractor_snapshot(attractor) for attractor in self._attractors],
        )

    def _bootstrap_population(self) -> None:
        extent = self._config.spawn_extent
        speed = self._config.spawn_speed
        rng = self._rng
        for _ in range(self._config.size):
            x = rng.next_range(-extent, extent)
            y = rng.next_range(-extent, extent)
            vx = rng.next_range(-speed, speed)
            vy = rng.next_range(-speed, speed)
            self._agents.append(Agent(position=Vector2(x, y), velocity=Vector2(vx, vy)))

    def _bootstrap_attractors(self) -> None:
        for item in self._config.attractors:
            self.add_attractor(item.x, item.y, item.radius, item.force)

    @staticmethod
    def _agent_snapshot(index: int, agent: Agent) -> Dict[str, float]:
        return {
            "index": index,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "speed": approx_hypot(agent.velocity.x, agent.velocity.y),
        }

    @staticmethod
    def _attractor_snapshot(attractor: Attractor) -> Dict[str, float]:
        return {
            "x": _finite_or_none(attractor.position.x),
            "y": _finite_or_none(attractor.position.y),
            "radius": attractor.radius,
            "force": attractor.force,
        }
