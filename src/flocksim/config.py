from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml


@dataclass
class AttractorConfig:
    x: float = 0.0
    y: float = 0.0
    radius: float = 100.0
    force: float = 0.1


@dataclass
class FlockConfig:
    size: int = 50
    speed_limit: float = 0.0
    acceleration_limit: float = 1.0
    separation_distance: float = 60.0
    alignment_distance: float = 180.0
    cohesion_distance: float = 180.0
    separation_force: float = 0.15
    cohesion_force: float = 0.1
    alignment_force: float = 0.25
    attractors: List[AttractorConfig] = field(default_factory=list)
    seed: Optional[int] = None
    spawn_extent: float = 200.0
    spawn_speed: float = 0.5


@dataclass
class ViewportConfig:
    width: float = 1280.0
    height: float = 720.0
    wrap: bool = True


@dataclass
class PopulationControlConfig:
    enabled: bool = False
    sample_seconds: float = 1.0
    low_rate: float = 56.0
    high_rate: float = 60.0
    min_agents: int = 10
    max_agents: int = 500
    spawn_speed: float = 3.0


@dataclass
class PointerAttractorConfig:
    radius: float = 200.0
    force: float = 0.1


@dataclass
class AppConfig:
    flock: FlockConfig = field(default_factory=FlockConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    population: PopulationControlConfig = field(default_factory=PopulationControlConfig)
    pointer_attractor: Optional[PointerAttractorConfig] = field(default_factory=PointerAttractorConfig)
    tick_rate: float = 60.0
    broadcast_interval: int = 1

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _attractor(value: Any) -> AttractorConfig:
    if isinstance(value, dict):
        return AttractorConfig(**value)
    if isinstance(value, (list, tuple)) and len(value) == 4:
        x, y, radius, force = (float(item) for item in value)
        return AttractorConfig(x=x, y=y, radius=radius, force=force)
    raise ValueError(f"attractor must be [x, y, radius, force] or a mapping, got {value!r}")


def load_flock_config(raw: dict) -> FlockConfig:
    values = {k: v for k, v in raw.items() if k != "attractors"}
    attractors: Sequence[Any] = raw.get("attractors") or []
    config = FlockConfig(attractors=[_attractor(item) for item in attractors], **values)
    if config.size < 0:
        raise ValueError(f"flock size must be non-negative, got {config.size}")
    return config


def load_config(raw: dict) -> AppConfig:
    flock = load_flock_config(raw.get("flock", {}))
    viewport = ViewportConfig(**raw.get("viewport", {}))
    population = PopulationControlConfig(**raw.get("population", {}))
    pointer_raw = raw.get("pointer_attractor", {})
    pointer = None if pointer_raw is None else PointerAttractorConfig(**pointer_raw)
    app_values = {
        k: v for k, v in raw.items() if k not in {"flock", "viewport", "population", "pointer_attractor"}
    }
    return AppConfig(flock=flock, viewport=viewport, population=population, pointer_attractor=pointer, **app_values)


@dataclass(frozen=True)
class SimulationParameters:
    """Limits and radii prepared for the tick loop.

    Distances are squared so neighbour tests avoid square roots; limits keep
    both the squared value and the root used to rescale a clamped vector.
    """

    speed_limit: float
    speed_limit_root: float
    acceleration_limit: float
    acceleration_limit_root: float
    separation_distance: float
    alignment_distance: float
    cohesion_distance: float
    separation_force: float
    cohesion_force: float
    alignment_force: float

    @classmethod
    def from_config(cls, config: FlockConfig) -> "SimulationParameters":
        speed_root = float(config.speed_limit)
        acceleration_root = float(config.acceleration_limit)
        return cls(
            speed_limit=speed_root * speed_root,
            speed_limit_root=speed_root,
            acceleration_limit=acceleration_root * acceleration_root,
            acceleration_limit_root=acceleration_root,
            separation_distance=math.pow(config.separation_distance, 2),
            alignment_distance=math.pow(config.alignment_distance, 2),
            cohesion_distance=math.pow(config.cohesion_distance, 2),
            separation_force=float(config.separation_force),
            cohesion_force=float(config.cohesion_force),
            alignment_force=float(config.alignment_force),
        )
