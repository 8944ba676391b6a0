from __future__ import annotations

from .config import AppConfig, AttractorConfig, FlockConfig
from .sim.core.agent import Agent, Attractor
from .sim.core.flock import Flock
from .sim.utils.math2d import approx_hypot

__version__ = "0.1.0"

__all__ = [
    "Agent",
    "AppConfig",
    "Attractor",
    "AttractorConfig",
    "Flock",
    "FlockConfig",
    "approx_hypot",
]
