from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from pygame.math import Vector2


@dataclass(slots=True)
class Agent:
    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    acceleration: Vector2 = field(default_factory=Vector2)

    @classmethod
    def from_components(cls, x: float, y: float, vx: float = 0.0, vy: float = 0.0) -> "Agent":
        return cls(position=Vector2(x, y), velocity=Vector2(vx, vy))

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    @property
    def vx(self) -> float:
        return self.velocity.x

    @property
    def vy(self) -> float:
        return self.velocity.y

    @property
    def ax(self) -> float:
        return self.acceleration.x

    @property
    def ay(self) -> float:
        return self.acceleration.y

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (
            self.position.x,
            self.position.y,
            self.velocity.x,
            self.velocity.y,
            self.acceleration.x,
            self.acceleration.y,
        )

    def __iter__(self) -> Iterator[float]:
        return iter(self.as_tuple())


@dataclass(slots=True)
class Attractor:
    position: Vector2
    radius: float
    force: float

    @classmethod
    def from_components(cls, x: float, y: float, radius: float, force: float) -> "Attractor":
        return cls(position=Vector2(x, y), radius=float(radius), force=float(force))

    @property
    def x(self) -> float:
        return self.position.x

    @x.setter
    def x(self, value: float) -> None:
        self.position.x = value

    @property
    def y(self) -> float:
        return self.position.y

    @y.setter
    def y(self, value: float) -> None:
        self.position.y = value

    def move_to(self, x: float, y: float) -> None:
        self.position.update(x, y)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.position.x, self.position.y, self.radius, self.force)

    def __iter__(self) -> Iterator[float]:
        return iter(self.as_tuple())
