from __future__ import annotations

import math

from pygame.math import Vector2


def approx_hypot(a: float, b: float) -> float:
    """Dog-leg hypotenuse approximation of ``sqrt(a*a + b*b)``.

    Exact on the axes, within roughly 3.5% elsewhere.
    """
    a = abs(a)
    b = abs(b)
    lo = min(a, b)
    hi = max(a, b)
    return hi + 3 * lo / 32 + max(0.0, 2 * lo - hi) / 8 + max(0.0, 4 * lo - hi) / 16


def _safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    value = numerator / denominator
    if not math.isfinite(value):
        return 0.0
    return value


def _scaled_direction_xy(x: float, y: float, scale: float) -> tuple[float, float]:
    length = approx_hypot(x, y)
    return _safe_ratio(scale * x, length), _safe_ratio(scale * y, length)


def _clamp_length_ip(vector: Vector2, limit_sq: float, limit_root: float) -> None:
    if not limit_sq:
        return
    magnitude_sq = vector.x * vector.x + vector.y * vector.y
    if magnitude_sq <= limit_sq:
        return
    ratio = _safe_ratio(limit_root, approx_hypot(vector.x, vector.y))
    vector.x *= ratio
    vector.y *= ratio
