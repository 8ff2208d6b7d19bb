"""Normalization primitives shared by every scorer.

Rounding is half-up (2.5 -> 3) so band edges land the same way regardless of
Python's banker's rounding.
"""

import math


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round and clamp into [low, high]."""
    return max(low, min(high, round_half_up(value)))


def norm_lower_is_better(value: float, good: float, bad: float) -> int:
    """100 at or below `good`, 0 at or above `bad`, linear in between."""
    if value <= good:
        return 100
    if value >= bad:
        return 0
    return round_half_up((bad - value) / (bad - good) * 100)


def norm_higher_is_better(value: float, bad: float, good: float) -> int:
    """0 at or below `bad`, 100 at or above `good`, linear in between."""
    if value <= bad:
        return 0
    if value >= good:
        return 100
    return round_half_up((value - bad) / (good - bad) * 100)


def rescale(raw: float, maximum: float) -> int:
    """Map a raw point total onto 0-100."""
    if maximum <= 0:
        return 0
    return clamp_score(raw / maximum * 100)


def ratio_points(numerator: int, denominator: int, points: int, default: int) -> int:
    """round(numerator / denominator * points), or `default` when nothing was sampled."""
    if not denominator:
        return default
    return round_half_up(numerator / denominator * points)


def weighted(components: dict[str, float], weights: dict[str, float]) -> int:
    """Weighted average over the components present, renormalized to the weights used."""
    used = {k: w for k, w in weights.items() if components.get(k) is not None}
    total = sum(used.values())
    if not total:
        return 0
    return clamp_score(sum(components[k] * w for k, w in used.items()) / total)
