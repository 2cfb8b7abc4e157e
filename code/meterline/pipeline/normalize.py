"""Ratio helpers. Every non-positive denominator yields 0.0, never NaN/inf."""


def per_second(amount: int, duration_ms: int) -> float:
    if duration_ms <= 0:
        return 0.0
    return amount / (duration_ms / 1000)


def per_minute(count: int, duration_ms: int) -> float:
    if duration_ms <= 0:
        return 0.0
    return count / (duration_ms / 1000) * 60


def percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100
