from __future__ import annotations

BACKOFF_MIN_SEC: float = 1.0
BACKOFF_MAX_SEC: float = 3.0


def backoff(min_sec: float, max_sec: float, attempt: int) -> float:
    """Delay before poll `attempt`: 2^(attempt/5) * min_sec, capped at max_sec."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    delay = (2 ** (attempt / 5)) * min_sec
    return min(delay, max_sec)
