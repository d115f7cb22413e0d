from .backoff import BACKOFF_MAX_SEC, BACKOFF_MIN_SEC, backoff
from .signals import Signals
from .time import format_elapsed, normalize_dt, parse_rfc3339, to_rfc3339
from .urls import run_url

__all__ = [
    "BACKOFF_MIN_SEC",
    "BACKOFF_MAX_SEC",
    "backoff",
    "Signals",
    "parse_rfc3339",
    "to_rfc3339",
    "normalize_dt",
    "format_elapsed",
    "run_url",
]
