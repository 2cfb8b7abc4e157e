import time


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds (the buff timestamp domain)."""
    return int(time.time() * 1000)
