from __future__ import annotations

import time
from datetime import datetime


def getNowIso() -> str:
    """Локальное время с offset, секундная точность (для meta и отчётов)."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def getDurationMs(startMonotonic: float, endMonotonic: float | None = None) -> int:
    if endMonotonic is None:
        endMonotonic = time.monotonic()
    return max(0, int((endMonotonic - startMonotonic) * 1000))
