from __future__ import annotations

import uuid
from datetime import datetime, timezone


def generate_run_id() -> str:
    """
    Назначение:
        run_id вида 20240101T120000Z-1a2b3c4d.

    Контракт:
        Префикс с UTC-временем даёт лексикографическую сортировку файлов
        логов и отчётов по времени запуска; суффикс из uuid4 различает
        запуски в пределах одной секунды.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{stamp}-{uuid.uuid4().hex[:8]}"
