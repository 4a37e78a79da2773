def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты (api_token) для безопасного вывода в stdout/logs.

    Выходные данные:
        str | None
            Если value задано, возвращает '***', иначе None.
    """
    if value is None:
        return None
    return "***"


def truncateText(value: str | None, limit: int = 200) -> str | None:
    """
    Назначение:
        Ограничивает длину текста (тела ответов API) в логах/отчётах.
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    head = limit - len(suffix)
    return value[:head] + suffix
