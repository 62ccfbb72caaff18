def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты (ACL-токены) для безопасного вывода в stdout/logs.

    Выходные данные:
        str | None
            Если value задано — возвращает '***', иначе None.
    """
    if not value:
        return None
    return "***"


def truncateText(value: str | None, limit: int = 500) -> str | None:
    """
    Назначение:
        Ограничивает длину текста, чтобы сообщения об ошибках API не раздували вывод.

    Выходные данные:
        str | None
            Строка, не длиннее limit символов; None, если вход None.
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    head = limit - len(suffix)
    return value[:head] + suffix
