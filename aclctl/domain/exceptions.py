from __future__ import annotations

from typing import Sequence

from aclctl.domain.error_codes import ErrorCode
from aclctl.errors import AppError


class ValidationError(AppError):
    """
    Назначение:
        Ошибка некорректного использования со стороны вызывающего кода
        (пустой префикс, не заданы политики и т.п.).
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            category="validation",
            code=ErrorCode.VALIDATION_ERROR.value,
            message=message,
            details={"field": field} if field else {},
        )
        self.field = field


class NotFoundError(AppError):
    """
    Назначение:
        Ни один идентификатор вселенной не начинается с префикса.
    """

    def __init__(self, prefix: str, kind: str):
        super().__init__(
            category="resolve",
            code=ErrorCode.NOT_FOUND.value,
            message=f"No such {kind} ID with prefix: {prefix}",
            details={"prefix": prefix, "kind": kind},
        )
        self.prefix = prefix
        self.kind = kind


class AmbiguousPrefixError(AppError):
    """
    Назначение:
        Префикс совпал с двумя и более различными идентификаторами,
        и ни один из них не равен префиксу целиком.
    Инварианты/гарантии:
        - count == len(candidates) >= 2
        - candidates отсортированы
    """

    def __init__(self, prefix: str, kind: str, candidates: Sequence[str]):
        ordered = sorted(candidates)
        super().__init__(
            category="resolve",
            code=ErrorCode.AMBIGUOUS_PREFIX.value,
            message=(
                f"Partial {kind} ID is not unique: '{prefix}' matches {len(ordered)} entries, "
                "please supply more characters"
            ),
            details={"prefix": prefix, "kind": kind, "count": len(ordered), "candidates": ordered},
        )
        self.prefix = prefix
        self.kind = kind
        self.candidates = tuple(ordered)

    @property
    def count(self) -> int:
        return len(self.candidates)


class UpstreamError(AppError):
    """
    Назначение:
        Сбой источника идентификаторов (сеть, авторизация, формат ответа).
    Контракт:
        - cause хранит исходное исключение без изменений (также в __cause__).
        - code берётся из исходной AppError, если она есть.
    """

    def __init__(self, prefix: str, kind: str, cause: BaseException):
        code = getattr(cause, "code", None)
        if not isinstance(code, str) or not code:
            code = ErrorCode.UPSTREAM_ERROR.value
        super().__init__(
            category="upstream",
            code=code,
            message=f"Failed to list {kind} IDs while resolving '{prefix}': {cause}",
            retryable=bool(getattr(cause, "retryable", False)),
            details={"prefix": prefix, "kind": kind, "cause": type(cause).__name__},
        )
        self.prefix = prefix
        self.kind = kind
        self.cause = cause


__all__ = ["ValidationError", "NotFoundError", "AmbiguousPrefixError", "UpstreamError"]
