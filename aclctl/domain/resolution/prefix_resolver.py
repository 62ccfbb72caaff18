from __future__ import annotations

from aclctl.domain.exceptions import AmbiguousPrefixError, NotFoundError, UpstreamError, ValidationError
from aclctl.domain.models import ResourceKind
from aclctl.domain.ports.acl_api import IdentifierLister


def kind_label(kind: ResourceKind | str) -> str:
    """Человекочитаемое имя вида ресурса для сообщений об ошибках."""
    if isinstance(kind, ResourceKind):
        return kind.value
    return str(kind)


def resolve_prefix(prefix: str, lister: IdentifierLister, kind: ResourceKind | str = ResourceKind.POLICY) -> str:
    """
    Назначение:
        Разрешает полный или частичный идентификатор в единственный канонический.

    Контракт (вход/выход):
        - prefix: непустая строка; полный идентификатор или его префикс.
        - lister: вызывается ровно один раз и возвращает текущую вселенную идентификаторов.
        - Возвращает элемент вселенной, равный prefix или единственный начинающийся с него.

    Ошибки/исключения:
        - ValidationError: пустой prefix (lister не вызывается); пробельный prefix ищется как есть.
        - UpstreamError: lister упал; исходное исключение в .cause и __cause__, без повторов.
        - NotFoundError: нет совпадений.
        - AmbiguousPrefixError: совпадений два и более и нет точного.

    Алгоритм:
        - Точное совпадение имеет приоритет над неоднозначностью префикса
          (важно для схем с идентификаторами переменной длины).
        - Сравнение регистрозависимое, побайтовое (str.startswith).
        - Дубликаты во вселенной схлопываются до подсчёта совпадений.
    """
    label = kind_label(kind)
    if not prefix:
        raise ValidationError(f"{label} ID prefix must not be empty", field="prefix")

    try:
        universe = {str(item) for item in lister() if item}
    except Exception as exc:
        raise UpstreamError(prefix, label, exc) from exc

    if prefix in universe:
        return prefix

    matches = sorted(identifier for identifier in universe if identifier.startswith(prefix))
    if not matches:
        raise NotFoundError(prefix, label)
    if len(matches) > 1:
        raise AmbiguousPrefixError(prefix, label, matches)
    return matches[0]


__all__ = ["kind_label", "resolve_prefix"]
