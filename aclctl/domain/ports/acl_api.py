from __future__ import annotations

from typing import Callable, Iterable, Protocol, runtime_checkable

from aclctl.domain.models import (
    ACLPolicyListEntry,
    ACLRoleListEntry,
    ACLToken,
    ACLTokenCreateRequest,
    ACLTokenListEntry,
)

# Источник вселенной идентификаторов: вызывается один раз на каждое разрешение.
IdentifierLister = Callable[[], Iterable[str]]


@runtime_checkable
class AclGatewayProtocol(Protocol):
    """
    Назначение:
        Порт доступа к ACL API целевой системы.
    Взаимодействия:
        Use-case и хелперы разрешения префиксов зависят только от протокола;
        реализации скрывают транспорт и формат ответа.
    """

    def list_policies(self) -> list[ACLPolicyListEntry]: ...
    def list_tokens(self) -> list[ACLTokenListEntry]: ...
    def list_roles(self) -> list[ACLRoleListEntry]: ...
    def create_token(self, request: ACLTokenCreateRequest) -> ACLToken: ...


__all__ = ["IdentifierLister", "AclGatewayProtocol"]
