from __future__ import annotations

from aclctl.domain.models import ResourceKind
from aclctl.domain.ports.acl_api import AclGatewayProtocol
from aclctl.domain.resolution import resolve_prefix

ANONYMOUS_TOKEN_ALIAS = "anonymous"
ANONYMOUS_TOKEN_ID = "00000000-0000-0000-0000-000000000002"


def get_policy_id_from_partial(gateway: AclGatewayProtocol, partial_id: str) -> str:
    """
    Назначение:
        Разрешает полный или частичный ID политики через список политик.
    """
    return resolve_prefix(
        partial_id,
        lambda: [policy.id for policy in gateway.list_policies()],
        ResourceKind.POLICY,
    )


def get_token_id_from_partial(gateway: AclGatewayProtocol, partial_id: str) -> str:
    """
    Назначение:
        Разрешает AccessorID токена по префиксу.
    Контракт:
        - Литерал "anonymous" возвращает AccessorID анонимного токена без запроса списка.
    """
    if partial_id == ANONYMOUS_TOKEN_ALIAS:
        return ANONYMOUS_TOKEN_ID
    return resolve_prefix(
        partial_id,
        lambda: [token.accessor_id for token in gateway.list_tokens()],
        ResourceKind.TOKEN,
    )


def get_role_id_from_partial(gateway: AclGatewayProtocol, partial_id: str) -> str:
    return resolve_prefix(
        partial_id,
        lambda: [role.id for role in gateway.list_roles()],
        ResourceKind.ROLE,
    )


__all__ = [
    "ANONYMOUS_TOKEN_ID",
    "get_policy_id_from_partial",
    "get_token_id_from_partial",
    "get_role_id_from_partial",
]
