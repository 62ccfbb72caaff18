from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from aclctl.domain.error_codes import ErrorCode
from aclctl.domain.models import (
    ACLPolicyListEntry,
    ACLRoleListEntry,
    ACLToken,
    ACLTokenCreateRequest,
    ACLTokenListEntry,
)
from aclctl.domain.ports.acl_api import AclGatewayProtocol
from aclctl.infra.http.consul_client import ApiError, ConsulApiClient

T = TypeVar("T")

POLICIES_PATH = "/v1/acl/policies"
TOKENS_PATH = "/v1/acl/tokens"
ROLES_PATH = "/v1/acl/roles"
TOKEN_CREATE_PATH = "/v1/acl/token"


class ConsulAclGateway(AclGatewayProtocol):
    """
    Назначение/ответственность:
        Адаптер ACL-эндпоинтов поверх ConsulApiClient.
    Взаимодействия:
        Возвращает доменные модели; ошибки транспорта пробрасывает как ApiError.
    Ограничения:
        - Списки читаются целиком одним запросом (API не пагинирует ACL-списки).
        - Создание токена выполняется без ретраев.
    """

    def __init__(self, client: ConsulApiClient):
        self.client = client

    def _list(self, path: str, factory: Callable[[Mapping[str, Any]], T]) -> list[T]:
        data = self.client.getJson(path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiError(
                f"Unexpected response format from {path}: expected a list",
                code=ErrorCode.INVALID_RESPONSE.value,
            )
        return [factory(item) for item in data if isinstance(item, Mapping)]

    def list_policies(self) -> list[ACLPolicyListEntry]:
        return self._list(POLICIES_PATH, ACLPolicyListEntry.from_api)

    def list_tokens(self) -> list[ACLTokenListEntry]:
        return self._list(TOKENS_PATH, ACLTokenListEntry.from_api)

    def list_roles(self) -> list[ACLRoleListEntry]:
        return self._list(ROLES_PATH, ACLRoleListEntry.from_api)

    def create_token(self, request: ACLTokenCreateRequest) -> ACLToken:
        """
        Назначение:
            PUT /v1/acl/token и разбор созданного токена.
        Ошибки/исключения:
            ApiError при сетевой ошибке, не-2xx статусе или ответе не-объекте.
        """
        _status, data = self.client.requestJson(
            "PUT",
            TOKEN_CREATE_PATH,
            jsonBody=request.to_api(),
            allowRetry=False,
        )
        if not isinstance(data, Mapping):
            raise ApiError(
                "Unexpected response format from token create: expected an object",
                code=ErrorCode.INVALID_RESPONSE.value,
            )
        return ACLToken.from_api(data)


__all__ = ["ConsulAclGateway"]
