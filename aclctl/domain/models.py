from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ResourceKind(str, Enum):
    """
    Назначение:
        Вид ACL-ресурса, идентификаторы которого разрешаются по префиксу.
    """

    POLICY = "policy"
    TOKEN = "token"
    ROLE = "role"


def _str_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _int_or_zero(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(value)


@dataclass(frozen=True)
class ACLTokenPolicyLink:
    """
    Назначение:
        Ссылка токена на политику: по ID или по имени.

    Инварианты:
        - Для запроса на создание заполняется ровно одно из полей.
        - В ответе сервера обычно заполнены оба.
    """
    id: str = ""
    name: str = ""

    def to_api(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.id:
            payload["ID"] = self.id
        if self.name:
            payload["Name"] = self.name
        return payload

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ACLTokenPolicyLink":
        return cls(id=_str_or_empty(data.get("ID")), name=_str_or_empty(data.get("Name")))


@dataclass(frozen=True)
class ACLTokenCreateRequest:
    """
    Назначение:
        Тело запроса на создание токена (PUT /v1/acl/token).
    """
    description: str = ""
    local: bool = False
    policies: tuple[ACLTokenPolicyLink, ...] = ()

    def to_api(self) -> dict[str, Any]:
        return {
            "Description": self.description,
            "Local": self.local,
            "Policies": [link.to_api() for link in self.policies],
        }


@dataclass(frozen=True)
class ACLToken:
    """
    Назначение:
        Созданный/прочитанный токен в том виде, в каком его вернул сервер.

    Поля:
        hash: base64-строка из ответа (как есть)
    """
    accessor_id: str
    secret_id: str
    description: str = ""
    local: bool = False
    create_time: str = ""
    hash: str = ""
    create_index: int = 0
    modify_index: int = 0
    policies: tuple[ACLTokenPolicyLink, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ACLToken":
        return cls(
            accessor_id=_str_or_empty(data.get("AccessorID")),
            secret_id=_str_or_empty(data.get("SecretID")),
            description=_str_or_empty(data.get("Description")),
            local=bool(data.get("Local", False)),
            create_time=_str_or_empty(data.get("CreateTime")),
            hash=_str_or_empty(data.get("Hash")),
            create_index=_int_or_zero(data.get("CreateIndex")),
            modify_index=_int_or_zero(data.get("ModifyIndex")),
            policies=tuple(
                ACLTokenPolicyLink.from_api(item)
                for item in (data.get("Policies") or [])
                if isinstance(item, Mapping)
            ),
        )


@dataclass(frozen=True)
class ACLPolicyListEntry:
    id: str
    name: str = ""
    description: str = ""
    datacenters: tuple[str, ...] = ()
    create_index: int = 0
    modify_index: int = 0

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ACLPolicyListEntry":
        return cls(
            id=_str_or_empty(data.get("ID")),
            name=_str_or_empty(data.get("Name")),
            description=_str_or_empty(data.get("Description")),
            datacenters=tuple(str(dc) for dc in (data.get("Datacenters") or [])),
            create_index=_int_or_zero(data.get("CreateIndex")),
            modify_index=_int_or_zero(data.get("ModifyIndex")),
        )


@dataclass(frozen=True)
class ACLTokenListEntry:
    accessor_id: str
    description: str = ""
    local: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ACLTokenListEntry":
        return cls(
            accessor_id=_str_or_empty(data.get("AccessorID")),
            description=_str_or_empty(data.get("Description")),
            local=bool(data.get("Local", False)),
        )


@dataclass(frozen=True)
class ACLRoleListEntry:
    id: str
    name: str = ""
    description: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ACLRoleListEntry":
        return cls(
            id=_str_or_empty(data.get("ID")),
            name=_str_or_empty(data.get("Name")),
            description=_str_or_empty(data.get("Description")),
        )


__all__ = [
    "ResourceKind",
    "ACLTokenPolicyLink",
    "ACLTokenCreateRequest",
    "ACLToken",
    "ACLPolicyListEntry",
    "ACLTokenListEntry",
    "ACLRoleListEntry",
]
