from __future__ import annotations

import logging
from dataclasses import dataclass

from aclctl.common.sanitize import maskSecret
from aclctl.domain.exceptions import ValidationError
from aclctl.domain.models import ACLToken, ACLTokenCreateRequest, ACLTokenPolicyLink
from aclctl.domain.ports.acl_api import AclGatewayProtocol
from aclctl.infra.logging.setup import logEvent
from aclctl.usecases.partial_ids import get_policy_id_from_partial


@dataclass(frozen=True)
class TokenCreateOptions:
    """
    Назначение:
        Неизменяемый набор параметров команды `acl token create`.

    Поля:
        policy_ids: полные ID политик или их уникальные префиксы
        policy_names: имена политик (разрешаются сервером)
        description: описание токена
        local: токен локален для датацентра
        show_meta: печатать hash и raft-индексы
    """
    policy_ids: tuple[str, ...] = ()
    policy_names: tuple[str, ...] = ()
    description: str = ""
    local: bool = False
    show_meta: bool = False

    def validate(self) -> None:
        """ValidationError, если не задано ни одной политики (ни по ID, ни по имени)."""
        if not self.policy_names and not self.policy_ids:
            raise ValidationError(
                "Cannot create a token without specifying -policy-name or -policy-id at least once",
                field="policies",
            )


class TokenCreateUseCase:
    """
    Назначение/ответственность:
        Сборка запроса на создание токена и единственный вызов create.
    Взаимодействия:
        - gateway: AclGatewayProtocol (внедряется снаружи, без глобального клиента)
        - ID политик разрешаются через get_policy_id_from_partial
    Ограничения:
        - Дубликаты ссылок (одна политика по ID и по имени) передаются как есть.
        - Любая ошибка разрешения прерывает команду до обращения к create.
    """

    def __init__(self, gateway: AclGatewayProtocol, logger: logging.Logger | None = None, run_id: str = "-"):
        self.gateway = gateway
        self.logger = logger or logging.getLogger("aclctl.token_create")
        self.run_id = run_id

    def build_request(self, options: TokenCreateOptions) -> ACLTokenCreateRequest:
        """
        Контракт (вход/выход):
            Вход: TokenCreateOptions.
            Выход: ACLTokenCreateRequest; сначала ссылки по имени, затем по ID.
        Ошибки/исключения:
            ValidationError, если не задано ни одной политики;
            NotFoundError/AmbiguousPrefixError/UpstreamError из резолвера.
        """
        options.validate()

        links: list[ACLTokenPolicyLink] = []
        for policy_name in options.policy_names:
            # Имена не разрешаем: агент сделает это сам.
            links.append(ACLTokenPolicyLink(name=policy_name))

        for partial_id in options.policy_ids:
            policy_id = get_policy_id_from_partial(self.gateway, partial_id)
            if policy_id != partial_id:
                logEvent(self.logger, logging.DEBUG, self.run_id, "resolve", f"policy id {partial_id} -> {policy_id}")
            links.append(ACLTokenPolicyLink(id=policy_id))

        return ACLTokenCreateRequest(
            description=options.description,
            local=options.local,
            policies=tuple(links),
        )

    def run(self, options: TokenCreateOptions) -> ACLToken:
        request = self.build_request(options)
        logEvent(
            self.logger,
            logging.INFO,
            self.run_id,
            "api",
            f"creating token local={request.local} policies={len(request.policies)}",
        )
        token = self.gateway.create_token(request)
        logEvent(
            self.logger,
            logging.INFO,
            self.run_id,
            "api",
            f"token created accessor_id={token.accessor_id} secret_id={maskSecret(token.secret_id)}",
        )
        return token


__all__ = ["TokenCreateOptions", "TokenCreateUseCase"]
