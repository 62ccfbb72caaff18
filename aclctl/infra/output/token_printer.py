from __future__ import annotations

import base64
import binascii

from aclctl.domain.models import ACLToken


def formatHash(value: str) -> str:
    """
    Назначение:
        Hash приходит в JSON как base64; печатаем его в hex.
        Невалидный base64 выводится как есть.
    """
    if not value:
        return ""
    try:
        return base64.b64decode(value, validate=True).hex()
    except (binascii.Error, ValueError):
        return value


def formatToken(token: ACLToken, showMeta: bool = False) -> list[str]:
    """
    Назначение:
        Текстовое представление токена построчно.

    Выходные данные:
        list[str]
            AccessorID/SecretID/Description/Local/Create Time,
            при showMeta — Hash/Create Index/Modify Index,
            затем список политик "   <id> - <name>".
    """
    lines = [
        f"AccessorID:   {token.accessor_id}",
        f"SecretID:     {token.secret_id}",
        f"Description:  {token.description}",
        f"Local:        {'true' if token.local else 'false'}",
        f"Create Time:  {token.create_time}",
    ]
    if showMeta:
        lines.extend(
            [
                f"Hash:         {formatHash(token.hash)}",
                f"Create Index: {token.create_index}",
                f"Modify Index: {token.modify_index}",
            ]
        )
    lines.append("Policies:")
    for policy in token.policies:
        lines.append(f"   {policy.id} - {policy.name}")
    return lines
