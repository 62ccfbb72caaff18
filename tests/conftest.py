from __future__ import annotations

import pytest

from aclctl.config import ENV_VARS, SSL_VERIFY_ENV


@pytest.fixture(autouse=True)
def clean_consul_env(monkeypatch):
    for name in [*ENV_VARS.values(), SSL_VERIFY_ENV]:
        monkeypatch.delenv(name, raising=False)
