from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

from aclctl.infra.logging.setup import mapLogLevel


@dataclass(frozen=True)
class Settings:
    # API
    http_addr: str = "127.0.0.1:8500"
    token: str | None = None
    token_file: str | None = None
    datacenter: str | None = None
    stale: bool = False

    # TLS
    http_ssl: bool = False
    tls_skip_verify: bool = False
    ca_file: str | None = None
    client_cert: str | None = None
    client_key: str | None = None

    # HTTP behaviour
    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5

    # Logging
    log_level: str = "INFO"
    log_dir: str | None = None


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


# Имя поля Settings -> переменная окружения.
ENV_VARS: dict[str, str] = {
    "http_addr": "CONSUL_HTTP_ADDR",
    "token": "CONSUL_HTTP_TOKEN",
    "token_file": "CONSUL_HTTP_TOKEN_FILE",
    "datacenter": "CONSUL_DATACENTER",
    "http_ssl": "CONSUL_HTTP_SSL",
    "ca_file": "CONSUL_CACERT",
    "client_cert": "CONSUL_CLIENT_CERT",
    "client_key": "CONSUL_CLIENT_KEY",
    "log_level": "ACLCTL_LOG_LEVEL",
    "log_dir": "ACLCTL_LOG_DIR",
}

# CONSUL_HTTP_SSL_VERIFY=false означает tls_skip_verify=true
SSL_VERIFY_ENV = "CONSUL_HTTP_SSL_VERIFY"

BOOL_FIELDS = ("stale", "http_ssl", "tls_skip_verify")
INT_FIELDS = ("retries",)
FLOAT_FIELDS = ("timeout_seconds", "retry_backoff_seconds")


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def parse_bool(v: str | bool | None) -> bool | None:
    if v is None or isinstance(v, bool):
        return v
    vv = str(v).strip().lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


def read_token_file(path: str) -> str:
    """
    Назначение:
        Читает ACL-токен из файла (первая непустая строка без пробелов по краям).
    Ошибки:
        ValueError, если файл отсутствует.
    """
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise ValueError(f"token file not found: {path}")
    return p.read_text(encoding="utf-8").strip()


def _coerce(name: str, value):
    if value is None:
        return None
    if name in BOOL_FIELDS:
        return parse_bool(value)
    if name in INT_FIELDS:
        return int(value)
    if name in FLOAT_FIELDS:
        return float(value)
    return value


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults

    Токен из token_file подставляется, только если сам token не задан ни одним источником.
    """
    sources: list[str] = []
    defaults = Settings()
    known = set(Settings.__dataclass_fields__)

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {name: _env_get(var) for name, var in ENV_VARS.items()}
    ssl_verify = _env_get(SSL_VERIFY_ENV)
    if ssl_verify is not None:
        env["tls_skip_verify"] = str(not parse_bool(ssl_verify))
    if any(v is not None for v in env.values()):
        sources.append("env")

    # merge config -> env -> cli
    merged = {name: getattr(defaults, name) for name in known}
    for name, value in cfg.items():
        if name in known and value is not None:
            merged[name] = _coerce(name, value)

    for name, value in env.items():
        if value is not None:
            merged[name] = _coerce(name, value)

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = _coerce(k, v)

    # --token-file из CLI сильнее токена из env/config
    if cli_overrides.get("token_file") and not cli_overrides.get("token"):
        merged["token"] = None
    if not merged["token"] and merged["token_file"]:
        merged["token"] = read_token_file(merged["token_file"])

    # Неизвестный уровень логирования отклоняем до запуска команды.
    mapLogLevel(merged["log_level"])

    settings = Settings(**merged)
    return LoadedSettings(settings=settings, sources_used=sources)
