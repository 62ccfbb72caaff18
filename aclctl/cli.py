from __future__ import annotations

import logging

import httpx
import typer
import yaml

from aclctl.common.run_id import generate_run_id
from aclctl.common.sanitize import maskSecret, truncateText
from aclctl.config import Settings, load_settings
from aclctl.domain.exceptions import AmbiguousPrefixError, NotFoundError, UpstreamError, ValidationError
from aclctl.infra.acl.consul_gateway import ConsulAclGateway
from aclctl.infra.http.consul_client import ApiError, ConsulApiClient, buildBaseUrl
from aclctl.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent
from aclctl.infra.output.token_printer import formatToken
from aclctl.usecases.token_create_usecase import TokenCreateOptions, TokenCreateUseCase

app = typer.Typer(no_args_is_help=True, add_completion=False)
aclApp = typer.Typer(no_args_is_help=True, help="Interact with the ACL system")
tokenApp = typer.Typer(no_args_is_help=True, help="Manage ACL tokens")

# Сколько кандидатов печатать при неоднозначном префиксе.
AMBIGUOUS_CANDIDATES_SHOWN = 10

TOKEN_CREATE_HELP = """
Create an ACL Token.

When creating a new token policies may be linked using either the --policy-id
or the --policy-name options. When specifying policies by IDs you may use a
unique prefix of the UUID as a shortcut for specifying the entire UUID.

Example:

    aclctl acl token create --description "Replication token" --policy-id b52fc3de-5 --policy-name "acl-replication"
"""


def buildApiClient(settings: Settings, transport: httpx.BaseTransport | None = None) -> ConsulApiClient:
    """
    Назначение:
        Создаёт HTTP-клиент агента из итоговых настроек.

    Ошибки:
        ValueError при неподдерживаемом адресе агента.
    """
    return ConsulApiClient(
        baseUrl=buildBaseUrl(settings.http_addr, settings.http_ssl),
        token=settings.token,
        datacenter=settings.datacenter,
        stale=settings.stale,
        timeoutSeconds=settings.timeout_seconds,
        tlsSkipVerify=settings.tls_skip_verify,
        caFile=settings.ca_file,
        clientCert=settings.client_cert,
        clientKey=settings.client_key,
        retries=settings.retries,
        retryBackoffSeconds=settings.retry_backoff_seconds,
        transport=transport,
    )


def logRunHeader(logger: logging.Logger, runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Пишет в лог безопасную сводку параметров запуска (без секретов).
    """
    logEvent(
        logger,
        logging.INFO,
        runId,
        "core",
        f"command={command} http_addr={settings.http_addr} datacenter={settings.datacenter} "
        f"token={maskSecret(settings.token)} sources={sources}",
    )


def runWithLogger(ctx: typer.Context, commandName: str, runner) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер (+ файл лога, если задан log_dir)
        - пишет сводку запуска
        - переводит код возврата runner в typer.Exit
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    logger, _logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    exitCode: int | None = None
    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        logRunHeader(logger, runId, commandName, settings, sources)
        exitCode = runner(logger)
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
    finally:
        closeCommandLogger(logger)

    if exitCode:
        raise typer.Exit(code=exitCode)


def reportResolveError(exc: NotFoundError | AmbiguousPrefixError | UpstreamError) -> None:
    """Печатает ошибку разрешения ID политики в stderr (для каждого вида своя)."""
    typer.echo(f"ERROR: Error resolving policy ID {exc.prefix}: {exc}", err=True)
    if isinstance(exc, AmbiguousPrefixError):
        for candidate in exc.candidates[:AMBIGUOUS_CANDIDATES_SHOWN]:
            typer.echo(f"  candidate: {candidate}", err=True)
        hidden = exc.count - AMBIGUOUS_CANDIDATES_SHOWN
        if hidden > 0:
            typer.echo(f"  ... and {hidden} more", err=True)


def runTokenCreateCommand(ctx: typer.Context, options: TokenCreateOptions, apiTransport=None) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger) -> int:
        # Проверка до подключения к агенту: без политик запрос не строим.
        try:
            options.validate()
        except ValidationError as exc:
            typer.echo(f"ERROR: {exc}", err=True)
            return 1

        try:
            client = buildApiClient(settings, apiTransport)
        except (ValueError, OSError, httpx.InvalidURL) as exc:
            logEvent(logger, logging.ERROR, runId, "api", f"Client setup failed: {exc}")
            typer.echo(f"ERROR: Error connecting to Consul agent: {exc}", err=True)
            return 1

        try:
            usecase = TokenCreateUseCase(ConsulAclGateway(client), logger=logger, run_id=runId)
            try:
                token = usecase.run(options)
            except ValidationError as exc:
                typer.echo(f"ERROR: {exc}", err=True)
                return 1
            except (NotFoundError, AmbiguousPrefixError, UpstreamError) as exc:
                logEvent(logger, logging.ERROR, runId, "resolve", f"{exc.code}: {exc}")
                reportResolveError(exc)
                return 1
            except ApiError as exc:
                logEvent(logger, logging.ERROR, runId, "api", f"Token create failed: {exc.error_code.value} {exc}")
                typer.echo(f"ERROR: Failed to create new token: {truncateText(str(exc))}", err=True)
                return 1

            for line in formatToken(token, options.show_meta):
                typer.echo(line)
            return 0
        finally:
            client.close()

    runWithLogger(ctx=ctx, commandName="acl-token-create", runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for log files. No file logging if omitted."),
    httpAddr: str | None = typer.Option(None, "--http-addr", help="Address of the agent (host:port or URL)"),
    token: str | None = typer.Option(None, "--token", help="ACL token to use in the request (avoid; use env/file)"),
    tokenFile: str | None = typer.Option(None, "--token-file", help="File containing the ACL token"),
    datacenter: str | None = typer.Option(None, "--datacenter", help="Name of the datacenter to query"),
    stale: bool = typer.Option(False, "--stale", help="Permit any server to answer read requests"),
    httpSsl: bool = typer.Option(False, "--http-ssl", help="Use HTTPS when --http-addr has no scheme"),
    tlsSkipVerify: bool = typer.Option(False, "--tls-skip-verify", help="Disable TLS verification"),
    caFile: str | None = typer.Option(None, "--ca-file", help="CA file path"),
    clientCert: str | None = typer.Option(None, "--client-cert", help="Client certificate file"),
    clientKey: str | None = typer.Option(None, "--client-key", help="Client key file"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for idempotent API calls"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    # Флаги без --no-* варианта: перекрывают env/config только когда включены.
    cliOverrides = {
        "http_addr": httpAddr,
        "token": token,
        "token_file": tokenFile,
        "datacenter": datacenter,
        "stale": stale or None,
        "http_ssl": httpSsl or None,
        "tls_skip_verify": tlsSkipVerify or None,
        "ca_file": caFile,
        "client_cert": clientCert,
        "client_key": clientKey,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
        "log_level": logLevel,
        "log_dir": logDir,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except (ValueError, yaml.YAMLError) as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@tokenApp.command("create", help=TOKEN_CREATE_HELP)
def tokenCreate(
    ctx: typer.Context,
    policyId: list[str] | None = typer.Option(
        None, "--policy-id", help="ID of a policy to use for this token. May be specified multiple times"
    ),
    policyName: list[str] | None = typer.Option(
        None, "--policy-name", help="Name of a policy to use for this token. May be specified multiple times"
    ),
    description: str = typer.Option("", "--description", help="A description of the token"),
    local: bool = typer.Option(False, "--local", help="Create this as a datacenter local token"),
    meta: bool = typer.Option(
        False,
        "--meta",
        help="Show token metadata such as the content hash and raft indices",
    ),
):
    options = TokenCreateOptions(
        policy_ids=tuple(policyId or ()),
        policy_names=tuple(policyName or ()),
        description=description,
        local=local,
        show_meta=meta,
    )
    runTokenCreateCommand(ctx, options)


aclApp.add_typer(tokenApp, name="token")
app.add_typer(aclApp, name="acl")
