from __future__ import annotations

import ssl
import time
from typing import Any

import httpx

from aclctl.domain.error_codes import ErrorCode
from aclctl.errors import AppError

DEFAULT_HTTP_ADDR = "127.0.0.1:8500"


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня ConsulApiClient.
        Контракт:
            - code: строковый код (HTTP_*, NETWORK_ERROR, INVALID_JSON, INVALID_RESPONSE).
            - status_code/body_snippet используются для диагностики.
        """
        super().__init__(
            category="api",
            code=code or (f"HTTP_{status_code}" if status_code else ErrorCode.API_ERROR.value),
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet

    @property
    def error_code(self) -> ErrorCode:
        """Общий код по статусу (UNAUTHORIZED/FORBIDDEN/...)."""
        if self.code in (ErrorCode.NETWORK_ERROR.value, ErrorCode.INVALID_JSON.value, ErrorCode.INVALID_RESPONSE.value):
            return ErrorCode(self.code)
        return ErrorCode.from_status(self.status_code)


def buildBaseUrl(httpAddr: str | None, useSsl: bool = False) -> str:
    """
    Назначение:
        Нормализует адрес агента в base URL.

    Алгоритм:
        - Пустой адрес -> 127.0.0.1:8500.
        - unix:// не поддерживается (ValueError).
        - Без схемы добавляется http:// или https:// (useSsl).
    """
    addr = (httpAddr or "").strip() or DEFAULT_HTTP_ADDR
    if addr.startswith("unix://"):
        raise ValueError(f"Unix socket addresses are not supported: {addr}")
    if "://" not in addr:
        addr = f"{'https' if useSsl else 'http'}://{addr}"
    return addr.rstrip("/")


def buildSslContext(
    tlsSkipVerify: bool = False,
    caFile: str | None = None,
    clientCert: str | None = None,
    clientKey: str | None = None,
) -> ssl.SSLContext | bool:
    """
    Назначение:
        Значение verify для httpx.Client.

    Алгоритм:
        - Без CA-файла и клиентского сертификата -> True/False (настройки httpx по умолчанию).
        - Иначе SSLContext с CA-файлом и/или цепочкой клиентского сертификата.

    Ошибки:
        OSError/ssl.SSLError, если файлы сертификатов не читаются.
    """
    if not caFile and not clientCert:
        return not tlsSkipVerify

    context = ssl.create_default_context(cafile=caFile)
    if tlsSkipVerify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if clientCert:
        context.load_cert_chain(certfile=clientCert, keyfile=clientKey)
    return context


class ConsulApiClient:
    def __init__(
        self,
        baseUrl: str,
        token: str | None = None,
        datacenter: str | None = None,
        stale: bool = False,
        timeoutSeconds: float = 20.0,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        clientCert: str | None = None,
        clientKey: str | None = None,
        retries: int = 3,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            Клиент HTTP API агента с простой политикой ретраев.
        Контракт:
            - token передаётся заголовком X-Consul-Token, если задан.
            - datacenter/stale добавляются query-параметрами dc/stale к каждому запросу.
            - retries/retryBackoffSeconds управляют повторными попытками (429/5xx/сеть).
        """
        verify = buildSslContext(tlsSkipVerify, caFile, clientCert, clientKey)

        self.baseUrl = baseUrl.rstrip("/")
        self.token = token
        self.datacenter = datacenter
        self.stale = stale
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            verify=verify,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def resetRetryAttempts(self) -> None:
        """Сбрасывает счётчик retry_attempts."""
        self.retry_attempts = 0

    def getRetryAttempts(self) -> int:
        """Возвращает количество выполненных повторных попыток."""
        return self.retry_attempts

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self.token:
            headers["X-Consul-Token"] = self.token
        return headers

    def _query(self, params: dict[str, Any] | None) -> dict[str, Any]:
        """Query-параметры запроса + dc/stale из настроек клиента."""
        query = dict(params or {})
        if self.datacenter:
            query.setdefault("dc", self.datacenter)
        if self.stale:
            query.setdefault("stale", "")
        return query

    def _should_retry(self, resp: httpx.Response) -> bool:
        """Решает, стоит ли повторить запрос (429 или 5xx)."""
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int) -> None:
        """Задержка с экспоненциальным ростом для ретраев."""
        delay = self.retryBackoffSeconds * (2 ** attempt)
        time.sleep(delay)

    def _request_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        jsonBody: Any | None = None,
        allowRetry: bool = True,
    ) -> httpx.Response:
        """Запрос с ретраями по 429/5xx и сетевым ошибкам; не-2xx -> ApiError."""
        maxRetries = self.retries if allowRetry else 0
        attempt = 0
        while True:
            try:
                resp = self.client.request(
                    method,
                    path,
                    params=self._query(params),
                    headers=self._headers(),
                    json=jsonBody,
                )
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= maxRetries:
                    raise ApiError(
                        f"Network error: {exc}",
                        status_code=None,
                        retryable=False,
                        code=ErrorCode.NETWORK_ERROR.value,
                    ) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if 200 <= resp.status_code <= 299:
                return resp

            if self._should_retry(resp) and attempt < maxRetries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            body_snippet = resp.text[:200] if resp.text else None
            message = f"Unexpected response code: {resp.status_code}"
            if body_snippet:
                message = f"{message} ({body_snippet.strip()})"
            raise ApiError(
                message,
                status_code=resp.status_code,
                body_snippet=body_snippet,
                retryable=self._should_retry(resp),
                details={"body_snippet": body_snippet},
            )

    def _parse_json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response",
                status_code=resp.status_code,
                retryable=False,
                code=ErrorCode.INVALID_JSON.value,
            ) from exc

    def getJson(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET JSON с ретраями, парсит ответ или бросает ApiError."""
        resp = self._request_with_retry("GET", path, params=params)
        return self._parse_json(resp)

    def requestJson(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        jsonBody: Any | None = None,
        allowRetry: bool = True,
    ) -> tuple[int, Any]:
        """
        Универсальный JSON-запрос с ретраями.
        allowRetry=False для неидемпотентных операций (создание токена).
        Возвращает (status_code, json|None) или бросает ApiError.
        """
        resp = self._request_with_retry(
            method.upper(), path, params=params, jsonBody=jsonBody, allowRetry=allowRetry
        )
        if not resp.content:
            return resp.status_code, None
        return resp.status_code, self._parse_json(resp)
