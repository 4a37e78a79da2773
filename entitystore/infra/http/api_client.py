from __future__ import annotations

import time
from typing import Any

import httpx

from entitystore.common.sanitize import truncateText
from entitystore.domain.error_codes import ErrorCode
from entitystore.errors import AppError

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class ApiError(AppError):
    """
    Назначение:
        Ошибка источника истины. Доставляется вызывающему через Future,
        а не бросается из refresh/find синхронно.

    Контракт:
        - code: HTTP_<status> для ответов сервера, иначе NETWORK_ERROR,
          INVALID_JSON, INVALID_PAYLOAD или API_ERROR.
        - body_snippet: начало тела ответа (не длиннее truncateText).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        if code is None:
            code = f"HTTP_{status_code}" if status_code else ErrorCode.API_ERROR.value
        super().__init__(category="api", code=code, message=message, retryable=retryable, details=details or {})
        self.status_code = status_code
        self.body_snippet = body_snippet

    @classmethod
    def from_response(cls, method: str, path: str, resp: httpx.Response) -> "ApiError":
        snippet = truncateText(resp.text) if resp.text else None
        if resp.status_code == 404:
            message = f"Resource not found on server: {method} {path}"
        else:
            message = f"HTTP {resp.status_code} on {method} {path}"
        return cls(
            message,
            status_code=resp.status_code,
            body_snippet=snippet,
            retryable=resp.status_code in RETRYABLE_STATUSES,
            details={"method": method, "path": path, "body_snippet": snippet},
        )

    @property
    def error_code(self) -> ErrorCode:
        if self.status_code is not None:
            return ErrorCode.from_status(self.status_code)
        try:
            return ErrorCode(self.code)
        except ValueError:
            return ErrorCode.API_ERROR


class StoreApiClient:
    """
    Назначение/ответственность:
        Синхронный httpx-клиент источника истины.

    Контракт:
        - apiToken уходит заголовком Authorization: Bearer.
        - 429/5xx и сетевые ошибки повторяются до retries раз с задержкой
          retryBackoffSeconds * 2**attempt; остальные не-2xx сразу -> ApiError.
        - transport подменяется в тестах (httpx.MockTransport).
    """

    def __init__(
        self,
        baseUrl: str,
        apiToken: str | None = None,
        timeoutSeconds: float = 20.0,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        retries: int = 3,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        self.baseUrl = baseUrl.rstrip("/")
        self.retries = max(0, retries)
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        headers = {"accept": "application/json"}
        if apiToken:
            headers["Authorization"] = f"Bearer {apiToken}"

        self.client = httpx.Client(
            base_url=self.baseUrl,
            headers=headers,
            timeout=timeoutSeconds,
            verify=False if tlsSkipVerify else (caFile or True),
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def getRetryAttempts(self) -> int:
        return self.retry_attempts

    def _backoff(self, attempt: int) -> None:
        self.retry_attempts += 1
        if self.retryBackoffSeconds > 0:
            time.sleep(self.retryBackoffSeconds * (2 ** attempt))

    def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        for attempt in range(self.retries + 1):
            lastAttempt = attempt == self.retries
            try:
                resp = self.client.get(path, params=params)
            except httpx.TransportError as exc:
                if lastAttempt:
                    raise ApiError(
                        f"Network error on GET {path}: {exc}",
                        retryable=True,
                        details={"method": "GET", "path": path},
                        code=ErrorCode.NETWORK_ERROR.value,
                    ) from exc
                self._backoff(attempt)
                continue

            if resp.is_success:
                return resp
            if resp.status_code in RETRYABLE_STATUSES and not lastAttempt:
                self._backoff(attempt)
                continue
            raise ApiError.from_response("GET", path, resp)
        raise AssertionError("unreachable")

    def getJson(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = self._get(path, dict(params or {}))
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                f"Invalid JSON response on GET {path}",
                status_code=resp.status_code,
                body_snippet=truncateText(resp.text),
                code=ErrorCode.INVALID_JSON.value,
            ) from exc


__all__ = ["ApiError", "RETRYABLE_STATUSES", "StoreApiClient"]
