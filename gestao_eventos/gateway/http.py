from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from ..core.errors import TransportError, map_error
from ..core.logging import log_action

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_ALIASES = (TRACE_HEADER, "X-Trace-Id", "x-trace-id", "sb-request-id")

Params = list[tuple[str, str]]


@dataclass
class TraceContext:
    trace_id: str | None = None

    def ensure(self) -> str:
        if not self.trace_id:
            self.trace_id = str(uuid.uuid4())
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        for key in TRACE_HEADER_ALIASES:
            trace_id = headers.get(key)
            if trace_id:
                self.trace_id = trace_id
                return


@dataclass
class HttpClient:
    base_url: str
    default_headers: dict[str, str] = field(default_factory=dict)
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 2
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    session: requests.Session | None = None
    trace: TraceContext | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(pool_connections=self.max_connections, pool_maxsize=self.max_connections)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        base = self.base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        params: Params | None = None,
        operation: str = "unknown",
    ) -> Any:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        request_headers.update(self.default_headers)
        if headers:
            request_headers.update(headers)
        trace_context = self.trace or TraceContext()
        request_headers[TRACE_HEADER] = trace_context.ensure()

        normalized_method = method.upper()
        url = self._build_url(path)
        # Only reads are replayed; a write is never sent twice.
        attempts = self.retries + 1 if normalized_method in {"GET", "HEAD"} else 1

        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.connect_timeout_seconds, self.read_timeout_seconds),
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=trace_context.trace_id,
                        status_code=0,
                    ) from exc
                reason = type(exc).__name__
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
                reason = f"http_{response.status_code}"
            log_action(
                logger,
                module="http",
                action=operation,
                outcome="retry",
                attempt=attempt + 1,
                reason=reason,
                trace_id=trace_context.trace_id,
            )
            time.sleep(self.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request finished without a response")

        trace_context.update_from_headers(response.headers)
        duration_ms = int((time.monotonic() - started) * 1000)
        if response.ok:
            log_action(
                logger,
                module="http",
                action=operation,
                outcome="success",
                status_code=response.status_code,
                duration_ms=duration_ms,
                trace_id=trace_context.trace_id,
            )
            if not response.content:
                return None
            return response.json()

        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"message": response.text}
        log_action(
            logger,
            module="http",
            action=operation,
            outcome="error",
            status_code=response.status_code,
            duration_ms=duration_ms,
            trace_id=trace_context.trace_id,
        )
        raise map_error(response.status_code, payload if isinstance(payload, dict) else {}, trace_context.trace_id)
