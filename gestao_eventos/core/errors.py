from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

# PostgREST answers a single-object request that matched no rows with this code.
NO_ROWS_CODE = "PGRST116"


@dataclass
class GatewayError(Exception):
    code: str
    message: str
    details: object | None = None
    trace_id: str | None = None
    status_code: int = 0
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class AuthError(GatewayError):
    """Authentication failed or session is invalid."""


class PermissionDeniedError(GatewayError):
    """Row level security or role policy denied the request."""


class NotFoundError(GatewayError):
    pass


class RequestValidationError(GatewayError):
    """400/422 rejections, including check constraint violations."""


class ConflictError(GatewayError):
    """409 or unique/foreign key violations."""


class ServerError(GatewayError):
    """5xx server-side failures."""


class TransportError(GatewayError):
    """Network/transport failure before a response was returned."""


class BusinessRuleError(Exception):
    """Operation rejected by a client-side rule before any write."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InsufficientInventoryError(BusinessRuleError):
    def __init__(self, remaining: int) -> None:
        super().__init__(f"Apenas {remaining} ingressos disponíveis")
        self.remaining = remaining


class CapacityBelowSoldError(BusinessRuleError):
    def __init__(self, capacity: int, sold: int) -> None:
        super().__init__(f"Quantidade disponível ({capacity}) menor que a quantidade já vendida ({sold})")
        self.capacity = capacity
        self.sold = sold


class DependentRecordsError(BusinessRuleError):
    def __init__(self, message: str, dependents: int) -> None:
        super().__init__(message)
        self.dependents = dependents


class RecordNotFoundError(BusinessRuleError):
    pass


class InvalidRecordError(BusinessRuleError):
    """A row returned by the gateway does not fit the record model."""


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> GatewayError:
    payload = payload or {}
    code = str(payload.get("code") or payload.get("error_code") or payload.get("error") or "HTTP_ERROR")
    message = str(
        payload.get("message")
        or payload.get("msg")
        or payload.get("error_description")
        or "Request failed"
    )
    details = payload.get("details") or payload.get("hint")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped: type[GatewayError]
    if code == NO_ROWS_CODE or status_code == 404:
        mapped = NotFoundError
    elif status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionDeniedError
    elif status_code in {400, 422}:
        mapped = RequestValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = GatewayError
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)
