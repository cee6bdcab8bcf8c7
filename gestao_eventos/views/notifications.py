from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..core.errors import (
    AuthError,
    BusinessRuleError,
    ConflictError,
    GatewayError,
    NotFoundError,
    PermissionDeniedError,
    RequestValidationError,
    ServerError,
    TransportError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Ocorreu um erro inesperado. Tente novamente."

_MESSAGES: tuple[tuple[type[GatewayError], str], ...] = (
    (AuthError, "Sessão expirada ou credenciais inválidas. Faça login novamente."),
    (PermissionDeniedError, "Você não tem permissão para realizar esta ação."),
    (NotFoundError, "Registro não encontrado."),
    (ConflictError, "Já existe um registro com estes dados."),
    (RequestValidationError, "Dados inválidos. Verifique os campos e tente novamente."),
    (TransportError, "Não foi possível conectar ao servidor. Verifique sua conexão."),
    (ServerError, "O servidor encontrou um erro. Tente novamente em instantes."),
)


def user_message(exc: Exception) -> str:
    """pt-BR text for a failed action; business rule messages are shown as-is."""
    if isinstance(exc, BusinessRuleError):
        return exc.message
    for error_type, message in _MESSAGES:
        if isinstance(exc, error_type):
            return message
    return GENERIC_ERROR


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationCenter:
    """Queue of transient toasts; the shell drains it after each action."""

    def __init__(self) -> None:
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def push(self, kind: NotificationKind, message: str) -> Notification:
        notification = Notification(kind, message)
        with self._lock:
            self._items.append(notification)
        logger.debug("notification kind=%s message=%s", kind.value, message)
        return notification

    def success(self, message: str) -> Notification:
        return self.push(NotificationKind.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.push(NotificationKind.ERROR, message)

    def info(self, message: str) -> Notification:
        return self.push(NotificationKind.INFO, message)

    @property
    def latest(self) -> Notification | None:
        with self._lock:
            return self._items[-1] if self._items else None

    def drain(self) -> list[Notification]:
        with self._lock:
            items, self._items = self._items, []
        return items
