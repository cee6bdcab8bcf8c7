from __future__ import annotations

import logging
import time
from typing import Any, Callable

from ..core.errors import BusinessRuleError, GatewayError, error_message
from ..core.logging import log_action
from ..gateway.base import Filter, Gateway, Op
from ..models.users import Permissao, Usuario
from .base import utcnow
from .state import Listener, StateContainer
from .users import UserAdminStore

logger = logging.getLogger(__name__)


class SessionStore:
    """Signed-in user, the password-change gate and effective permissions."""

    module = "auth"

    def __init__(self, gateway: Gateway, users: UserAdminStore | None = None) -> None:
        self.gateway = gateway
        self.users = users or UserAdminStore(gateway)
        self.state = StateContainer(
            {"user": None, "permissions": [], "must_change_password": False, "loading": False, "error": None}
        )

    @property
    def user(self) -> Usuario | None:
        return self.state.get("user")

    @property
    def permissions(self) -> list[Permissao]:
        return list(self.state.get("permissions") or [])

    @property
    def must_change_password(self) -> bool:
        return bool(self.state.get("must_change_password"))

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def error(self) -> str | None:
        return self.state.get("error")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.state.subscribe(listener)

    def _fail(self, action: str, exc: Exception, started: float) -> None:
        self.state.set(error=error_message(exc), loading=False)
        log_action(
            logger,
            module=self.module,
            action=action,
            outcome="error",
            error_type=type(exc).__name__,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def sign_in(self, email: str, password: str) -> Usuario:
        started = time.monotonic()
        self.state.set(loading=True, error=None)
        try:
            session = self.gateway.auth.sign_in(email, password)
        except GatewayError as exc:
            self._fail("sign_in", exc, started)
            raise
        try:
            user = self.users.fetch_one("usuarios", session.user_id)
            if not user.ativo:
                raise BusinessRuleError("Usuário inativo. Contate o administrador.")
            permissions = self.users.effective_permissions(user.id, user.grupo_id)
        except (GatewayError, BusinessRuleError) as exc:
            # No half-open session: the backend credentials go with the failed sign-in.
            self._end_backend_session()
            self._fail("sign_in", exc, started)
            raise
        self._touch_last_login(user.id)
        self.state.set(
            user=user,
            permissions=permissions,
            must_change_password=user.primeiro_login,
            loading=False,
        )
        log_action(
            logger,
            module=self.module,
            action="sign_in",
            outcome="success",
            user_id=user.id,
            must_change_password=user.primeiro_login,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return user

    def _end_backend_session(self) -> None:
        try:
            self.gateway.auth.sign_out()
        except GatewayError as exc:
            log_action(
                logger,
                module=self.module,
                action="sign_out",
                outcome="error",
                error=error_message(exc),
            )

    def _touch_last_login(self, user_id: Any) -> None:
        try:
            self.gateway.update("usuarios", {"ultimo_login": utcnow()}, [Filter("id", Op.EQ, user_id)])
        except GatewayError as exc:
            # A failed audit write does not block the sign-in.
            log_action(
                logger,
                module=self.module,
                action="touch_last_login",
                outcome="error",
                error=error_message(exc),
            )

    def sign_out(self) -> None:
        try:
            self.gateway.auth.sign_out()
        finally:
            self.state.set(user=None, permissions=[], must_change_password=False, error=None)
        log_action(logger, module=self.module, action="sign_out", outcome="success")

    def change_password(self, new_password: str) -> None:
        user = self.user
        if user is None:
            raise BusinessRuleError("Nenhum usuário autenticado")
        started = time.monotonic()
        try:
            self.gateway.auth.change_password(new_password)
            updated = self.users.update("usuarios", user.id, {"primeiro_login": False})
        except GatewayError as exc:
            self._fail("change_password", exc, started)
            raise
        self.state.set(user=updated, must_change_password=False, error=None)
        log_action(logger, module=self.module, action="change_password", outcome="success", user_id=user.id)

    def refresh_permissions(self) -> list[Permissao]:
        user = self.user
        if user is None:
            return []
        permissions = self.users.effective_permissions(user.id, user.grupo_id)
        self.state.set(permissions=permissions)
        return permissions

    def check_permission(self, module: str, action: str) -> bool:
        return any(item.modulo == module and item.acao == action for item in self.permissions)

    def has_permission(self, name: str) -> bool:
        return any(item.nome == name for item in self.permissions)
