from __future__ import annotations

from typing import Any

from ..core.errors import BusinessRuleError, GatewayError
from ..models.users import Permissao
from ..stores.users import UserAdminStore
from ..views.notifications import NotificationCenter, user_message


class GroupPermissionEditor:
    """Checkbox grid of a group's permissions; ``save`` persists only the difference."""

    def __init__(self, store: UserAdminStore, notifications: NotificationCenter) -> None:
        self.store = store
        self.notifications = notifications
        self.grupo_id: Any | None = None
        self.persisted: set[str] = set()
        self.selected_permissions: set[str] = set()
        self._ids: dict[str, Any] = {}

    def load(self, grupo_id: Any) -> set[str]:
        self.grupo_id = grupo_id
        current = self.store.fetch_group_permissions(grupo_id)
        self._ids = {str(permission.id): permission.id for permission in current}
        self.persisted = set(self._ids)
        self.selected_permissions = set(self.persisted)
        return set(self.selected_permissions)

    def is_selected(self, permission_id: Any) -> bool:
        return str(permission_id) in self.selected_permissions

    def toggle(self, permission_id: Any) -> bool:
        key = str(permission_id)
        self._ids.setdefault(key, permission_id)
        if key in self.selected_permissions:
            self.selected_permissions.discard(key)
            return False
        self.selected_permissions.add(key)
        return True

    def toggle_module(self, permissions: list[Permissao], selected: bool) -> None:
        for permission in permissions:
            if self.is_selected(permission.id) != selected:
                self.toggle(permission.id)

    @property
    def pending_changes(self) -> tuple[set[str], set[str]]:
        return self.selected_permissions - self.persisted, self.persisted - self.selected_permissions

    @property
    def is_dirty(self) -> bool:
        added, removed = self.pending_changes
        return bool(added or removed)

    def save(self) -> bool:
        if self.grupo_id is None:
            raise RuntimeError("No group loaded")
        try:
            self.store.sync_group_permissions(
                self.grupo_id,
                [self._ids[key] for key in sorted(self.selected_permissions)],
            )
        except (GatewayError, BusinessRuleError) as exc:
            self.notifications.error(user_message(exc))
            return False
        self.persisted = set(self.selected_permissions)
        self.notifications.success("Permissões atualizadas com sucesso")
        return True
