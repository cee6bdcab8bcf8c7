"""User, group and permission administration."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Iterable

from ..core.errors import DependentRecordsError, GatewayError
from ..gateway.base import Embed, Filter, Op, Order, Query, Row
from ..models.users import Grupo, GrupoPermissao, Permissao, Usuario, UsuarioPermissao
from .base import EntityStore, Resource

GRUPO = Embed("grupo", "grupos", "grupo_id", columns=("id", "nome"))
PERMISSAO = Embed("permissao", "permissoes", "permission_id")
GRUPO_PERMISSOES = Embed(
    "permissoes",
    "grupo_permissoes",
    "id",
    remote_key="grupo_id",
    many=True,
    embeds=(PERMISSAO,),
)

GROUP_HAS_ACTIVE_USERS = "Não é possível excluir um grupo que possui usuários ativos"


def dedupe_permissions(permissions: Iterable[Permissao]) -> list[Permissao]:
    unique: OrderedDict[str, Permissao] = OrderedDict()
    for permission in permissions:
        unique.setdefault(str(permission.id), permission)
    return list(unique.values())


class UserAdminStore(EntityStore):
    module = "usuarios"
    resources = (
        Resource(
            "usuarios",
            "usuarios",
            Usuario,
            "usuário",
            orders=(Order("nome"),),
            embeds=(GRUPO,),
            parent_key="grupo_id",
            active_flag="ativo",
        ),
        Resource(
            "grupos",
            "grupos",
            Grupo,
            "grupo",
            orders=(Order("nome"),),
            embeds=(GRUPO_PERMISSOES,),
            active_flag="ativo",
        ),
        Resource("permissoes", "permissoes", Permissao, "permissão", orders=(Order("modulo"), Order("acao"))),
    )

    @property
    def usuarios(self) -> list[Usuario]:
        return self.items("usuarios")

    @property
    def grupos(self) -> list[Grupo]:
        return self.items("grupos")

    @property
    def permissoes(self) -> list[Permissao]:
        return self.items("permissoes")

    # -- users ---------------------------------------------------------------

    def fetch_users(self) -> list[Usuario]:
        return self.fetch_all("usuarios")

    def create_user(self, email: str, password: str, nome: str, grupo_id: Any | None = None, ativo: bool = True) -> Usuario:
        """Register credentials with the auth service, then the profile row."""
        action = "usuarios.create_user"
        started = time.monotonic()
        with self._tracking():
            try:
                account = self.gateway.auth.admin_create_user(email, password)
            except GatewayError as exc:
                self._fail(action, exc, started, email=email)
                raise
        self._log(action, "auth_created", started, user_id=account.get("id"))
        return self.create(
            "usuarios",
            {
                "id": account["id"],
                "email": email,
                "nome": nome,
                "grupo_id": grupo_id,
                "ativo": ativo,
                "primeiro_login": True,
            },
        )

    def update_user(self, user_id: Any, patch: Row) -> Usuario:
        clean = {key: value for key, value in patch.items() if key not in {"password", "id"}}
        return self.update("usuarios", user_id, clean)

    def deactivate_user(self, user_id: Any) -> Usuario:
        return self.deactivate("usuarios", user_id)

    def toggle_user_status(self, user_id: Any) -> Usuario:
        current = self.get("usuarios", user_id) or self.fetch_one("usuarios", user_id)
        return self.update("usuarios", user_id, {"ativo": not current.ativo})

    def reset_user_password(self, user_id: Any, new_password: str) -> Usuario:
        """Set a temporary password; the user must change it on next sign-in."""
        action = "usuarios.reset_password"
        started = time.monotonic()
        with self._tracking():
            try:
                self.gateway.auth.admin_update_user(str(user_id), password=new_password)
            except GatewayError as exc:
                self._fail(action, exc, started, record_id=user_id)
                raise
        self._log(action, "success", started, record_id=user_id)
        return self.update("usuarios", user_id, {"primeiro_login": True})

    def users_in_group(self, grupo_id: Any) -> list[Usuario]:
        return self.by_parent_id("usuarios", grupo_id)

    # -- groups --------------------------------------------------------------

    def fetch_groups(self) -> list[Grupo]:
        return self.fetch_all("grupos")

    def create_group(self, payload: Row) -> Grupo:
        return self.create("grupos", payload)

    def update_group(self, grupo_id: Any, patch: Row) -> Grupo:
        return self.update("grupos", grupo_id, patch)

    def deactivate_group(self, grupo_id: Any) -> Grupo:
        """Deactivate a group unless active users still belong to it.

        The member count is asked of the gateway right before the write,
        inside one transaction where the gateway supports it.
        """
        action = "grupos.deactivate"
        with self.gateway.transaction():
            started = time.monotonic()
            try:
                active_members = self.gateway.count(
                    "usuarios",
                    [Filter("grupo_id", Op.EQ, grupo_id), Filter("ativo", Op.EQ, True)],
                )
            except GatewayError as exc:
                self._fail(action, exc, started, record_id=grupo_id)
                raise
            if active_members:
                self._reject(
                    action,
                    DependentRecordsError(GROUP_HAS_ACTIVE_USERS, active_members),
                    record_id=grupo_id,
                )
            return self.deactivate("grupos", grupo_id)

    # -- permissions ---------------------------------------------------------

    def fetch_permissions(self) -> list[Permissao]:
        return self.fetch_all("permissoes")

    def permissions_by_module(self) -> dict[str, list[Permissao]]:
        grouped: dict[str, list[Permissao]] = {}
        for permission in sorted(self.permissoes, key=lambda item: (item.modulo, item.acao)):
            grouped.setdefault(permission.modulo, []).append(permission)
        return grouped

    def _links(self, table: str, owner_column: str, owner_id: Any) -> list[Row]:
        action = f"{table}.fetch"
        started = time.monotonic()
        with self._tracking():
            try:
                return self.gateway.select(
                    Query(table, embeds=(PERMISSAO,), filters=(Filter(owner_column, Op.EQ, owner_id),))
                )
            except GatewayError as exc:
                self._fail(action, exc, started, owner_id=owner_id)
                raise

    def fetch_group_permissions(self, grupo_id: Any) -> list[Permissao]:
        links = [GrupoPermissao.model_validate(row) for row in self._links("grupo_permissoes", "grupo_id", grupo_id)]
        return [link.permissao for link in links if link.permissao is not None]

    def fetch_user_permissions(self, user_id: Any) -> list[Permissao]:
        links = [UsuarioPermissao.model_validate(row) for row in self._links("usuario_permissoes", "user_id", user_id)]
        return [link.permissao for link in links if link.permissao is not None]

    def effective_permissions(self, user_id: Any, grupo_id: Any | None) -> list[Permissao]:
        """Direct permissions plus the group's, without duplicates."""
        direct = self.fetch_user_permissions(user_id)
        inherited = self.fetch_group_permissions(grupo_id) if grupo_id is not None else []
        return dedupe_permissions(direct + inherited)

    def _link(self, table: str, row: Row) -> None:
        started = time.monotonic()
        with self._tracking():
            try:
                self.gateway.insert(table, [row])
            except GatewayError as exc:
                self._fail(f"{table}.insert", exc, started, **row)
                raise
        self._log(f"{table}.insert", "success", started, **row)

    def _unlink(self, table: str, filters: list[Filter]) -> None:
        started = time.monotonic()
        with self._tracking():
            try:
                self.gateway.delete(table, filters)
            except GatewayError as exc:
                self._fail(f"{table}.delete", exc, started)
                raise
        self._log(f"{table}.delete", "success", started, **{item.column: item.value for item in filters})

    def assign_permission_to_group(self, grupo_id: Any, permission_id: Any) -> None:
        self._link("grupo_permissoes", {"grupo_id": grupo_id, "permission_id": permission_id})

    def remove_permission_from_group(self, grupo_id: Any, permission_id: Any) -> None:
        self._unlink(
            "grupo_permissoes",
            [Filter("grupo_id", Op.EQ, grupo_id), Filter("permission_id", Op.EQ, permission_id)],
        )

    def assign_permission_to_user(self, user_id: Any, permission_id: Any) -> None:
        self._link("usuario_permissoes", {"user_id": user_id, "permission_id": permission_id})

    def remove_permission_from_user(self, user_id: Any, permission_id: Any) -> None:
        self._unlink(
            "usuario_permissoes",
            [Filter("user_id", Op.EQ, user_id), Filter("permission_id", Op.EQ, permission_id)],
        )

    def sync_group_permissions(self, grupo_id: Any, selected: Iterable[Any]) -> tuple[list[Any], list[Any]]:
        """Make the group's permissions equal ``selected``; returns (added, removed) ids."""
        current = {str(permission.id): permission.id for permission in self.fetch_group_permissions(grupo_id)}
        wanted = {str(permission_id): permission_id for permission_id in selected}
        added = [wanted[key] for key in sorted(wanted.keys() - current.keys())]
        removed = [current[key] for key in sorted(current.keys() - wanted.keys())]
        for permission_id in added:
            self.assign_permission_to_group(grupo_id, permission_id)
        for permission_id in removed:
            self.remove_permission_from_group(grupo_id, permission_id)
        if added or removed:
            self._refresh_group(grupo_id)
        return added, removed

    def _refresh_group(self, grupo_id: Any) -> None:
        if self.get("grupos", grupo_id) is None:
            return
        self._replace("grupos", self.fetch_one("grupos", grupo_id))

    def group_permission_ids(self, grupo_id: Any) -> set[Any]:
        grupo = self.get("grupos", grupo_id)
        return grupo.permission_ids if grupo is not None else set()

