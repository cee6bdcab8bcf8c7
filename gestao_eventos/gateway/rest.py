"""PostgREST / Supabase adapter.

Tables live under ``/rest/v1/<table>`` and accept ``select=``, ``<col>=<op>.<value>``
and ``order=`` query parameters; auth calls go to the GoTrue endpoints under
``/auth/v1``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence

from pydantic_core import to_jsonable_python

from ..core.config import Settings
from ..core.errors import AuthError
from .base import AuthGateway, AuthSession, Embed, Filter, Gateway, Op, Order, Query, Row
from .http import HttpClient, Params

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"
SINGLE_OBJECT = "application/vnd.pgrst.object+json"
RETURN_REPRESENTATION = "return=representation"


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _list_item(value: Any) -> str:
    text = _literal(value)
    if any(char in text for char in ',()" '):
        text = '"' + text.replace('"', '\\"') + '"'
    return text


def render_filter(item: Filter) -> tuple[str, str]:
    if item.op is Op.IN:
        return item.column, f"in.({','.join(_list_item(value) for value in item.value)})"
    if item.op is Op.EQ and item.value is None:
        return item.column, "is.null"
    if item.op is Op.ILIKE:
        return item.column, f"ilike.{_literal(item.value).replace('%', '*')}"
    return item.column, f"{item.op.value}.{_literal(item.value)}"


def render_embed(embed: Embed) -> str:
    hint = embed.remote_key if embed.many else embed.local_key
    inner = ",".join(list(embed.columns) + [render_embed(child) for child in embed.embeds])
    return f"{embed.alias}:{embed.table}!{hint}({inner})"


def render_select(columns: Sequence[str], embeds: Sequence[Embed]) -> str:
    return ",".join(list(columns) + [render_embed(embed) for embed in embeds])


def render_order(orders: Sequence[Order]) -> str:
    return ",".join(f"{order.column}.{'desc' if order.descending else 'asc'}" for order in orders)


def query_params(query: Query) -> Params:
    params: Params = [("select", render_select(query.columns, query.embeds))]
    params.extend(render_filter(item) for item in query.filters)
    if query.orders:
        params.append(("order", render_order(query.orders)))
    if query.limit is not None:
        params.append(("limit", str(query.limit)))
    return params


class RestAuth(AuthGateway):
    def __init__(self, gateway: RestGateway, service_role_key: str = "") -> None:
        self._gateway = gateway
        self._service_role_key = service_role_key

    def _admin_headers(self) -> dict[str, str]:
        if not self._service_role_key:
            raise AuthError(
                code="SERVICE_ROLE_REQUIRED",
                message="Service role key is required for user administration",
                status_code=401,
            )
        return {"apikey": self._service_role_key, "Authorization": f"Bearer {self._service_role_key}"}

    def sign_in(self, email: str, password: str) -> AuthSession:
        payload = self._gateway.http.request(
            "POST",
            f"{AUTH_PREFIX}/token?grant_type=password",
            json_body={"email": email, "password": password},
            operation="auth.sign_in",
        )
        user = payload.get("user") or {}
        self._gateway.access_token = payload.get("access_token")
        return AuthSession(
            user_id=str(user.get("id")),
            email=str(user.get("email") or email),
            access_token=self._gateway.access_token,
        )

    def sign_out(self) -> None:
        if not self._gateway.access_token:
            return
        headers = self._gateway.auth_headers()
        # The local token is dropped even when the logout call fails.
        self._gateway.access_token = None
        self._gateway.http.request("POST", f"{AUTH_PREFIX}/logout", headers=headers, operation="auth.sign_out")

    def change_password(self, new_password: str) -> None:
        if not self._gateway.access_token:
            raise AuthError(code="NO_SESSION", message="No active session", status_code=401)
        self._gateway.http.request(
            "PUT",
            f"{AUTH_PREFIX}/user",
            headers=self._gateway.auth_headers(),
            json_body={"password": new_password},
            operation="auth.change_password",
        )

    def admin_create_user(self, email: str, password: str) -> Row:
        return self._gateway.http.request(
            "POST",
            f"{AUTH_PREFIX}/admin/users",
            headers=self._admin_headers(),
            json_body={"email": email, "password": password, "email_confirm": True},
            operation="auth.admin_create_user",
        )

    def admin_update_user(self, user_id: str, **attributes: Any) -> Row:
        return self._gateway.http.request(
            "PUT",
            f"{AUTH_PREFIX}/admin/users/{user_id}",
            headers=self._admin_headers(),
            json_body=attributes,
            operation="auth.admin_update_user",
        )


class RestGateway(Gateway):
    def __init__(self, http: HttpClient, anon_key: str, service_role_key: str = "") -> None:
        self.http = http
        self.anon_key = anon_key
        self.access_token: str | None = None
        self.http.default_headers.setdefault("apikey", anon_key)
        self.auth = RestAuth(self, service_role_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> RestGateway:
        http = HttpClient(
            base_url=settings.SUPABASE_URL,
            connect_timeout_seconds=settings.CONNECT_TIMEOUT_SECONDS,
            read_timeout_seconds=settings.READ_TIMEOUT_SECONDS,
            retries=settings.READ_RETRIES,
            retry_backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
        )
        return cls(http, settings.SUPABASE_ANON_KEY, settings.SUPABASE_SERVICE_ROLE_KEY)

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token or self.anon_key}"}

    def _path(self, table: str) -> str:
        return f"{REST_PREFIX}/{table}"

    def select(self, query: Query) -> list[Row]:
        return self.http.request(
            "GET",
            self._path(query.table),
            headers=self.auth_headers(),
            params=query_params(query),
            operation=f"{query.table}.select",
        ) or []

    def select_one(self, query: Query) -> Row:
        headers = self.auth_headers()
        headers["Accept"] = SINGLE_OBJECT
        return self.http.request(
            "GET",
            self._path(query.table),
            headers=headers,
            params=query_params(query),
            operation=f"{query.table}.select_one",
        )

    def _write_headers(self) -> dict[str, str]:
        headers = self.auth_headers()
        headers["Prefer"] = RETURN_REPRESENTATION
        return headers

    def insert(self, table: str, rows: Sequence[Row], returning: Query | None = None) -> list[Row]:
        query = returning or Query(table)
        return self.http.request(
            "POST",
            self._path(table),
            headers=self._write_headers(),
            json_body=to_jsonable_python(list(rows)),
            params=[("select", render_select(query.columns, query.embeds))],
            operation=f"{table}.insert",
        ) or []

    def update(
        self,
        table: str,
        patch: Row,
        filters: Sequence[Filter],
        returning: Query | None = None,
    ) -> list[Row]:
        query = returning or Query(table)
        params: Params = [("select", render_select(query.columns, query.embeds))]
        params.extend(render_filter(item) for item in filters)
        return self.http.request(
            "PATCH",
            self._path(table),
            headers=self._write_headers(),
            json_body=to_jsonable_python(patch),
            params=params,
            operation=f"{table}.update",
        ) or []

    def delete(self, table: str, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        self.http.request(
            "DELETE",
            self._path(table),
            headers=self.auth_headers(),
            params=[render_filter(item) for item in filters],
            operation=f"{table}.delete",
        )

    def count(self, table: str, filters: Sequence[Filter]) -> int:
        rows = self.select(Query(table, columns=("id",), filters=tuple(filters)))
        return len(rows)
