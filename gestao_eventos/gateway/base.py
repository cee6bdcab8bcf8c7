from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Sequence

Row = dict[str, Any]


class Op(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    IS = "is"
    IS_NOT = "not.is"
    ILIKE = "ilike"


@dataclass(frozen=True)
class Filter:
    column: str
    op: Op
    value: Any


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class Embed:
    """A relation joined into each row under ``alias``.

    Many-to-one embeds match ``row[local_key]`` against ``table.remote_key``
    and yield one object (or None). One-to-many embeds match the parent's
    ``local_key`` (usually ``id``) against the child's ``remote_key`` and
    yield a list.
    """

    alias: str
    table: str
    local_key: str
    remote_key: str = "id"
    columns: tuple[str, ...] = ("*",)
    many: bool = False
    embeds: tuple["Embed", ...] = ()


@dataclass(frozen=True)
class Query:
    table: str
    columns: tuple[str, ...] = ("*",)
    embeds: tuple[Embed, ...] = ()
    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    limit: int | None = None

    def where(self, column: str, op: Op | str, value: Any) -> Query:
        return replace(self, filters=self.filters + (Filter(column, Op(op), value),))

    def eq(self, column: str, value: Any) -> Query:
        return self.where(column, Op.EQ, value)

    def order_by(self, column: str, descending: bool = False) -> Query:
        return replace(self, orders=self.orders + (Order(column, descending),))


def eq(column: str, value: Any) -> Filter:
    return Filter(column, Op.EQ, value)


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str
    access_token: str | None = None


class AuthGateway(ABC):
    """Privileged user/credential surface of the backend."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    def sign_out(self) -> None: ...

    @abstractmethod
    def change_password(self, new_password: str) -> None: ...

    @abstractmethod
    def admin_create_user(self, email: str, password: str) -> Row: ...

    @abstractmethod
    def admin_update_user(self, user_id: str, **attributes: Any) -> Row: ...


class Gateway(ABC):
    """Table-scoped CRUD with filtering, ordering and embedded relations."""

    auth: AuthGateway

    @abstractmethod
    def select(self, query: Query) -> list[Row]: ...

    @abstractmethod
    def select_one(self, query: Query) -> Row:
        """Return exactly one row or raise NotFoundError."""

    @abstractmethod
    def insert(self, table: str, rows: Sequence[Row], returning: Query | None = None) -> list[Row]: ...

    @abstractmethod
    def update(
        self,
        table: str,
        patch: Row,
        filters: Sequence[Filter],
        returning: Query | None = None,
    ) -> list[Row]: ...

    @abstractmethod
    def delete(self, table: str, filters: Sequence[Filter]) -> None: ...

    @abstractmethod
    def count(self, table: str, filters: Sequence[Filter]) -> int: ...

    def transaction(self) -> AbstractContextManager[Any]:
        """Group writes atomically where the backend allows it; a no-op otherwise."""
        return nullcontext()
