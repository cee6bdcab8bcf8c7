from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Sequence

from passlib.context import CryptContext
from sqlalchemy import (
    Column,
    Connection,
    Date,
    DateTime,
    Engine,
    MetaData,
    Numeric,
    Table,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.config import Settings
from ..core.errors import NO_ROWS_CODE, AuthError, ConflictError, NotFoundError, ServerError
from ..db.schema import metadata as default_metadata
from .base import AuthGateway, AuthSession, Embed, Filter, Gateway, Op, Query, Row

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _coerce(column: Column, value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None
    if isinstance(value, str) and not value:
        return None if isinstance(column.type, (Date, DateTime, Numeric)) else value
    if isinstance(column.type, DateTime):
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(column.type, Date):
        if isinstance(value, str):
            return date.fromisoformat(value[:10])
        if isinstance(value, datetime):
            return value.date()
    elif isinstance(column.type, Numeric) and not isinstance(value, Decimal):
        return Decimal(str(value))
    return value


class SqlAuth(AuthGateway):
    """Credential store kept in the ``auth_users`` table, hashed with passlib."""

    def __init__(self, gateway: SqlGateway) -> None:
        self._gateway = gateway
        self.current: AuthSession | None = None

    def _find(self, column: str, value: str) -> Row | None:
        rows = self._gateway.select(Query("auth_users").eq(column, value))
        return rows[0] if rows else None

    def sign_in(self, email: str, password: str) -> AuthSession:
        user = self._find("email", email.strip().lower())
        if user is None or not pwd_context.verify(password, user["password_hash"]):
            raise AuthError(code="invalid_credentials", message="Invalid login credentials", status_code=400)
        self.current = AuthSession(user_id=user["id"], email=user["email"], access_token=uuid.uuid4().hex)
        return self.current

    def sign_out(self) -> None:
        self.current = None

    def change_password(self, new_password: str) -> None:
        if self.current is None:
            raise AuthError(code="NO_SESSION", message="No active session", status_code=401)
        self.admin_update_user(self.current.user_id, password=new_password)

    def admin_create_user(self, email: str, password: str) -> Row:
        rows = self._gateway.insert(
            "auth_users",
            [{"id": str(uuid.uuid4()), "email": email.strip().lower(), "password_hash": pwd_context.hash(password)}],
        )
        return {"id": rows[0]["id"], "email": rows[0]["email"]}

    def admin_update_user(self, user_id: str, **attributes: Any) -> Row:
        patch: Row = {}
        if "password" in attributes:
            patch["password_hash"] = pwd_context.hash(attributes["password"])
        if "email" in attributes:
            patch["email"] = str(attributes["email"]).strip().lower()
        patch["updated_at"] = datetime.now(timezone.utc)
        rows = self._gateway.update("auth_users", patch, [Filter("id", Op.EQ, user_id)])
        if not rows:
            raise NotFoundError(code="user_not_found", message="User not found", status_code=404)
        return {"id": rows[0]["id"], "email": rows[0]["email"]}


class SqlGateway(Gateway):
    """Runs gateway queries directly against a relational database."""

    def __init__(self, engine: Engine, metadata: MetaData | None = None) -> None:
        self.engine = engine
        self.metadata = metadata or default_metadata
        self._local = threading.local()
        self.auth = SqlAuth(self)

    @classmethod
    def from_settings(cls, settings: Settings) -> SqlGateway:
        return cls(create_engine(settings.DATABASE_URL, future=True))

    def _table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError as exc:
            raise NotFoundError(code="42P01", message=f"relation {name!r} does not exist", status_code=404) from exc

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        current = getattr(self._local, "connection", None)
        if current is not None:
            yield current
            return
        with self._errors(), self.engine.begin() as connection:
            self._local.connection = connection
            try:
                yield connection
            finally:
                self._local.connection = None

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        current = getattr(self._local, "connection", None)
        if current is not None:
            with self._errors():
                yield current
            return
        with self._errors(), self.engine.begin() as connection:
            yield connection

    @contextmanager
    def _errors(self) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            raise ConflictError(code="23505", message=str(exc.orig), status_code=409) from exc
        except SQLAlchemyError as exc:
            raise ServerError(code="DB_ERROR", message=str(exc), status_code=500) from exc

    def _clause(self, table: Table, item: Filter) -> Any:
        column = table.c[item.column]
        if item.op is Op.EQ:
            return column.is_(None) if item.value is None else column == _coerce(column, item.value)
        if item.op is Op.NEQ:
            return column.is_not(None) if item.value is None else column != _coerce(column, item.value)
        if item.op is Op.GT:
            return column > _coerce(column, item.value)
        if item.op is Op.GTE:
            return column >= _coerce(column, item.value)
        if item.op is Op.LT:
            return column < _coerce(column, item.value)
        if item.op is Op.LTE:
            return column <= _coerce(column, item.value)
        if item.op is Op.IN:
            return column.in_([_coerce(column, value) for value in item.value])
        if item.op is Op.IS:
            return column.is_(item.value)
        if item.op is Op.IS_NOT:
            return column.is_not(item.value)
        if item.op is Op.ILIKE:
            return column.ilike(str(item.value))
        raise ValueError(f"Unsupported operator: {item.op}")

    def _columns(self, table: Table, columns: Sequence[str], embeds: Sequence[Embed]) -> list[Column]:
        if "*" in columns:
            return list(table.c)
        names = list(columns)
        for embed in embeds:
            if embed.local_key not in names:
                names.append(embed.local_key)
        return [table.c[name] for name in names]

    def _fetch(self, connection: Connection, query: Query) -> list[Row]:
        table = self._table(query.table)
        stmt = select(*self._columns(table, query.columns, query.embeds))
        for item in query.filters:
            stmt = stmt.where(self._clause(table, item))
        for order in query.orders:
            column = table.c[order.column]
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        rows = [dict(row) for row in connection.execute(stmt).mappings()]
        for embed in query.embeds:
            self._attach(connection, rows, embed)
        return rows

    def _attach(self, connection: Connection, rows: list[Row], embed: Embed) -> None:
        keys = {row[embed.local_key] for row in rows if row.get(embed.local_key) is not None}
        columns = embed.columns
        if "*" not in columns and embed.remote_key not in columns:
            columns = columns + (embed.remote_key,)
        children: list[Row] = []
        if keys:
            child_query = Query(
                embed.table,
                columns=columns,
                embeds=embed.embeds,
                filters=(Filter(embed.remote_key, Op.IN, sorted(keys, key=str)),),
                orders=(),
            )
            children = self._fetch(connection, child_query)
        if embed.many:
            grouped: dict[Any, list[Row]] = defaultdict(list)
            for child in children:
                grouped[child[embed.remote_key]].append(child)
            for row in rows:
                row[embed.alias] = grouped.get(row.get(embed.local_key), [])
        else:
            by_key = {child[embed.remote_key]: child for child in children}
            for row in rows:
                row[embed.alias] = by_key.get(row.get(embed.local_key))

    def select(self, query: Query) -> list[Row]:
        with self._connection() as connection:
            return self._fetch(connection, query)

    def select_one(self, query: Query) -> Row:
        rows = self.select(query)
        if len(rows) != 1:
            raise NotFoundError(
                code=NO_ROWS_CODE,
                message=f"JSON object requested, multiple (or no) rows returned ({len(rows)})",
                status_code=406,
            )
        return rows[0]

    def _primary_key(self, table: Table) -> Column:
        return list(table.primary_key.columns)[0]

    def _returning(self, connection: Connection, table: Table, ids: list[Any], returning: Query | None) -> list[Row]:
        if not ids:
            return []
        pk = self._primary_key(table)
        query = returning or Query(table.name)
        query = Query(
            table.name,
            columns=query.columns,
            embeds=query.embeds,
            filters=(Filter(pk.name, Op.IN, ids),),
            orders=query.orders,
        )
        by_id = {row[pk.name]: row for row in self._fetch(connection, query)}
        return [by_id[row_id] for row_id in ids if row_id in by_id]

    def _values(self, table: Table, row: Row) -> Row:
        return {key: _coerce(table.c[key], value) for key, value in row.items() if key in table.c}

    def insert(self, table: str, rows: Sequence[Row], returning: Query | None = None) -> list[Row]:
        target = self._table(table)
        with self._connection() as connection:
            ids = []
            for row in rows:
                result = connection.execute(target.insert().values(**self._values(target, row)))
                ids.append(result.inserted_primary_key[0])
            return self._returning(connection, target, ids, returning)

    def update(
        self,
        table: str,
        patch: Row,
        filters: Sequence[Filter],
        returning: Query | None = None,
    ) -> list[Row]:
        target = self._table(table)
        pk = self._primary_key(target)
        clauses = [self._clause(target, item) for item in filters]
        with self._connection() as connection:
            ids = list(connection.execute(select(pk).where(*clauses)).scalars())
            if ids:
                connection.execute(update(target).where(pk.in_(ids)).values(**self._values(target, patch)))
            return self._returning(connection, target, ids, returning)

    def delete(self, table: str, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        target = self._table(table)
        with self._connection() as connection:
            connection.execute(delete(target).where(*[self._clause(target, item) for item in filters]))

    def count(self, table: str, filters: Sequence[Filter]) -> int:
        target = self._table(table)
        stmt = select(func.count()).select_from(target)
        for item in filters:
            stmt = stmt.where(self._clause(target, item))
        with self._connection() as connection:
            return int(connection.execute(stmt).scalar_one())
