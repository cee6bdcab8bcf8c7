"""Cached, observable collections over gateway tables.

An ``EntityStore`` owns one list per ``Resource``. Reads replace a list,
writes splice it once the gateway has confirmed the change, and every
failure lands in the shared ``error`` slot. Concurrent ``fetch_all`` calls
on the same resource are ordered by a generation counter: only the most
recently issued request may replace the cache.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, NoReturn, Sequence

from pydantic import ValidationError

from ..core.errors import BusinessRuleError, GatewayError, InvalidRecordError, RecordNotFoundError, error_message
from ..core.logging import log_action
from ..gateway.base import Embed, Filter, Gateway, Op, Order, Query, Row
from ..models.base import Record
from .state import Listener, StateContainer

logger = logging.getLogger(__name__)

StoreError = (GatewayError, BusinessRuleError)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


@dataclass(frozen=True)
class Resource:
    name: str
    table: str
    model: type[Record]
    label: str
    orders: tuple[Order, ...] = (Order("created_at", descending=True),)
    embeds: tuple[Embed, ...] = ()
    base_filters: tuple[Filter, ...] = ()
    parent_key: str | None = None
    active_flag: str | None = None
    # Listings that only ever show active rows drop a record once deactivated.
    drop_inactive: bool = False

    def query(self, filters: Sequence[Filter] = ()) -> Query:
        return Query(
            self.table,
            embeds=self.embeds,
            filters=self.base_filters + tuple(filters),
            orders=self.orders,
        )

    def by_id(self, record_id: Any) -> Query:
        return Query(self.table, embeds=self.embeds, filters=(Filter("id", Op.EQ, record_id),))

    def parse(self, row: Row) -> Record:
        try:
            return self.model.model_validate(row)
        except ValidationError as exc:
            raise InvalidRecordError(f"Dados inválidos recebidos para {self.label}") from exc

    def parse_written(self, rows: Sequence[Row]) -> Record:
        """The record a write returned; an empty result means the row is not visible to this user."""
        if not rows:
            raise RecordNotFoundError(f"Registro de {self.label} não retornado pelo servidor")
        return self.parse(rows[0])


class EntityStore:
    module = "store"
    resources: tuple[Resource, ...] = ()

    def __init__(self, gateway: Gateway, state: StateContainer | None = None) -> None:
        self.gateway = gateway
        self._resources = {resource.name: resource for resource in self.resources}
        initial: dict[str, Any] = {name: [] for name in self._resources}
        initial.update(loading=False, error=None)
        self.state = state or StateContainer(initial)
        self._generations = {name: 0 for name in self._resources}
        self._in_flight = 0
        self._lock = threading.RLock()

    # -- state ---------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return bool(self.state.get("loading"))

    @property
    def error(self) -> str | None:
        return self.state.get("error")

    def clear_error(self) -> None:
        self.state.set(error=None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.state.subscribe(listener)

    def resource(self, name: str) -> Resource:
        try:
            return self._resources[name]
        except KeyError as exc:
            raise KeyError(f"{type(self).__name__} has no resource {name!r}") from exc

    def items(self, name: str) -> list[Any]:
        self.resource(name)
        return list(self.state.get(name) or [])

    def get(self, name: str, record_id: Any) -> Any | None:
        return next((item for item in self.items(name) if same_id(item.id, record_id)), None)

    def by_parent_id(self, name: str, parent_id: Any) -> list[Any]:
        key = self.resource(name).parent_key
        if key is None:
            raise ValueError(f"Resource {name!r} has no parent key")
        return [item for item in self.items(name) if same_id(getattr(item, key, None), parent_id)]

    @contextmanager
    def _tracking(self) -> Iterator[None]:
        with self._lock:
            self._in_flight += 1
            self.state.set(loading=True)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self.state.set(loading=False)

    def _log(self, action: str, outcome: str, started: float, **fields: Any) -> None:
        log_action(
            logger,
            module=self.module,
            action=action,
            outcome=outcome,
            duration_ms=int((time.monotonic() - started) * 1000),
            **fields,
        )

    def _fail(self, action: str, exc: Exception, started: float, **fields: Any) -> None:
        self.state.set(error=error_message(exc))
        self._log(
            action,
            "error",
            started,
            error_type=type(exc).__name__,
            error=error_message(exc),
            trace_id=getattr(exc, "trace_id", None),
            **fields,
        )

    def _reject(self, action: str, exc: BusinessRuleError, **fields: Any) -> NoReturn:
        self._fail(action, exc, time.monotonic(), **fields)
        raise exc

    # -- cache splicing ------------------------------------------------------

    def _prepend(self, name: str, record: Record) -> None:
        self.state.update(name, lambda items: [record] + [item for item in items or [] if not same_id(item.id, record.id)])

    def _replace(self, name: str, record: Record) -> None:
        self.state.update(
            name,
            lambda items: [record if same_id(item.id, record.id) else item for item in items or []],
        )

    def _remove(self, name: str, record_id: Any) -> None:
        self.state.update(name, lambda items: [item for item in items or [] if not same_id(item.id, record_id)])

    # -- gateway round trips -------------------------------------------------

    def fetch_all(self, name: str, filters: Sequence[Filter] = ()) -> list[Any]:
        """Reload ``name`` from the gateway.

        Failures are recorded in ``error`` and the previous cache is returned;
        the caller is never interrupted by a read failure.
        """
        resource = self.resource(name)
        with self._lock:
            self._generations[name] += 1
            generation = self._generations[name]
        action = f"{name}.fetch_all"
        started = time.monotonic()
        with self._tracking():
            try:
                rows = self.gateway.select(resource.query(filters))
                records = [resource.parse(row) for row in rows]
            except StoreError as exc:
                if self._is_current(name, generation):
                    self._fail(action, exc, started, resource=name)
                return self.items(name)
            if not self._is_current(name, generation):
                self._log(action, "stale", started, resource=name, generation=generation)
                return self.items(name)
            self.state.set(**{name: records, "error": None})
        self._log(action, "success", started, resource=name, count=len(records))
        return records

    def _is_current(self, name: str, generation: int) -> bool:
        with self._lock:
            return self._generations[name] == generation

    def fetch_one(self, name: str, record_id: Any) -> Any:
        """Read one record straight from the gateway without touching the cache."""
        resource = self.resource(name)
        started = time.monotonic()
        with self._tracking():
            try:
                record = resource.parse(self.gateway.select_one(resource.by_id(record_id)))
            except StoreError as exc:
                self._fail(f"{name}.fetch_one", exc, started, record_id=record_id)
                raise
        return record

    def create(self, name: str, payload: Row) -> Any:
        resource = self.resource(name)
        action = f"{name}.create"
        started = time.monotonic()
        with self._tracking():
            try:
                rows = self.gateway.insert(resource.table, [payload], returning=resource.query())
                record = resource.parse_written(rows)
            except StoreError as exc:
                self._fail(action, exc, started)
                raise
        self._prepend(name, record)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=record.id)
        return record

    def update(self, name: str, record_id: Any, patch: Row) -> Any:
        resource = self.resource(name)
        action = f"{name}.update"
        started = time.monotonic()
        body = {**patch, "updated_at": utcnow()}
        with self._tracking():
            try:
                rows = self.gateway.update(
                    resource.table,
                    body,
                    [Filter("id", Op.EQ, record_id)],
                    returning=resource.query(),
                )
                if not rows:
                    raise RecordNotFoundError(f"Registro de {resource.label} não encontrado")
                record = resource.parse(rows[0])
            except StoreError as exc:
                self._fail(action, exc, started, record_id=record_id)
                raise
        self._replace(name, record)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=record_id)
        return record

    def delete(self, name: str, record_id: Any) -> None:
        resource = self.resource(name)
        action = f"{name}.delete"
        started = time.monotonic()
        with self._tracking():
            try:
                self.gateway.delete(resource.table, [Filter("id", Op.EQ, record_id)])
            except GatewayError as exc:
                self._fail(action, exc, started, record_id=record_id)
                raise
        self._remove(name, record_id)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=record_id)

    def deactivate(self, name: str, record_id: Any) -> Any:
        resource = self.resource(name)
        if resource.active_flag is None:
            raise ValueError(f"Resource {name!r} has no active flag")
        record = self.update(name, record_id, {resource.active_flag: False})
        if resource.drop_inactive:
            self._remove(name, record_id)
        return record
