"""Client-side narrowing of a store's cached collection.

Filters compose with AND; the text search is an OR across a fixed set of
fields. Tab counts are always taken over the unfiltered collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from ..core.errors import BusinessRuleError, GatewayError
from ..models.financial import StatusMovimentacao
from ..models.registry import StatusContrato, StatusProjeto
from ..models.tickets import StatusVenda
from .notifications import NotificationCenter, user_message

ALL = "all"
# Records whose value matches no tab, e.g. a status this client does not know yet.
OTHER = "outros"


def is_unset(value: Any) -> bool:
    return value is None or value == "" or value == ALL


def field_value(record: Any, path: str) -> Any:
    """Read ``path`` (dotted for joined relations, e.g. ``projeto.nome``) from a record or dict."""
    current = record
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    if isinstance(current, Enum):
        return current.value
    return current


def _as_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class ListFilter:
    search_fields: tuple[str, ...] = ()
    search: str = ""
    exact: dict[str, Any] = field(default_factory=dict)
    date_field: str | None = None
    date_from: date | None = None
    date_to: date | None = None

    def _matches_search(self, record: Any) -> bool:
        term = self.search.strip().casefold()
        if not term:
            return True
        return any(term in str(field_value(record, name) or "").casefold() for name in self.search_fields)

    def _matches_exact(self, record: Any) -> bool:
        for name, wanted in self.exact.items():
            if is_unset(wanted):
                continue
            wanted = wanted.value if isinstance(wanted, Enum) else wanted
            if str(field_value(record, name)) != str(wanted):
                return False
        return True

    def _matches_dates(self, record: Any) -> bool:
        if self.date_field is None or (self.date_from is None and self.date_to is None):
            return True
        day = _as_date(field_value(record, self.date_field))
        if day is None:
            return False
        if self.date_from is not None and day < self.date_from:
            return False
        return self.date_to is None or day <= self.date_to

    def matches(self, record: Any) -> bool:
        return self._matches_search(record) and self._matches_exact(record) and self._matches_dates(record)

    def apply(self, records: Iterable[Any]) -> list[Any]:
        return [record for record in records if self.matches(record)]


@dataclass(frozen=True)
class TabPartition:
    """Mutually exclusive tabs over one status-like field, plus the ``all`` tab.

    Unmatched records fall in ``OTHER`` so the tab counts always add up to ``all``.
    """

    field: str
    tabs: Mapping[str, frozenset[str]]

    def __post_init__(self) -> None:
        for reserved in (ALL, OTHER):
            if reserved in self.tabs:
                raise ValueError(f"Tab key {reserved!r} is reserved")
        seen: dict[str, str] = {}
        for key, values in self.tabs.items():
            for value in values:
                if value in seen:
                    raise ValueError(f"Value {value!r} is in tabs {seen[value]!r} and {key!r}")
                seen[value] = key

    @classmethod
    def for_enum(
        cls,
        field_name: str,
        enum: type[Enum],
        tabs: Mapping[str, Iterable[Enum | str]] | None = None,
    ) -> TabPartition:
        """Build a partition that must cover every member of ``enum``; one tab per member by default."""
        if tabs is None:
            tabs = {member.value: (member,) for member in enum}
        normalized = {
            key: frozenset(getattr(value, "value", value) for value in values) for key, values in tabs.items()
        }
        partition = cls(field_name, normalized)
        covered = set().union(*normalized.values()) if normalized else set()
        members = {member.value for member in enum}
        missing = members - covered
        if missing:
            raise ValueError(f"Tabs do not cover {sorted(missing)}")
        unknown = covered - members
        if unknown:
            raise ValueError(f"Tabs reference unknown values {sorted(unknown)}")
        return partition

    @property
    def keys(self) -> list[str]:
        return [ALL, *self.tabs]

    def tab_of(self, record: Any) -> str:
        value = field_value(record, self.field)
        return next((key for key, values in self.tabs.items() if value in values), OTHER)

    def select(self, records: Iterable[Any], tab: str = ALL) -> list[Any]:
        if tab == ALL:
            return list(records)
        if tab != OTHER and tab not in self.tabs:
            raise KeyError(f"Unknown tab {tab!r}")
        return [record for record in records if self.tab_of(record) == tab]

    def counts(self, records: Sequence[Any]) -> dict[str, int]:
        counts = {key: 0 for key in self.tabs}
        for record in records:
            key = self.tab_of(record)
            counts[key] = counts.get(key, 0) + 1
        return {ALL: len(records), **counts}


def visible_rows(
    records: Iterable[Any],
    list_filter: ListFilter | None = None,
    partition: TabPartition | None = None,
    tab: str = ALL,
) -> list[Any]:
    rows = list(records)
    if partition is not None:
        rows = partition.select(rows, tab)
    if list_filter is not None:
        rows = list_filter.apply(rows)
    return rows


def _sort_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().casefold()
    return value


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def sort_rows(records: Iterable[Any], key: str | None, descending: bool = False) -> list[Any]:
    """Stable sort on one column; empty values always go last."""
    rows = list(records)
    if not key:
        return rows
    filled = [row for row in rows if not _is_empty(field_value(row, key))]
    empty = [row for row in rows if _is_empty(field_value(row, key))]
    ordered = sorted(filled, key=lambda row: _sort_value(field_value(row, key)), reverse=descending)
    return ordered + empty


def paginate(rows: Sequence[Any], page: int = 1, page_size: int = 25) -> dict[str, object]:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total = len(rows)
    start = max(page - 1, 0) * page_size
    return {
        "rows": list(rows[start : start + page_size]),
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": (total + page_size - 1) // page_size,
    }


@dataclass
class DeleteConfirmation:
    """Two-step destructive action: nothing is deleted until ``confirm``."""

    action: Callable[[Any], Any]
    notifications: NotificationCenter
    success_message: str = "Registro excluído com sucesso"
    pending: Any = None

    @property
    def is_open(self) -> bool:
        return self.pending is not None

    def request(self, record_id: Any) -> None:
        self.pending = record_id

    def cancel(self) -> None:
        self.pending = None

    def confirm(self) -> bool:
        if self.pending is None:
            return False
        record_id, self.pending = self.pending, None
        try:
            self.action(record_id)
        except (GatewayError, BusinessRuleError) as exc:
            self.notifications.error(user_message(exc))
            return False
        self.notifications.success(self.success_message)
        return True


PROJECT_SEARCH = ("nome", "descricao", "local", "responsavel", "entidade.nome")
ENTITY_SEARCH = ("nome", "documento", "email", "telefone")
CONTRACT_SEARCH = ("numero", "nome_evento", "entidade.nome", "projeto.nome")
MOVEMENT_SEARCH = ("descricao", "categoria", "projeto.nome")
TICKET_SALE_SEARCH = ("nome_comprador", "email_comprador", "ticket.tipo_ingresso", "ticket.contrato.nome_evento")
USER_SEARCH = ("nome", "email", "grupo.nome")

PROJECT_TABS = TabPartition.for_enum(
    "status",
    StatusProjeto,
    {
        "planejamento": (StatusProjeto.PLANEJAMENTO, StatusProjeto.APROVADO),
        "em_andamento": (StatusProjeto.EM_ANDAMENTO,),
        "concluido": (StatusProjeto.CONCLUIDO,),
        "cancelado": (StatusProjeto.CANCELADO,),
    },
)
CONTRACT_TABS = TabPartition.for_enum("status", StatusContrato)
MOVEMENT_TABS = TabPartition.for_enum("status", StatusMovimentacao)
TICKET_SALE_TABS = TabPartition.for_enum("status", StatusVenda)
