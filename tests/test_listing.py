from __future__ import annotations

from datetime import date

import pytest

from gestao_eventos.core.errors import ConflictError
from gestao_eventos.models.financial import StatusMovimentacao
from gestao_eventos.models.registry import Projeto
from gestao_eventos.views.listing import (
    ALL,
    OTHER,
    PROJECT_SEARCH,
    PROJECT_TABS,
    DeleteConfirmation,
    ListFilter,
    TabPartition,
    field_value,
    paginate,
    sort_rows,
    visible_rows,
)
from gestao_eventos.views.notifications import NotificationCenter, NotificationKind
from gestao_eventos.views.view_state import ListViewStatus, resolve_view_state


def _project(project_id: int, nome: str, status: str, responsavel: str | None = None, **extra) -> Projeto:
    return Projeto(
        id=project_id,
        nome=nome,
        status=status,
        responsavel=responsavel,
        data_inicio=extra.pop("data_inicio", date(2026, 3, project_id)),
        data_fim=date(2026, 3, 28),
        **extra,
    )


@pytest.fixture()
def projects() -> list[Projeto]:
    return [
        _project(1, "Festival de Verão", "planejamento", "Carla", entidade={"id": 9, "nome": "Produtora Aurora"}),
        _project(2, "Feira do Livro", "aprovado", "Bruno"),
        _project(3, "Congresso Médico", "em_andamento", None),
        _project(4, "Show de Rock", "concluido", "Ana"),
        _project(5, "Feira de Artesanato", "cancelado", "Carla"),
    ]


def test_field_value_reads_joined_paths() -> None:
    record = {"projeto": {"nome": "Festival"}, "status": StatusMovimentacao.PAGO}

    assert field_value(record, "projeto.nome") == "Festival"
    assert field_value(record, "status") == "pago"
    assert field_value(record, "canal.nome") is None


def test_search_is_case_insensitive_across_fields(projects) -> None:
    by_client = ListFilter(PROJECT_SEARCH, search="aurora")
    by_name = ListFilter(PROJECT_SEARCH, search="  FEIRA ")

    assert [item.id for item in by_client.apply(projects)] == [1]
    assert [item.id for item in by_name.apply(projects)] == [2, 5]


def test_filters_compose_with_and(projects) -> None:
    list_filter = ListFilter(
        PROJECT_SEARCH,
        search="feira",
        exact={"responsavel": "Carla", "status": ALL},
        date_field="data_inicio",
        date_from=date(2026, 3, 3),
    )

    assert [item.id for item in list_filter.apply(projects)] == [5]


def test_date_range_is_inclusive_and_skips_missing_dates(projects) -> None:
    rows = projects + [Projeto(id=6, nome="Sem data", status="planejamento")]
    list_filter = ListFilter(date_field="data_inicio", date_from=date(2026, 3, 2), date_to=date(2026, 3, 4))

    assert [item.id for item in list_filter.apply(rows)] == [2, 3, 4]


def test_tab_counts_ignore_the_active_filter(projects) -> None:
    list_filter = ListFilter(PROJECT_SEARCH, search="feira")

    counts = PROJECT_TABS.counts(projects)
    rows = visible_rows(projects, list_filter, PROJECT_TABS, "planejamento")

    assert counts == {ALL: 5, "planejamento": 2, "em_andamento": 1, "concluido": 1, "cancelado": 1}
    assert [item.id for item in rows] == [2]
    assert PROJECT_TABS.tab_of(projects[1]) == "planejamento"


def test_unknown_tab_is_rejected(projects) -> None:
    with pytest.raises(KeyError):
        PROJECT_TABS.select(projects, "arquivado")


def test_unlisted_status_lands_in_the_other_tab(projects) -> None:
    archived = _project(6, "Mostra de Cinema", "arquivado", "Ana")
    records = [*projects, archived]

    counts = PROJECT_TABS.counts(records)

    assert PROJECT_TABS.tab_of(archived) == OTHER
    assert counts[OTHER] == 1
    assert sum(value for key, value in counts.items() if key != ALL) == counts[ALL]
    assert PROJECT_TABS.select(records, OTHER) == [archived]
    assert OTHER not in PROJECT_TABS.counts(projects)


def test_partition_must_be_exclusive_and_complete() -> None:
    with pytest.raises(ValueError, match="cover"):
        TabPartition.for_enum("status", StatusMovimentacao, {"abertos": ["pendente"], "pagos": ["pago"]})
    with pytest.raises(ValueError, match="unknown"):
        TabPartition.for_enum(
            "status",
            StatusMovimentacao,
            {"abertos": ["pendente", "atrasado"], "pagos": ["pago"], "cancelados": ["cancelado"]},
        )
    with pytest.raises(ValueError):
        TabPartition("status", {"a": frozenset({"pago"}), "b": frozenset({"pago"})})
    with pytest.raises(ValueError, match="reserved"):
        TabPartition("status", {ALL: frozenset({"pago"})})


def test_default_enum_partition_has_one_tab_per_member() -> None:
    partition = TabPartition.for_enum("status", StatusMovimentacao)

    assert partition.keys == [ALL, "pendente", "pago", "cancelado"]


def test_sort_keeps_empty_values_last(projects) -> None:
    ascending = sort_rows(projects, "responsavel")
    descending = sort_rows(projects, "responsavel", descending=True)

    assert [item.id for item in ascending] == [4, 2, 1, 5, 3]
    assert [item.id for item in descending][-1] == 3
    assert sort_rows(projects, None) == projects


def test_paginate() -> None:
    page = paginate(list(range(53)), page=3, page_size=25)

    assert page["rows"] == [50, 51, 52]
    assert page["total"] == 53
    assert page["total_pages"] == 3
    assert paginate([], page=1)["total_pages"] == 0
    with pytest.raises(ValueError):
        paginate([1], page_size=0)


def test_delete_confirmation_runs_only_after_confirm() -> None:
    deleted: list[int] = []
    notifications = NotificationCenter()
    confirmation = DeleteConfirmation(deleted.append, notifications)

    confirmation.request(7)
    assert confirmation.is_open
    confirmation.cancel()
    assert confirmation.confirm() is False
    assert deleted == []

    confirmation.request(7)
    assert confirmation.confirm() is True
    assert deleted == [7]
    assert not confirmation.is_open
    assert notifications.latest.message == "Registro excluído com sucesso"


def test_delete_confirmation_reports_failures() -> None:
    def _refuse(record_id: int) -> None:
        raise ConflictError(code="23503", message="fk violation", status_code=409)

    notifications = NotificationCenter()
    confirmation = DeleteConfirmation(_refuse, notifications)
    confirmation.request(1)

    assert confirmation.confirm() is False
    assert notifications.latest.kind is NotificationKind.ERROR
    assert notifications.latest.message == "Já existe um registro com estes dados."


@pytest.mark.parametrize(
    ("loading", "rows", "error", "status", "show_rows"),
    [
        (True, 0, None, ListViewStatus.LOADING, False),
        (True, 3, None, ListViewStatus.SUCCESS, True),
        (False, 0, None, ListViewStatus.EMPTY, False),
        (False, 0, "falhou", ListViewStatus.FATAL, False),
        (False, 4, "falhou", ListViewStatus.PARTIAL_ERROR, True),
    ],
)
def test_resolve_view_state(loading: bool, rows: int, error: str | None, status: ListViewStatus, show_rows: bool) -> None:
    state = resolve_view_state(loading=loading, row_count=rows, error=error)

    assert state.status is status
    assert state.show_rows is show_rows
    assert state.render()["status"] == status.value
