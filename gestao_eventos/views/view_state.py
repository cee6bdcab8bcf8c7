from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ListViewStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    SUCCESS = "success"
    PARTIAL_ERROR = "partial_error"
    FATAL = "fatal"


@dataclass(frozen=True)
class ListViewState:
    status: ListViewStatus
    message: str
    show_rows: bool

    def render(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message, "show_rows": self.show_rows}


def resolve_view_state(*, loading: bool, row_count: int, error: str | None) -> ListViewState:
    """Placeholder state for a list; raw errors never replace rows already on screen."""
    if loading and row_count == 0:
        return ListViewState(ListViewStatus.LOADING, "Carregando...", show_rows=False)
    if error and row_count == 0:
        return ListViewState(ListViewStatus.FATAL, error, show_rows=False)
    if error:
        return ListViewState(ListViewStatus.PARTIAL_ERROR, error, show_rows=True)
    if row_count == 0:
        return ListViewState(ListViewStatus.EMPTY, "Nenhum registro encontrado", show_rows=False)
    return ListViewState(ListViewStatus.SUCCESS, "", show_rows=True)
