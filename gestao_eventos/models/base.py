from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

from ..core.money import to_decimal


def _amount(value: Any) -> Any:
    return None if value is None else to_decimal(value)


Amount = Annotated[Decimal, BeforeValidator(_amount)]


class Record(BaseModel):
    """One backend row; columns the model does not declare are kept as extras."""

    model_config = ConfigDict(extra="allow")

    id: int | str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NamedRef(BaseModel):
    """Partial view of a joined row (usually ``id`` + ``nome``)."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    nome: str | None = None
