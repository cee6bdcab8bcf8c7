"""Form schemas: field validation and the mapping between form text and persisted values.

Validation never touches the network. ``validate_input`` returns a
``FormResult`` whose ``values`` are already in persistence shape (``None``
for blanks, ``Decimal``/``int``/``date`` for typed fields) or whose
``field_errors`` carry one pt-BR message per field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Mapping

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError, model_validator

from ..core.money import parse_decimal_text

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NONE_OPTION = "none"
INVALID_EMAIL = "Email inválido"
INVALID_NUMBER = "Valor numérico inválido"
INVALID_DATE = "Data inválida"
INVALID_OPTION = "Opção inválida"
REQUIRED = "Campo obrigatório"


@dataclass
class FormResult:
    values: dict[str, Any]
    field_errors: dict[str, str]

    @property
    def first_invalid_field(self) -> str | None:
        return next(iter(self.field_errors), None)

    @property
    def is_valid(self) -> bool:
        return len(self.field_errors) == 0


def _money(value: Any) -> Any:
    if isinstance(value, str):
        return parse_decimal_text(value)
    return value


def _integer(value: Any) -> Any:
    if isinstance(value, str):
        amount = parse_decimal_text(value)
        if amount != amount.to_integral_value():
            raise ValueError(INVALID_NUMBER)
        return int(amount)
    return value


def _email(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().lower()
        if not EMAIL_REGEX.match(value):
            raise ValueError(INVALID_EMAIL)
    return value


Money = Annotated[Decimal, BeforeValidator(_money)]
Integer = Annotated[int, BeforeValidator(_integer)]
Email = Annotated[str, BeforeValidator(_email)]


def _format_error(error: Mapping[str, Any], field: str, messages: Mapping[str, str]) -> str:
    kind = error["type"]
    override = messages.get(f"{field}:{kind}")
    if override:
        return override
    ctx = error.get("ctx") or {}
    if kind in {"missing", "string_too_short", "union_tag_not_found"}:
        if kind == "string_too_short" and field not in messages:
            return f"Deve ter pelo menos {ctx.get('min_length')} caracteres"
        return messages.get(field, REQUIRED)
    if kind == "string_too_long":
        return f"Deve ter no máximo {ctx.get('max_length')} caracteres"
    if kind == "value_error":
        return str(ctx.get("error") or error.get("msg"))
    if kind in {"enum", "literal_error", "union_tag_invalid"}:
        return INVALID_OPTION
    if kind in {"greater_than_equal", "greater_than"}:
        bound = ctx.get("ge", ctx.get("gt"))
        relation = "maior ou igual a" if kind == "greater_than_equal" else "maior que"
        return f"Valor deve ser {relation} {bound}"
    if kind in {"less_than_equal", "less_than"}:
        bound = ctx.get("le", ctx.get("lt"))
        relation = "menor ou igual a" if kind == "less_than_equal" else "menor que"
        return f"Valor deve ser {relation} {bound}"
    if kind.startswith(("date_", "datetime_")):
        return INVALID_DATE
    if kind.startswith(("int_", "decimal_", "float_")):
        return INVALID_NUMBER
    return str(error.get("msg"))


def field_errors_from(exc: ValidationError, messages: Mapping[str, str], fallback_field: str = "form") -> dict[str, str]:
    """First message per field, keyed by the innermost field name of each error location."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        names = [part for part in error["loc"] if isinstance(part, str)]
        field = names[-1] if names else fallback_field
        errors.setdefault(field, _format_error(error, field, messages))
    return errors


def _display(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, Decimal)):
        return str(value)
    return value


class FormModel(BaseModel):
    """Base schema: blanks become ``None``, the ``"none"`` option clears a foreign key."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, validate_default=True, extra="ignore")

    # field -> required message; "field:error_type" -> message override
    messages: ClassVar[dict[str, str]] = {}
    fk_fields: ClassVar[tuple[str, ...]] = ()
    transient_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _blank_to_missing(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        clean: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, str):
                stripped = value.strip()
                if not stripped or (key in cls.fk_fields and stripped == NONE_OPTION):
                    continue
            if value is None:
                continue
            clean[key] = value
        return clean

    @classmethod
    def validate_input(cls, values: Mapping[str, Any], context: Mapping[str, Any] | None = None) -> FormResult:
        try:
            form = cls.model_validate(dict(values), context=dict(context) if context else None)
        except ValidationError as exc:
            return FormResult(values=dict(values), field_errors=field_errors_from(exc, cls.messages))
        return FormResult(values=form.to_payload(), field_errors={})

    @classmethod
    def initial_values(cls, record: Any | None = None) -> dict[str, Any]:
        """Form text for a new record (defaults) or for editing ``record``."""
        values: dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            if name in cls.transient_fields:
                values[name] = ""
                continue
            if record is None:
                raw = None if info.is_required() else info.get_default(call_default_factory=True)
            elif isinstance(record, Mapping):
                raw = record.get(name)
            else:
                raw = getattr(record, name, None)
            if name in cls.fk_fields:
                # "none" means an explicit "no relation"; "" means nothing chosen yet.
                values[name] = NONE_OPTION if raw is None and record is not None else _display(raw) or ""
                continue
            shown = _display(raw)
            values[name] = "" if shown is None else shown
        return values

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude=set(self.transient_fields))
