"""Financial forms.

Revenues and expenses are one table told apart by ``tipo``; each kind is its
own form variant carrying the category kinds it accepts, and the union is
checked against ``TipoMovimentacao`` when this module is imported.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, ClassVar, Literal, Mapping, Union

from pydantic import Field, TypeAdapter, ValidationError, ValidationInfo, field_validator

from ..models.financial import StatusFechamento, StatusMovimentacao, TipoCategoria, TipoMovimentacao
from .base import FormModel, FormResult, Money, field_errors_from

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CategoriaForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "tipo": "Tipo é obrigatório",
        "cor": "Cor é obrigatória",
        "cor:string_pattern_mismatch": "Cor inválida",
    }

    nome: str = Field(min_length=1, max_length=100)
    tipo: TipoCategoria
    descricao: str | None = None
    cor: str = Field(pattern=HEX_COLOR)
    ativo: bool = True


class _MovementForm(FormModel):
    messages = {
        "descricao": "Descrição é obrigatória",
        "categoria": "Categoria é obrigatória",
        "valor": "Valor é obrigatório",
        "valor:greater_than": "Valor deve ser maior que zero",
        "data_vencimento": "Data de vencimento é obrigatória",
        "tipo": "Tipo é obrigatório",
    }
    fk_fields = ("projeto_id",)
    category_kinds: ClassVar[frozenset[str]] = frozenset()

    descricao: str = Field(min_length=1)
    categoria: str = Field(min_length=1)
    projeto_id: int | None = None
    valor: Money = Field(gt=0)
    data_vencimento: date
    data_pagamento: date | None = None
    status: StatusMovimentacao = StatusMovimentacao.PENDENTE
    observacoes: str | None = None

    @field_validator("categoria")
    @classmethod
    def _category_fits_kind(cls, value: str, info: ValidationInfo) -> str:
        categorias = (info.context or {}).get("categorias")
        if categorias is None:
            return value
        allowed = {item.nome for item in categorias if item.ativo and item.tipo in cls.category_kinds}
        if value not in allowed:
            raise ValueError("Categoria não disponível para este tipo de lançamento")
        return value

    @field_validator("status")
    @classmethod
    def _status_payment_date(cls, value: Any, info: ValidationInfo) -> Any:
        paid = getattr(value, "value", value) == StatusMovimentacao.PAGO.value
        if paid and info.data.get("data_pagamento") is None:
            raise ValueError("Data de pagamento é obrigatória para lançamentos pagos")
        return value


class ReceitaForm(_MovementForm):
    category_kinds = frozenset({TipoCategoria.RECEITA.value, TipoCategoria.AMBOS.value})

    tipo: Literal["receita"] = "receita"


class DespesaForm(_MovementForm):
    category_kinds = frozenset({TipoCategoria.DESPESA.value, TipoCategoria.AMBOS.value})

    tipo: Literal["despesa"] = "despesa"


MOVEMENT_VARIANTS: tuple[type[_MovementForm], ...] = (ReceitaForm, DespesaForm)
VARIANT_BY_TIPO: dict[str, type[_MovementForm]] = {
    variant.model_fields["tipo"].default: variant for variant in MOVEMENT_VARIANTS
}

if set(VARIANT_BY_TIPO) != {tipo.value for tipo in TipoMovimentacao}:
    raise TypeError(f"Movement form variants {sorted(VARIANT_BY_TIPO)} do not match TipoMovimentacao")

MovementInput = Annotated[Union[ReceitaForm, DespesaForm], Field(discriminator="tipo")]
_movement_adapter: TypeAdapter[Any] = TypeAdapter(MovementInput)


class MovementForm:
    """Form set for revenues and expenses, dispatched on ``tipo``."""

    messages = _MovementForm.messages

    @staticmethod
    def variant(tipo: TipoMovimentacao | str) -> type[_MovementForm]:
        return VARIANT_BY_TIPO[TipoMovimentacao(tipo).value]

    @classmethod
    def validate_input(cls, values: Mapping[str, Any], context: Mapping[str, Any] | None = None) -> FormResult:
        try:
            form = _movement_adapter.validate_python(dict(values), context=dict(context) if context else None)
        except ValidationError as exc:
            return FormResult(
                values=dict(values),
                field_errors=field_errors_from(exc, cls.messages, fallback_field="tipo"),
            )
        return FormResult(values=form.to_payload(), field_errors={})

    @classmethod
    def initial_values(cls, record: Any | None = None, tipo: TipoMovimentacao | str | None = None) -> dict[str, Any]:
        if tipo is None:
            tipo = getattr(record, "tipo", None) if record is not None else None
        return cls.variant(tipo or TipoMovimentacao.RECEITA).initial_values(record)


class FechamentoForm(FormModel):
    messages = {
        "projeto_id": "Projeto é obrigatório",
        "data_fechamento": "Data é obrigatória",
        "total_receitas:greater_than_equal": "Total de receitas deve ser maior ou igual a zero",
        "total_despesas:greater_than_equal": "Total de despesas deve ser maior ou igual a zero",
    }

    projeto_id: int
    data_fechamento: date
    total_receitas: Money = Field(ge=0)
    total_despesas: Money = Field(ge=0)
    status: StatusFechamento = StatusFechamento.PENDENTE
    observacoes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["resultado"] = self.total_receitas - self.total_despesas
        return payload
