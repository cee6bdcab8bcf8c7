from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a persisted amount (Decimal, int, float or numeric text) to Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc


def parse_decimal_text(text: str) -> Decimal:
    """Parse user-entered numbers in either pt-BR ("1.234,56") or plain ("1234.56") notation."""
    cleaned = text.replace("R$", "").replace(" ", "").replace("\xa0", "").strip()
    if not cleaned:
        raise ValueError("Valor numérico inválido")
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError("Valor numérico inválido") from exc
    if not value.is_finite():
        raise ValueError("Valor numérico inválido")
    return value


def quantize(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENTS)


def format_brl(value: Any) -> str:
    amount = quantize(value)
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}R$ {text}"
