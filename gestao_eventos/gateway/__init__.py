from __future__ import annotations

from ..core.config import Settings
from .base import AuthGateway, AuthSession, Embed, Filter, Gateway, Op, Order, Query, Row, eq


def build_gateway(settings: Settings) -> Gateway:
    if settings.GATEWAY_BACKEND == "sql":
        from .sql import SqlGateway

        return SqlGateway.from_settings(settings)
    from .rest import RestGateway

    return RestGateway.from_settings(settings)


__all__ = [
    "AuthGateway",
    "AuthSession",
    "Embed",
    "Filter",
    "Gateway",
    "Op",
    "Order",
    "Query",
    "Row",
    "build_gateway",
    "eq",
]
