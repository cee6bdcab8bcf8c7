from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from gestao_eventos.db.schema import create_schema
from gestao_eventos.gateway.sql import SqlGateway


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def gateway(engine) -> SqlGateway:
    return SqlGateway(engine)
