"""In-memory SQLite fixtures for range search tests."""

from typing import Generator

import pytest
from sqlalchemy import Column, Connection, Float, Integer, MetaData, Table, create_engine


@pytest.fixture
def prices_table() -> Table:
    metadata = MetaData()
    return Table(
        "prices",
        metadata,
        Column("entity_id", Integer, primary_key=True),
        Column("store_id", Integer, nullable=False),
        Column("price", Float, nullable=True),
    )


@pytest.fixture
def connection(prices_table) -> Generator[Connection, None, None]:
    engine = create_engine("sqlite:///:memory:")
    prices_table.metadata.create_all(engine)
    with engine.connect() as conn:
        yield conn
    engine.dispose()


@pytest.fixture
def load_prices(connection, prices_table):
    """Insert ``values`` for a store and return nothing."""

    def _load(values, store_id=1):
        connection.execute(
            prices_table.insert(),
            [{"store_id": store_id, "price": value} for value in values],
        )

    return _load
