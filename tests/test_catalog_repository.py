"""Row locks taken by the catalog stock reads, checked against the Postgres dialect."""
import uuid

import pytest
from sqlalchemy.dialects import postgresql

from services.catalog_service.repository import CatalogRepository


class _RecordingSession:
    def __init__(self):
        self.statements = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return self

    def first(self):
        return None


def _postgres_sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.mark.parametrize(
    "read",
    [CatalogRepository.get_product_owner_and_stock, CatalogRepository.get_variant_owner_and_stock],
)
async def test_locked_stock_reads_do_not_block_foreign_key_checks(read):
    session = _RecordingSession()

    assert await read(session, uuid.uuid4(), for_update=True) is None

    [stmt] = session.statements
    assert _postgres_sql(stmt).endswith("FOR NO KEY UPDATE")


@pytest.mark.parametrize(
    "read",
    [CatalogRepository.get_product_owner_and_stock, CatalogRepository.get_variant_owner_and_stock],
)
async def test_plain_stock_reads_take_no_lock(read):
    session = _RecordingSession()

    await read(session, uuid.uuid4())

    [stmt] = session.statements
    assert "FOR " not in _postgres_sql(stmt)
