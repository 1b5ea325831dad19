import pytest
from sqlalchemy.pool import StaticPool

from datacore.infra.database import DatabaseContext, _apply_asyncpg_scheme
from datacore.infra.unit_of_work import SqlAlchemyUnitOfWork


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+psycopg2://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ],
)
def test_apply_asyncpg_scheme(url, expected):
    assert _apply_asyncpg_scheme(url) == expected


@pytest.mark.asyncio
async def test_in_memory_sqlite_uses_one_shared_connection():
    async with DatabaseContext("sqlite:///:memory:") as database:
        assert database.database_url == "sqlite+aiosqlite:///:memory:"
        assert isinstance(database.engine.pool, StaticPool)


@pytest.mark.asyncio
async def test_unit_of_work_session_only_inside_block(db):
    uow = db.unit_of_work()
    assert isinstance(uow, SqlAlchemyUnitOfWork)
    with pytest.raises(RuntimeError):
        _ = uow.session
    async with uow:
        assert uow.session is not None
    with pytest.raises(RuntimeError):
        _ = uow.session
