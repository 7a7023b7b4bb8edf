import os

# In-memory database for tests; must be set before vatpricing is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vatpricing import models  # noqa: F401
from vatpricing.database import Base, get_db
from vatpricing.engine.types import Rule, RuleType
from vatpricing.main import app
from vatpricing.storage.repositories import upsert_country, upsert_rule


@pytest.fixture
def anyio_backend():
    # asyncio only, no Trio
    return "asyncio"


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def seeded(session_maker):
    """GB and DE with one VAT rule each."""
    async with session_maker() as session:
        await upsert_country(session, "GB", "United Kingdom", "GBP", True)
        await upsert_country(session, "DE", "Germany", "EUR", True)
        for code, rate, name in (("GB", "0.20", "UK VAT"), ("DE", "0.19", "German VAT")):
            await upsert_rule(
                session,
                Rule(
                    rule_id=f"{code}-VAT-001",
                    country_code=code,
                    rule_type=RuleType.VAT_RATE,
                    name=name,
                    expression=f"basePrice * {rate}",
                    effective_from=date(2024, 1, 1),
                ),
            )
        await session.commit()
    return session_maker


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
