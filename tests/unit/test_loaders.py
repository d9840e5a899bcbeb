"""
Unit tests for data loaders
"""

import pytest
from datetime import date
from unittest.mock import AsyncMock
from sqlalchemy.dialects import postgresql
from ingestion.loaders.postgres_loader import PostgresLoader
from models.external_data import MarketIndex, LocalEvent
from schemas.external import MarketIndexRow, EventRow
from core.exceptions import UpsertError


def market_rows(values):
    return [
        MarketIndexRow(date=date(2025, 8, 18), symbol=symbol, value=value)
        for symbol, value in values
    ]


class TestPostgresLoader:
    """Test PostgreSQL loader functionality"""

    def test_build_upsert_targets_natural_key(self):
        row = market_rows([("TOPIX", 2934.5)])[0]
        stmt = PostgresLoader.build_upsert(MarketIndex, row.dict(), ("date", "symbol"))

        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert "INSERT INTO ext_market_index" in sql
        assert "ON CONFLICT" in sql
        assert "DO UPDATE SET" in sql
        assert "value = excluded.value" in sql
        assert "excluded.symbol" not in sql
        assert "excluded.date" not in sql

    @pytest.mark.asyncio
    async def test_upsert_multiple_rows_commits_once(self):
        mock_session = AsyncMock()
        loader = PostgresLoader(mock_session)

        result = await loader.upsert(
            MarketIndex, market_rows([("TOPIX", 1.0), ("NIKKEI225", 2.0)]), ("date", "symbol")
        )

        assert result == 2
        assert mock_session.execute.call_count == 2
        mock_session.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_upsert_empty_list(self):
        mock_session = AsyncMock()
        loader = PostgresLoader(mock_session)

        result = await loader.upsert(MarketIndex, [], ("date", "symbol"))

        assert result == 0
        mock_session.execute.assert_not_called()
        mock_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, session_factory):
        factory = session_factory
        rows = market_rows([("TOPIX", 1.0), ("NIKKEI225", 2.0)])

        for _ in range(2):
            async with factory() as session:
                await PostgresLoader(session).upsert(MarketIndex, rows, ("date", "symbol"))

        stored = factory.store.rows("ext_market_index")
        assert len(stored) == 2

    @pytest.mark.asyncio
    async def test_upsert_last_write_wins(self, session_factory):
        factory = session_factory

        async with factory() as session:
            await PostgresLoader(session).upsert(
                MarketIndex, market_rows([("TOPIX", 1.0)]), ("date", "symbol")
            )
        async with factory() as session:
            await PostgresLoader(session).upsert(
                MarketIndex, market_rows([("TOPIX", 9.0)]), ("date", "symbol")
            )

        stored = factory.store.rows("ext_market_index")
        assert len(stored) == 1
        assert stored[0]["value"] == 9.0
        assert stored[0]["updated_at"] is not None

    @pytest.mark.asyncio
    async def test_empty_location_still_deduplicates(self, session_factory):
        factory = session_factory
        row = EventRow(date=date(2025, 8, 24), title="Tech Meetup")

        for _ in range(2):
            async with factory() as session:
                await PostgresLoader(session).upsert(
                    LocalEvent, [row], ("date", "title", "location")
                )

        assert len(factory.store.rows("ext_events")) == 1

    @pytest.mark.asyncio
    async def test_failure_rolls_back_everything(self, make_session_factory):
        factory = make_session_factory(fail_on_execute=RuntimeError("connection lost"), fail_after=1)

        with pytest.raises(UpsertError) as exc_info:
            async with factory() as session:
                await PostgresLoader(session).upsert(
                    MarketIndex, market_rows([("TOPIX", 1.0), ("NIKKEI225", 2.0)]), ("date", "symbol")
                )

        assert exc_info.value.context["row_index"] == 1
        assert "connection lost" in exc_info.value.message
        assert factory.store.rows("ext_market_index") == []
        assert factory.store.rollbacks == 1
        assert factory.store.commits == 0
