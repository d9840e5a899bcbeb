"""
Unit tests for the pipeline orchestrator
"""

import asyncio
import pytest
from ingestion.runner import ETLRunner
from models.base import SourceName
from core.exceptions import NetworkError

ALL_SOURCES = [s.value for s in SourceName]


def make_runner(gateway, session_factory, sleep, **kwargs):
    return ETLRunner(session_factory, gateway, sleep=sleep, **kwargs)


class TestETLRunner:

    @pytest.mark.asyncio
    async def test_all_sources_succeed(self, make_gateway, session_factory, sleep_recorder, source_records):
        gateway = make_gateway({source: [records] for source, records in source_records.items()})
        runner = make_runner(gateway, session_factory, sleep_recorder)

        results = await runner.run_full_etl()

        assert [r.source for r in results.results] == ALL_SOURCES
        assert results.success_count == 6
        assert results.failure_count == 0
        assert [r.records_processed for r in results.results] == [5, 3, 1, 2, 1, 2]
        assert results.total_duration >= 0
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_persistent_failure_is_isolated(self, make_gateway, session_factory, sleep_recorder, source_records):
        outcomes = {source: [records] for source, records in source_records.items()}
        outcomes[SourceName.FX_RATES] = [Exception("Persistent failure")]
        gateway = make_gateway(outcomes)
        runner = make_runner(gateway, session_factory, sleep_recorder)

        results = await runner.run_full_etl()

        assert results.success_count == 5
        assert results.failure_count == 1
        assert len(results.results) == 6

        fx = results.results[1]
        assert fx.source == "fx_rates"
        assert fx.success is False
        assert fx.records_processed == 0
        assert fx.duration == 0
        assert fx.error == "fx_rates data ETL failed: Persistent failure"

        # The failing source was attempted exactly max_retries times
        assert gateway.calls[SourceName.FX_RATES] == 3
        assert gateway.calls[SourceName.MARKET_INDEX] == 1
        assert sleep_recorder.delays == [2.0, 4.0]

        # Siblings after the failing source were still persisted
        assert len(session_factory.store.rows("ext_inbound")) == 2

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self, make_gateway, session_factory, sleep_recorder, source_records):
        outcomes = {
            SourceName.WEATHER: [
                NetworkError("timeout"),
                NetworkError("timeout"),
                source_records[SourceName.WEATHER],
            ]
        }
        gateway = make_gateway(outcomes)
        runner = make_runner(gateway, session_factory, sleep_recorder)

        results = await runner.run_full_etl()

        weather = results.results[2]
        assert weather.success is True
        assert weather.records_processed == 1
        assert gateway.calls[SourceName.WEATHER] == 3
        assert results.failure_count == 0

    @pytest.mark.asyncio
    async def test_all_sources_failing_still_returns_results(self, make_gateway, session_factory, sleep_recorder):
        gateway = make_gateway({source: [RuntimeError("down")] for source in SourceName})
        runner = make_runner(gateway, session_factory, sleep_recorder, max_retries=2)

        results = await runner.run_full_etl()

        assert results.success_count == 0
        assert results.failure_count == 6
        assert all(r.error.endswith("data ETL failed: down") for r in results.results)
        assert gateway.total_calls == 12

    @pytest.mark.asyncio
    async def test_empty_sources(self, make_gateway, session_factory, sleep_recorder):
        runner = make_runner(make_gateway(), session_factory, sleep_recorder)

        results = await runner.run_full_etl()

        assert results.success_count == 6
        assert all(r.records_processed == 0 for r in results.results)
        assert session_factory.opened == 0

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, make_gateway, session_factory, sleep_recorder, source_records):
        gateway = make_gateway({source: [records] for source, records in source_records.items()})
        runner = make_runner(gateway, session_factory, sleep_recorder)

        first = await runner.run_full_etl()
        second = await runner.run_full_etl()

        assert [r.records_processed for r in first.results] == [r.records_processed for r in second.results]
        assert len(session_factory.store.rows("ext_market_index")) == 5
        assert len(session_factory.store.rows("ext_events")) == 2

    @pytest.mark.asyncio
    async def test_concurrent_results_keep_source_order(self, make_gateway, session_factory, sleep_recorder, source_records):
        class SlowFirstGateway(make_gateway):
            async def fetch_market_data(self):
                await asyncio.sleep(0.05)
                return await super().fetch_market_data()

        gateway = SlowFirstGateway({source: [records] for source, records in source_records.items()})
        runner = make_runner(gateway, session_factory, sleep_recorder, max_concurrency=6)

        results = await runner.run_full_etl()

        assert [r.source for r in results.results] == ALL_SOURCES
        assert results.success_count == 6

    @pytest.mark.asyncio
    async def test_json_form_uses_camel_case(self, make_gateway, session_factory, sleep_recorder):
        gateway = make_gateway({SourceName.EVENTS: [Exception("Persistent failure")]})
        runner = make_runner(gateway, session_factory, sleep_recorder)

        payload = (await runner.run_full_etl()).to_json()

        assert set(payload) == {"totalDuration", "successCount", "failureCount", "results"}
        assert payload["results"][0] == {
            "source": "market_index",
            "success": True,
            "recordsProcessed": 0,
            "duration": payload["results"][0]["duration"],
        }
        assert payload["results"][3]["error"] == "events data ETL failed: Persistent failure"

    def test_rejects_zero_concurrency(self, make_gateway, session_factory):
        with pytest.raises(ValueError):
            ETLRunner(session_factory, make_gateway(), max_concurrency=0)
