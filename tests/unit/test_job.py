"""
Unit tests for the ETL run job
"""

import asyncio
import re
import pytest
from unittest.mock import AsyncMock
from ingestion.job import ETLJob, new_run_id
from ingestion.runner import ETLRunner
from models.base import SourceName


def make_job(gateway, session_factory, sleep, timeout_seconds=600.0):
    runner = ETLRunner(session_factory, gateway, sleep=sleep)
    audit = AsyncMock()
    notifier = AsyncMock()
    return ETLJob(runner, audit, notifier, timeout_seconds=timeout_seconds), audit, notifier


def test_run_id_format():
    assert re.fullmatch(r"etl-\d{13}", new_run_id())


@pytest.mark.asyncio
async def test_successful_run_audits_and_notifies(make_gateway, session_factory, sleep_recorder, source_records):
    gateway = make_gateway({source: [records] for source, records in source_records.items()})
    job, audit, notifier = make_job(gateway, session_factory, sleep_recorder)

    outcome = await job.run(trigger="api", request_meta={"ip": "10.0.0.1", "user_agent": "curl/8"})

    assert outcome.success is True
    assert outcome.error is None
    assert outcome.results.success_count == 6

    audit.log_etl_start.assert_awaited_once_with(
        outcome.run_id, trigger="api", ip="10.0.0.1", ua="curl/8", request_id=None
    )
    audit.log_etl_success.assert_awaited_once()
    run_id, duration_ms, results, completed_at = audit.log_etl_success.await_args.args
    assert run_id == outcome.run_id
    assert results["successCount"] == 6
    audit.log_etl_failure.assert_not_awaited()

    notifier.send_etl_notification.assert_awaited_once()
    assert notifier.send_etl_notification.await_args.args == ("success",)


@pytest.mark.asyncio
async def test_partial_failure_is_still_a_successful_run(make_gateway, session_factory, sleep_recorder):
    gateway = make_gateway({SourceName.STEM_NEWS: [Exception("Persistent failure")]})
    job, audit, notifier = make_job(gateway, session_factory, sleep_recorder)

    outcome = await job.run()

    assert outcome.success is True
    assert outcome.results.failure_count == 1
    audit.log_etl_success.assert_awaited_once()


@pytest.mark.asyncio
async def test_timeout_becomes_failed_outcome(make_gateway, session_factory, sleep_recorder):
    class HangingGateway(make_gateway):
        async def fetch_market_data(self):
            await asyncio.sleep(10)
            return []

    job, audit, notifier = make_job(HangingGateway(), session_factory, sleep_recorder, timeout_seconds=0.05)

    outcome = await job.run()

    assert outcome.success is False
    assert outcome.results is None
    assert outcome.error == "ETL timeout after 0.05 seconds"

    audit.log_etl_failure.assert_awaited_once()
    assert audit.log_etl_failure.await_args.args[1] == outcome.error
    audit.log_etl_success.assert_not_awaited()
    assert notifier.send_etl_notification.await_args.args == ("failure",)
    assert notifier.send_etl_notification.await_args.kwargs["error"] == outcome.error


@pytest.mark.asyncio
async def test_unexpected_runner_error_becomes_failed_outcome():
    runner = AsyncMock()
    runner.run_full_etl.side_effect = RuntimeError("session factory misconfigured")
    job = ETLJob(runner, AsyncMock(), AsyncMock())

    outcome = await job.run()

    assert outcome.success is False
    assert outcome.error == "session factory misconfigured"
