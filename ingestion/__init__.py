"""
ETL pipeline for external datasets.

Modules:
    base: DataSourceGateway contract, one fetch per external source
    sources: Fixed source registry (table, canonical schema, natural key)
    processor: Per-source fetch -> normalize -> upsert
    retry: Bounded retry with exponential backoff
    runner: Orchestrator running every source with fault isolation
    deadline: Wall-clock budget for a whole run
    job: One run with run id, audit trail and notification
    scheduler: APScheduler cron trigger for automated runs

Subpackages:
    extractors: HTTP gateway implementation
    transformers: Record normalization and validation
    loaders: Natural-key upsert into PostgreSQL

Usage:
    from ingestion.extractors.api_extractor import APIDataSourceGateway
    from ingestion.runner import ETLRunner

    runner = ETLRunner(session_factory, APIDataSourceGateway.from_settings())
    results = await runner.run_full_etl()

    print(f"{results.success_count} sources succeeded")
"""
