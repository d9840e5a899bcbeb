"""
Read endpoint for the normalized external tables
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from api.dependencies import get_db
from schemas.api import ExternalDataResponse, SourceRows
from ingestion.sources import SourceSpec, get_source_spec, iter_source_specs
from models.base import SourceName
from typing import Any, Dict, Optional
from datetime import date, timedelta
import time
import uuid
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["External Data"])


def row_to_dict(spec: SourceSpec, row) -> Dict[str, Any]:
    return {
        column.name: getattr(row, column.name)
        for column in spec.model.__table__.columns
        if column.name != "id"
    }


def since_value(spec: SourceSpec, days: int):
    """Lower bound for the source's date column; inbound is keyed by YYYY-MM"""
    start = date.today() - timedelta(days=days)
    if spec.date_field == "year_month":
        return start.strftime("%Y-%m")
    return start


async def fetch_source_rows(db: AsyncSession, spec: SourceSpec, days: int, limit: int) -> SourceRows:
    date_column = getattr(spec.model, spec.date_field)
    result = await db.execute(
        select(spec.model)
        .where(date_column >= since_value(spec, days))
        .order_by(date_column.desc(), spec.model.id.desc())
        .limit(limit)
    )
    rows = result.scalars().all()
    return SourceRows(
        source=spec.name.value,
        table=spec.table_name,
        count=len(rows),
        items=[jsonable_encoder(row_to_dict(spec, row)) for row in rows]
    )


@router.get("/external", response_model=ExternalDataResponse)
async def get_external_data(
    request: Request,
    source: Optional[SourceName] = Query(None, description="Only this source"),
    days: int = Query(30, ge=1, le=3650, description="Look-back window in days"),
    limit: int = Query(100, ge=1, le=1000, description="Max rows per source"),
    db: AsyncSession = Depends(get_db)
):
    """
    Latest normalized rows per source, newest first.
    """
    start_time = time.time()
    request_id = getattr(request.state, "request_id", f"req_{uuid.uuid4().hex[:12]}")

    logger.info(f"[{request_id}] GET /external - source={source}, days={days}, limit={limit}")

    specs = [get_source_spec(source)] if source else iter_source_specs()
    sources = [await fetch_source_rows(db, spec, days, limit) for spec in specs]

    updated = [
        item["updated_at"] for rows in sources for item in rows.items if item.get("updated_at")
    ]

    api_latency_ms = (time.time() - start_time) * 1000
    logger.info(
        f"[{request_id}] Returned {sum(s.count for s in sources)} rows "
        f"from {len(sources)} sources ({api_latency_ms:.2f}ms)"
    )

    return ExternalDataResponse(
        days=days,
        sources=sources,
        last_updated=max(updated) if updated else None
    )
