"""
ETL run result schemas.

Attribute names are snake_case; the JSON form uses the camelCase keys the
analytics layer and notification consumers read (recordsProcessed,
totalDuration, successCount, failureCount).
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from models.base import SourceName


class ETLResult(BaseModel):
    """Outcome of one source within one run"""
    source: SourceName
    success: bool
    records_processed: int = Field(0, ge=0, alias="recordsProcessed")
    duration: int = Field(0, ge=0, description="Milliseconds spent on fetch, normalize and persist")
    error: Optional[str] = None

    @classmethod
    def failed(cls, source: SourceName, error: str) -> "ETLResult":
        """Result recorded for a source whose retries were exhausted"""
        return cls(source=source, success=False, records_processed=0, duration=0, error=error)

    class Config:
        frozen = True
        populate_by_name = True
        use_enum_values = True


class ETLResults(BaseModel):
    """Aggregated outcome of a run, one ETLResult per source in source order"""
    total_duration: int = Field(..., ge=0, alias="totalDuration")
    success_count: int = Field(..., ge=0, alias="successCount")
    failure_count: int = Field(..., ge=0, alias="failureCount")
    results: List[ETLResult] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[ETLResult], total_duration: int) -> "ETLResults":
        success_count = sum(1 for r in results if r.success)
        return cls(
            total_duration=total_duration,
            success_count=success_count,
            failure_count=len(results) - success_count,
            results=list(results)
        )

    def to_json(self) -> dict:
        """JSON-ready dict using the camelCase keys"""
        return self.dict(by_alias=True, exclude_none=True)

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "totalDuration": 5234,
                "successCount": 5,
                "failureCount": 1,
                "results": [
                    {"source": "market_index", "success": True, "recordsProcessed": 5, "duration": 812},
                    {"source": "fx_rates", "success": False, "recordsProcessed": 0, "duration": 0,
                     "error": "fx_rates data ETL failed: HTTP 503 from upstream"}
                ]
            }
        }
