"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from schemas.etl import ETLResults

# ============================================================================
# ETL Trigger Schemas
# ============================================================================

class ETLRunData(BaseModel):
    run_id: str
    duration_ms: int
    results: Dict[str, Any]
    completed_at: datetime


class ETLSuccessResponse(BaseModel):
    """Body of a completed run (HTTP 200). Per-source failures live in results."""
    success: bool = True
    message: str = "ETL process completed successfully"
    data: ETLRunData

    @classmethod
    def build(cls, run_id: str, duration_ms: int, results: ETLResults, completed_at: datetime):
        return cls(
            data=ETLRunData(
                run_id=run_id,
                duration_ms=duration_ms,
                results=results.to_json(),
                completed_at=completed_at
            )
        )

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "ETL process completed successfully",
                "data": {
                    "run_id": "etl-1755586800000",
                    "duration_ms": 5310,
                    "results": {
                        "totalDuration": 5234,
                        "successCount": 6,
                        "failureCount": 0,
                        "results": []
                    },
                    "completed_at": "2025-08-19T06:00:05.310000+00:00"
                }
            }
        }


class ETLFailureData(BaseModel):
    duration_ms: int
    failed_at: datetime


class ETLFailureResponse(BaseModel):
    """Body of a run that timed out or raised (HTTP 500)"""
    success: bool = False
    message: str = "ETL process failed"
    error: str
    data: ETLFailureData


class UnauthorizedResponse(BaseModel):
    success: bool = False
    message: str

# ============================================================================
# Health Check Schemas
# ============================================================================

class LastRunInfo(BaseModel):
    """Most recent finished ETL run, read from the audit log"""
    run_id: Optional[str] = None
    action: str
    at: datetime
    duration_ms: Optional[int] = None
    success_count: Optional[int] = None
    failure_count: Optional[int] = None
    error: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    last_run: Optional[LastRunInfo] = None

    @staticmethod
    def determine_status(database_connected: bool, last_run: Optional[LastRunInfo]) -> str:
        """Determine overall health status"""
        if not database_connected:
            return "unhealthy"

        if last_run is None:
            return "healthy"  # No ETL run recorded yet

        if last_run.action == "etl_failure":
            return "unhealthy"
        if last_run.failure_count:
            return "degraded"
        return "healthy"

# ============================================================================
# External Data Schemas
# ============================================================================

class SourceRows(BaseModel):
    source: str
    table: str
    count: int
    items: List[Dict[str, Any]] = Field(default_factory=list)


class ExternalDataResponse(BaseModel):
    """Latest normalized rows per source"""
    days: int
    sources: List[SourceRows]
    last_updated: Optional[datetime] = None
