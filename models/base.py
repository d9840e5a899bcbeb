from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceName(str, enum.Enum):
    """External datasets, in the order a run processes and reports them"""
    MARKET_INDEX = "market_index"
    FX_RATES = "fx_rates"
    WEATHER = "weather"
    EVENTS = "events"
    STEM_NEWS = "stem_news"
    INBOUND = "inbound"


class AuditAction(str, enum.Enum):
    """Audit log actions recorded for ETL runs"""
    ETL_START = "etl_start"
    ETL_SUCCESS = "etl_success"
    ETL_FAILURE = "etl_failure"
