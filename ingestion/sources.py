"""
Fixed registry of external sources: target table, canonical schema and natural key
"""

from dataclasses import dataclass
from typing import Dict, Tuple, Type
from models.base import Base, SourceName
from models.external_data import (
    MarketIndex,
    FXRate,
    WeatherDaily,
    LocalEvent,
    STEMNews,
    InboundStat,
)
from schemas.external import (
    CanonicalRow,
    MarketIndexRow,
    FXRateRow,
    WeatherRow,
    EventRow,
    STEMNewsRow,
    InboundRow,
)


@dataclass(frozen=True)
class SourceSpec:
    name: SourceName
    model: Type[Base]
    schema: Type[CanonicalRow]
    conflict_fields: Tuple[str, ...]
    date_field: str

    @property
    def table_name(self) -> str:
        return self.model.__tablename__


SOURCE_SPECS: Dict[SourceName, SourceSpec] = {
    SourceName.MARKET_INDEX: SourceSpec(
        name=SourceName.MARKET_INDEX,
        model=MarketIndex,
        schema=MarketIndexRow,
        conflict_fields=("date", "symbol"),
        date_field="date",
    ),
    SourceName.FX_RATES: SourceSpec(
        name=SourceName.FX_RATES,
        model=FXRate,
        schema=FXRateRow,
        conflict_fields=("date", "pair"),
        date_field="date",
    ),
    SourceName.WEATHER: SourceSpec(
        name=SourceName.WEATHER,
        model=WeatherDaily,
        schema=WeatherRow,
        conflict_fields=("date", "location"),
        date_field="date",
    ),
    SourceName.EVENTS: SourceSpec(
        name=SourceName.EVENTS,
        model=LocalEvent,
        schema=EventRow,
        conflict_fields=("date", "title", "location"),
        date_field="date",
    ),
    SourceName.STEM_NEWS: SourceSpec(
        name=SourceName.STEM_NEWS,
        model=STEMNews,
        schema=STEMNewsRow,
        conflict_fields=("published_date", "title", "source"),
        date_field="published_date",
    ),
    SourceName.INBOUND: SourceSpec(
        name=SourceName.INBOUND,
        model=InboundStat,
        schema=InboundRow,
        conflict_fields=("year_month", "country", "prefecture"),
        date_field="year_month",
    ),
}


def get_source_spec(source: SourceName) -> SourceSpec:
    return SOURCE_SPECS[SourceName(source)]


def iter_source_specs():
    """Specs in SourceName declaration order"""
    return [SOURCE_SPECS[name] for name in SourceName]
