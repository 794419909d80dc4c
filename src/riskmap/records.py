"""Parse raw risk records and classify them into the admin0/1/2 hierarchy."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from riskmap.errors import LoadError
from riskmap.sources import Source, read_table, require_columns

RISK_LEVELS = (1, 2, 3, 4)
CODE_COLUMNS = ['gid0', 'gid1', 'gid2']
ELEVATION_COLUMNS = ['start_elevation_meters', 'end_elevation_meters']


@dataclass(frozen=True)
class RiskRecord:
    risk_level: int
    country_code: Optional[str] = None
    state_code: Optional[str] = None
    district_code: Optional[str] = None
    elevation_min: Optional[float] = None
    elevation_max: Optional[float] = None

    @property
    def is_elevated(self) -> bool:
        return self.elevation_min is not None or self.elevation_max is not None


@dataclass(frozen=True)
class RegionRiskIndex:
    """Risk level per code, one read-only mapping per administrative level."""

    country: Mapping[str, int]
    state: Mapping[str, int]
    district: Mapping[str, int]

    @classmethod
    def from_dicts(
        cls,
        country: Optional[Dict[str, int]] = None,
        state: Optional[Dict[str, int]] = None,
        district: Optional[Dict[str, int]] = None,
    ) -> 'RegionRiskIndex':
        return cls(
            country=MappingProxyType(dict(country or {})),
            state=MappingProxyType(dict(state or {})),
            district=MappingProxyType(dict(district or {})),
        )


@dataclass
class IngestStats:
    total: int = 0
    district: int = 0
    state: int = 0
    country: int = 0
    dropped_uncoded: int = 0
    excluded_elevated: int = 0
    overwritten: int = 0

    @property
    def dropped(self) -> int:
        return self.dropped_uncoded + self.excluded_elevated


def classify_records(records: Iterable[RiskRecord]) -> Tuple[RegionRiskIndex, IngestStats]:
    """Place each record in exactly one level mapping.

    Precedence is district > state > country. Country records carrying an
    elevation band describe an altitude-qualified observation and are left
    out. Repeated keys within a level are last-record-wins.
    """
    tables: Dict[str, Dict[str, int]] = {'district': {}, 'state': {}, 'country': {}}
    stats = IngestStats()
    for record in records:
        stats.total += 1
        if record.district_code:
            level, code = 'district', record.district_code
        elif record.state_code:
            level, code = 'state', record.state_code
        elif record.country_code and not record.is_elevated:
            level, code = 'country', record.country_code
        elif record.country_code:
            stats.excluded_elevated += 1
            continue
        else:
            stats.dropped_uncoded += 1
            continue
        table = tables[level]
        if code in table:
            stats.overwritten += 1
        table[code] = record.risk_level
        setattr(stats, level, getattr(stats, level) + 1)
    index = RegionRiskIndex.from_dicts(tables['country'], tables['state'], tables['district'])
    return index, stats


def _clean_code(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _clean_elevation(value, column: str) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise LoadError(f"Invalid {column}: {value!r}") from exc


def _clean_level(value) -> int:
    if pd.api.types.is_bool(value):
        raise LoadError(f"Invalid risk_level: {value!r}")
    try:
        level = int(value)
    except (TypeError, ValueError) as exc:
        raise LoadError(f"Invalid risk_level: {value!r}") from exc
    if level not in RISK_LEVELS or level != float(value):
        raise LoadError(f"risk_level out of range 1-4: {value!r}")
    return level


def records_from_frame(df: pd.DataFrame) -> List[RiskRecord]:
    if df.empty:
        return []
    require_columns(df, ['risk_level'], 'Risk records')
    records = []
    for row in df.to_dict(orient='records'):
        records.append(
            RiskRecord(
                risk_level=_clean_level(row['risk_level']),
                country_code=_clean_code(row.get('gid0')),
                state_code=_clean_code(row.get('gid1')),
                district_code=_clean_code(row.get('gid2')),
                elevation_min=_clean_elevation(row.get('start_elevation_meters'), 'start_elevation_meters'),
                elevation_max=_clean_elevation(row.get('end_elevation_meters'), 'end_elevation_meters'),
            )
        )
    return records


def load_risk_records(source: Source) -> List[RiskRecord]:
    return records_from_frame(read_table(source, text_columns=CODE_COLUMNS))
