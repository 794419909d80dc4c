"""Static country geocode table used by the "jump to country" navigation."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import pandas as pd

from riskmap.errors import ConfigurationError, LoadError
from riskmap.sources import Source, read_table, require_columns


@dataclass(frozen=True)
class CountryGeocodeEntry:
    name: str
    iso_code: str
    latitude: float
    longitude: float

    @property
    def center(self) -> List[float]:
        return [self.longitude, self.latitude]


class GeocodeTable:
    def __init__(self, entries: Iterable[CountryGeocodeEntry]):
        self._entries: Dict[str, CountryGeocodeEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise ConfigurationError(f"Duplicate country name in geocode table: {entry.name!r}")
            self._entries[entry.name] = entry

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str) -> CountryGeocodeEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise ConfigurationError(f"Country {name!r} is not in the geocode table") from None

    def names(self) -> List[str]:
        return sorted(self._entries)

    def to_records(self) -> List[Dict]:
        return [
            {
                'name': entry.name,
                'iso': entry.iso_code,
                'lat': entry.latitude,
                'lng': entry.longitude,
            }
            for entry in sorted(self._entries.values(), key=lambda e: e.name)
        ]


GEOCODE_COLUMNS = ['name', 'country', 'latitude', 'longitude']


def _clean_text(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _entry_from_row(row: Dict) -> CountryGeocodeEntry:
    name = _clean_text(row.get('name'))
    iso_code = _clean_text(row.get('country'))
    if name is None or iso_code is None:
        raise LoadError(f"Invalid geocode row {row!r}")
    try:
        latitude = float(row.get('latitude'))
        longitude = float(row.get('longitude'))
    except (TypeError, ValueError) as exc:
        raise LoadError(f"Invalid geocode row {row!r}: {exc}") from exc
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise LoadError(f"Invalid geocode row {row!r}")
    return CountryGeocodeEntry(name=name, iso_code=iso_code.upper(), latitude=latitude, longitude=longitude)


def geocodes_from_frame(df: pd.DataFrame) -> GeocodeTable:
    if df.empty:
        return GeocodeTable([])
    require_columns(df, GEOCODE_COLUMNS, 'Geocode table')
    entries = [_entry_from_row(row) for row in df.to_dict(orient='records')]
    try:
        return GeocodeTable(entries)
    except ConfigurationError as exc:
        raise LoadError(str(exc)) from exc


def load_geocodes(source: Source) -> GeocodeTable:
    return geocodes_from_frame(read_table(source, text_columns=['name', 'country']))
