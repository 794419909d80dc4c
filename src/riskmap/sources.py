"""Read risk and geocode tables from local files or HTTP endpoints."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Union

import pandas as pd
import requests

from riskmap.errors import LoadError
from riskmap.settings import REQUEST_TIMEOUT

Source = Union[str, Path]


def _is_url(source: Source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def _records_frame(payload, origin) -> pd.DataFrame:
    if not isinstance(payload, list):
        raise LoadError(f"Expected a JSON array from {origin}")
    return pd.DataFrame(payload)


def _fetch_json(url: str) -> List:
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        raise LoadError(f"Failed to fetch {url}: {exc}") from exc


def read_table(source: Source, text_columns: Iterable[str] = ()) -> pd.DataFrame:
    """Load a JSON array or CSV into a DataFrame.

    ``text_columns`` are kept as strings so codes such as ``"001"`` survive
    the CSV reader. JSON already carries its own types.
    """
    if _is_url(source):
        return _records_frame(_fetch_json(str(source)), source)
    path = Path(source)
    if not path.exists():
        raise LoadError(f"Missing source file: {path}")
    try:
        if path.suffix.lower() == '.csv':
            dtype = {column: str for column in text_columns}
            # "NA" is Namibia's ISO code, not a missing value
            return pd.read_csv(path, dtype=dtype, keep_default_na=False, na_values=[''])
        payload = json.loads(path.read_text(encoding='utf-8'))
    except ValueError as exc:
        raise LoadError(f"Could not parse {path}: {exc}") from exc
    return _records_frame(payload, path)


def require_columns(df: pd.DataFrame, required: Iterable[str], label: str) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        raise LoadError(f"{label} missing columns: {sorted(missing)}")
