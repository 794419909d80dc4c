"""Country boundary geometry for the bounds-fit phase of country navigation."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import shapefile  # type: ignore
from pyproj import Transformer

from riskmap.errors import LoadError
from riskmap.settings import COUNTRY_ISO_FIELD

Bounds = Tuple[float, float, float, float]


def _iter_positions(coordinates) -> Iterable[Sequence[float]]:
    if coordinates and isinstance(coordinates[0], (int, float)):
        yield coordinates
        return
    for part in coordinates:
        yield from _iter_positions(part)


def bounding_box(geometry: Dict) -> Optional[Bounds]:
    """Minimal ``(west, south, east, north)`` box around a GeoJSON geometry."""
    if geometry.get('type') == 'GeometryCollection':
        boxes = [box for box in (bounding_box(g) for g in geometry.get('geometries', [])) if box]
        if not boxes:
            return None
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )
    positions = list(_iter_positions(geometry.get('coordinates') or []))
    if not positions:
        return None
    xs = [p[0] for p in positions]
    ys = [p[1] for p in positions]
    return min(xs), min(ys), max(xs), max(ys)


def features_bounding_box(features: List[Dict]) -> Optional[Bounds]:
    """Union box of several features; vector tiles split one country across tiles."""
    return bounding_box(
        {'type': 'GeometryCollection', 'geometries': [f.get('geometry') or {} for f in features]}
    )


def _split_parts(points: List[Tuple[float, float]], parts: List[int]) -> List[List[List[float]]]:
    bounds = list(parts) + [len(points)]
    return [[list(pt) for pt in points[start:end]] for start, end in zip(bounds, bounds[1:])]


def load_boundary_features(
    path: Path,
    iso_field: str = 'ISO_A2',
    source_crs: Optional[str] = None,
) -> List[Dict]:
    """Read country polygons from a shapefile as GeoJSON-like features.

    Each ring of a shape becomes one polygon of a MultiPolygon; hole
    detection is unnecessary because only the extent is used.
    """
    path = Path(path)
    if not path.exists():
        raise LoadError(f"Missing boundary file: {path}")
    transformer = None
    if source_crs and source_crs.upper() != 'EPSG:4326':
        transformer = Transformer.from_crs(source_crs, 'EPSG:4326', always_xy=True)
    reader = shapefile.Reader(str(path))
    try:
        fields = [field[0] for field in reader.fields[1:]]
        if iso_field not in fields:
            raise LoadError(f"Boundary file has no {iso_field!r} field (found {fields})")
        features = []
        for shape_record in reader.iterShapeRecords():
            attr = {name: value for name, value in zip(fields, shape_record.record)}
            points = shape_record.shape.points
            if not points:
                continue
            if transformer is not None:
                points = [transformer.transform(x, y) for x, y in points]
            rings = _split_parts(points, list(shape_record.shape.parts))
            features.append(
                {
                    'type': 'Feature',
                    'properties': {COUNTRY_ISO_FIELD: str(attr[iso_field]).strip().upper()},
                    'geometry': {'type': 'MultiPolygon', 'coordinates': [[ring] for ring in rings]},
                }
            )
    finally:
        reader.close()
    return features
