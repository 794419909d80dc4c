"""Overlay sources, layer definitions and display-mode visibility."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List

from riskmap.expressions import CompiledStyle, to_mapbox
from riskmap.render import MapHandle
from riskmap.settings import (
    ADM0_SOURCE_LAYER,
    ADM1_SOURCE_LAYER,
    ADM2_SOURCE_LAYER,
    ADMIN_TILESET_URL,
    CONTOURS_URL,
    COUNTRY_BOUNDARIES_LAYER,
    COUNTRY_BOUNDARIES_URL,
    DEM_URL,
    ELEVATION_MASK_MIN_M,
    RISK_OPACITY,
    TERRAIN_EXAGGERATION,
)

ADMIN_SOURCE = 'admin-boundaries'
COUNTRY_SOURCE = 'country-boundaries'
DEM_SOURCE = 'mapbox-dem'
CONTOUR_SOURCE = 'terrain-contours'

COUNTRY_RISK = 'country-risk'
STATE_RISK = 'state-risk'
DISTRICT_RISK = 'district-risk'
ELEVATION = 'elevation'
ELEVATION_MASK = 'elevation-mask'
HILLSHADE = 'hillshade'
STATE_LINES = 'state-lines'
DISTRICT_LINES = 'district-lines'
COUNTRY_MASK = 'country-mask'

RISK_MODE_LAYERS = (COUNTRY_RISK, STATE_RISK, DISTRICT_RISK, ELEVATION_MASK)
ELEVATION_MODE_LAYERS = (ELEVATION,)
BOUNDARY_LINE_LAYERS = (STATE_LINES, DISTRICT_LINES)

TERRAIN = {'source': DEM_SOURCE, 'exaggeration': TERRAIN_EXAGGERATION}

ELEVATION_RAMP = [
    0, '#f7fcb9',
    500, '#addd8e',
    1000, '#78c679',
    1500, '#d9b365',
    2500, '#a6611a',
    4000, '#ffffff',
]

SOURCES: Dict[str, Dict] = {
    ADMIN_SOURCE: {'type': 'vector', 'url': ADMIN_TILESET_URL},
    COUNTRY_SOURCE: {'type': 'vector', 'url': COUNTRY_BOUNDARIES_URL},
    DEM_SOURCE: {'type': 'raster-dem', 'url': DEM_URL, 'tileSize': 512, 'maxzoom': 14},
    CONTOUR_SOURCE: {'type': 'vector', 'url': CONTOURS_URL},
}


def _hidden(layer: Dict) -> Dict:
    layer.setdefault('layout', {})['visibility'] = 'none'
    return layer


def _risk_layer(layer_id: str, source_layer: str, color, minzoom: float, maxzoom: float) -> Dict:
    return {
        'id': layer_id,
        'type': 'fill',
        'source': ADMIN_SOURCE,
        'source-layer': source_layer,
        'minzoom': minzoom,
        'maxzoom': maxzoom,
        'layout': {'visibility': 'visible'},
        'paint': {'fill-color': color, 'fill-opacity': RISK_OPACITY},
    }


def _line_layer(layer_id: str, source_layer: str, width: float) -> Dict:
    return _hidden(
        {
            'id': layer_id,
            'type': 'line',
            'source': ADMIN_SOURCE,
            'source-layer': source_layer,
            'paint': {'line-color': '#4b5563', 'line-width': width},
        }
    )


def overlay_layers(compiled: CompiledStyle) -> List[Dict]:
    """Layer definitions in paint order, bottom first."""
    return [
        _hidden(
            {
                'id': ELEVATION,
                'type': 'fill',
                'source': CONTOUR_SOURCE,
                'source-layer': 'contour',
                'paint': {
                    'fill-color': ['interpolate', ['linear'], ['get', 'ele'], *ELEVATION_RAMP],
                    'fill-opacity': 0.5,
                },
            }
        ),
        _hidden({'id': HILLSHADE, 'type': 'hillshade', 'source': DEM_SOURCE}),
        _risk_layer(COUNTRY_RISK, ADM0_SOURCE_LAYER, to_mapbox(compiled.country), 0, 3),
        _risk_layer(STATE_RISK, ADM1_SOURCE_LAYER, to_mapbox(compiled.state), 3, 6),
        _risk_layer(DISTRICT_RISK, ADM2_SOURCE_LAYER, to_mapbox(compiled.district), 6, 22),
        {
            'id': ELEVATION_MASK,
            'type': 'fill',
            'source': CONTOUR_SOURCE,
            'source-layer': 'contour',
            'filter': ['>=', ['get', 'ele'], ELEVATION_MASK_MIN_M],
            'layout': {'visibility': 'visible'},
            'paint': {'fill-color': '#ffffff', 'fill-opacity': 0.45},
        },
        _line_layer(STATE_LINES, ADM1_SOURCE_LAYER, 0.6),
        _line_layer(DISTRICT_LINES, ADM2_SOURCE_LAYER, 0.3),
        _hidden(
            {
                'id': COUNTRY_MASK,
                'type': 'fill',
                'source': COUNTRY_SOURCE,
                'source-layer': COUNTRY_BOUNDARIES_LAYER,
                'paint': {'fill-color': '#111827', 'fill-opacity': 0.35},
            }
        ),
    ]


def install_overlay(handle: MapHandle, compiled: CompiledStyle) -> None:
    for source_id, source in SOURCES.items():
        handle.add_source(source_id, source)
    for layer in overlay_layers(compiled):
        handle.add_layer(layer)


class LayerMode(Enum):
    RISK = 'risk'
    ELEVATION = 'elevation'


def visibility_plan() -> Dict:
    """Show/hide sets per display mode, for viewers that mirror the toggles."""
    return {
        LayerMode.RISK.value: {'show': list(RISK_MODE_LAYERS), 'hide': list(ELEVATION_MODE_LAYERS)},
        LayerMode.ELEVATION.value: {'show': list(ELEVATION_MODE_LAYERS), 'hide': list(RISK_MODE_LAYERS)},
        'terrain': {'layers': [HILLSHADE], 'terrain': dict(TERRAIN)},
    }


class VisibilityCoordinator:
    """Risk and Elevation are mutually exclusive; terrain is independent."""

    def __init__(self, handle: MapHandle, mode: LayerMode = LayerMode.RISK, terrain_enabled: bool = False):
        self.handle = handle
        self.mode = mode
        self.terrain_enabled = terrain_enabled

    def select_mode(self, mode: LayerMode) -> None:
        self.mode = LayerMode(mode)
        plan = visibility_plan()[self.mode.value]
        for layer_id in plan['show']:
            self.handle.set_visibility(layer_id, True)
        for layer_id in plan['hide']:
            self.handle.set_visibility(layer_id, False)

    def set_terrain(self, enabled: bool) -> None:
        self.terrain_enabled = bool(enabled)
        self.handle.set_visibility(HILLSHADE, self.terrain_enabled)
        self.handle.set_terrain(dict(TERRAIN) if self.terrain_enabled else None)

    def toggle_terrain(self) -> bool:
        self.set_terrain(not self.terrain_enabled)
        return self.terrain_enabled

    def apply(self) -> None:
        self.select_mode(self.mode)
        self.set_terrain(self.terrain_enabled)
