"""Rendering-layer handle.

Every component that touches the map receives a handle explicitly. The
``MapHandle`` protocol lists the calls the overlay relies on; ``StyleDocument``
implements it in-process, keeping a Mapbox GL style document plus the camera
and animation history, so a built overlay can be exported as JSON.
"""
from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from riskmap.settings import BASE_STYLE_URL, WORLD_CENTER, WORLD_ZOOM

Bounds = Tuple[float, float, float, float]


class MapHandle(Protocol):
    def add_source(self, source_id: str, source: Dict[str, Any]) -> None: ...

    def add_layer(self, layer: Dict[str, Any]) -> None: ...

    def has_layer(self, layer_id: str) -> bool: ...

    def set_visibility(self, layer_id: str, visible: bool) -> None: ...

    def set_filter(self, layer_id: str, expression: Optional[List]) -> None: ...

    def query_source_features(
        self,
        source_id: str,
        source_layer: Optional[str] = None,
        filter: Optional[List] = None,
    ) -> List[Dict[str, Any]]: ...

    def ease_to(self, center: Optional[Sequence[float]], zoom: float, duration: int) -> None: ...

    def fly_to(self, center: Sequence[float], zoom: float, duration: int) -> None: ...

    def fit_bounds(self, bounds: Bounds, padding: int, duration: int) -> None: ...

    def set_terrain(self, terrain: Optional[Dict[str, Any]]) -> None: ...

    async def wait_for_style(self) -> None: ...


def _matches(properties: Dict[str, Any], expression: Optional[List]) -> bool:
    if not expression:
        return True
    op = expression[0]
    if op == 'all':
        return all(_matches(properties, sub) for sub in expression[1:])
    if op in ('==', '!='):
        getter, value = expression[1], expression[2]
        if not (isinstance(getter, list) and getter[:1] == ['get']):
            raise ValueError(f"Unsupported filter operand: {getter!r}")
        equal = properties.get(getter[1]) == value
        return equal if op == '==' else not equal
    raise ValueError(f"Unsupported filter operator: {op!r}")


class StyleDocument:
    """In-process map handle backed by a Mapbox GL style document."""

    def __init__(self, center: Sequence[float] = WORLD_CENTER, zoom: float = WORLD_ZOOM):
        self.sources: Dict[str, Dict[str, Any]] = {}
        self.layers: List[Dict[str, Any]] = []
        self.center: List[float] = list(center)
        self.zoom = zoom
        self.terrain: Optional[Dict[str, Any]] = None
        self.animations: List[Dict[str, Any]] = []
        self._features: Dict[Tuple[str, Optional[str]], List[Dict[str, Any]]] = {}
        self._style_ready = asyncio.Event()

    # style lifecycle

    def mark_style_ready(self) -> None:
        self._style_ready.set()

    @property
    def style_ready(self) -> bool:
        return self._style_ready.is_set()

    async def wait_for_style(self) -> None:
        await self._style_ready.wait()

    # sources and layers

    def add_source(self, source_id: str, source: Dict[str, Any]) -> None:
        if source_id in self.sources:
            raise ValueError(f"Source {source_id!r} already exists")
        self.sources[source_id] = dict(source)

    def add_layer(self, layer: Dict[str, Any]) -> None:
        if self.has_layer(layer['id']):
            raise ValueError(f"Layer {layer['id']!r} already exists")
        if layer.get('source') not in self.sources:
            raise ValueError(f"Layer {layer['id']!r} references unknown source {layer.get('source')!r}")
        self.layers.append(copy.deepcopy(layer))

    def has_layer(self, layer_id: str) -> bool:
        return any(layer['id'] == layer_id for layer in self.layers)

    def get_layer(self, layer_id: str) -> Dict[str, Any]:
        for layer in self.layers:
            if layer['id'] == layer_id:
                return layer
        raise KeyError(layer_id)

    def is_visible(self, layer_id: str) -> bool:
        return self.get_layer(layer_id).get('layout', {}).get('visibility', 'visible') == 'visible'

    def set_visibility(self, layer_id: str, visible: bool) -> None:
        layer = self.get_layer(layer_id)
        layer.setdefault('layout', {})['visibility'] = 'visible' if visible else 'none'

    def set_filter(self, layer_id: str, expression: Optional[List]) -> None:
        layer = self.get_layer(layer_id)
        if expression is None:
            layer.pop('filter', None)
        else:
            layer['filter'] = copy.deepcopy(expression)

    # features

    def load_features(self, source_id: str, source_layer: Optional[str], features: List[Dict[str, Any]]) -> None:
        self._features.setdefault((source_id, source_layer), []).extend(features)

    def query_source_features(
        self,
        source_id: str,
        source_layer: Optional[str] = None,
        filter: Optional[List] = None,
    ) -> List[Dict[str, Any]]:
        loaded = self._features.get((source_id, source_layer), [])
        return [feature for feature in loaded if _matches(feature.get('properties', {}), filter)]

    # camera

    def ease_to(self, center: Optional[Sequence[float]], zoom: float, duration: int) -> None:
        if center is not None:
            self.center = list(center)
        self.zoom = zoom
        self.animations.append({'type': 'ease', 'center': list(self.center), 'zoom': zoom, 'duration': duration})

    def fly_to(self, center: Sequence[float], zoom: float, duration: int) -> None:
        self.center = list(center)
        self.zoom = zoom
        self.animations.append({'type': 'fly', 'center': list(center), 'zoom': zoom, 'duration': duration})

    def fit_bounds(self, bounds: Bounds, padding: int, duration: int) -> None:
        min_x, min_y, max_x, max_y = bounds
        self.center = [(min_x + max_x) / 2, (min_y + max_y) / 2]
        self.animations.append({'type': 'fit', 'bounds': list(bounds), 'padding': padding, 'duration': duration})

    def set_terrain(self, terrain: Optional[Dict[str, Any]]) -> None:
        self.terrain = dict(terrain) if terrain else None

    # export

    def to_style(self) -> Dict[str, Any]:
        style: Dict[str, Any] = {
            'version': 8,
            'name': 'Disease risk overlay',
            'metadata': {'riskmap:base-style': BASE_STYLE_URL},
            'center': list(self.center),
            'zoom': self.zoom,
            'sources': copy.deepcopy(self.sources),
            'layers': copy.deepcopy(self.layers),
        }
        if self.terrain:
            style['terrain'] = dict(self.terrain)
        return style
