"""Country navigation: zoom out, fly, look up geometry, fit bounds.

Each phase waits for the nominal duration of the animation it started
rather than a completion signal. A sequence runs as a single asyncio task;
a new selection cancels the live task before issuing any camera call, so
phases of two selections never interleave.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from riskmap.boundaries import features_bounding_box
from riskmap.geocode import CountryGeocodeEntry, GeocodeTable
from riskmap.layers import BOUNDARY_LINE_LAYERS, COUNTRY_MASK, COUNTRY_SOURCE
from riskmap.render import MapHandle
from riskmap.settings import (
    COUNTRY_BOUNDARIES_LAYER,
    COUNTRY_ISO_FIELD,
    FIT_MS,
    FIT_PADDING,
    FLY_MS,
    FLY_ZOOM,
    RESET_MS,
    WORLD_CENTER,
    WORLD_ZOOM,
    ZOOM_OUT_MS,
)


class CameraPhase(Enum):
    IDLE = 'idle'
    ZOOMING_OUT = 'zooming_out'
    FLYING = 'flying'
    AWAITING_GEOMETRY = 'awaiting_geometry'
    FITTING_BOUNDS = 'fitting_bounds'
    RESETTING = 'resetting'


@dataclass(frozen=True)
class CameraTiming:
    zoom_out_ms: int = ZOOM_OUT_MS
    fly_ms: int = FLY_MS
    fit_ms: int = FIT_MS
    reset_ms: int = RESET_MS
    fly_zoom: float = FLY_ZOOM
    fit_padding: int = FIT_PADDING


class CameraChoreographer:
    def __init__(
        self,
        handle: MapHandle,
        geocodes: GeocodeTable,
        timing: Optional[CameraTiming] = None,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.handle = handle
        self.geocodes = geocodes
        self.timing = timing or CameraTiming()
        self._sleep = sleep
        self.state = CameraPhase.IDLE
        self.selected_country: Optional[CountryGeocodeEntry] = None
        self.transitions: List[Tuple[Optional[str], CameraPhase]] = []
        self._task: Optional[asyncio.Task] = None

    def _enter(self, phase: CameraPhase, iso_code: Optional[str] = None) -> None:
        self.state = phase
        self.transitions.append((iso_code, phase))

    def _cancel_live_sequence(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def select_country(self, name: str) -> asyncio.Task:
        """Start navigating to ``name``; must be called from a running loop.

        Raises ConfigurationError before touching the camera when the name is
        not in the geocode table.
        """
        entry = self.geocodes.lookup(name)
        self._cancel_live_sequence()
        self.selected_country = entry
        self._enter(CameraPhase.ZOOMING_OUT, entry.iso_code)
        self.handle.ease_to(None, 0, self.timing.zoom_out_ms)
        self.handle.set_filter(COUNTRY_MASK, ['!=', ['get', COUNTRY_ISO_FIELD], entry.iso_code])
        self.handle.set_visibility(COUNTRY_MASK, True)
        for layer_id in BOUNDARY_LINE_LAYERS:
            self.handle.set_visibility(layer_id, True)
        self._task = asyncio.get_running_loop().create_task(self._run_sequence(entry))
        return self._task

    async def _run_sequence(self, entry: CountryGeocodeEntry) -> None:
        try:
            await self._run_phases(entry)
        except Exception as exc:
            self._enter(CameraPhase.IDLE, entry.iso_code)
            print(f"⚠️  Camera sequence for {entry.iso_code} failed: {exc}")
            raise

    async def _run_phases(self, entry: CountryGeocodeEntry) -> None:
        timing = self.timing
        iso = entry.iso_code
        await self._sleep(timing.zoom_out_ms / 1000)

        self._enter(CameraPhase.FLYING, iso)
        self.handle.fly_to(entry.center, timing.fly_zoom, timing.fly_ms)
        await self._sleep(timing.fly_ms / 1000)

        self._enter(CameraPhase.AWAITING_GEOMETRY, iso)
        features = self.handle.query_source_features(
            COUNTRY_SOURCE,
            COUNTRY_BOUNDARIES_LAYER,
            ['==', ['get', COUNTRY_ISO_FIELD], iso],
        )
        bounds = features_bounding_box(features) if features else None
        if bounds is not None:
            self._enter(CameraPhase.FITTING_BOUNDS, iso)
            self.handle.fit_bounds(bounds, timing.fit_padding, timing.fit_ms)
        self._enter(CameraPhase.IDLE, iso)

    def select_all_regions(self) -> None:
        self._cancel_live_sequence()
        self._enter(CameraPhase.RESETTING)
        self.handle.ease_to(WORLD_CENTER, WORLD_ZOOM, self.timing.reset_ms)
        self.handle.set_visibility(COUNTRY_MASK, False)
        self.handle.set_filter(COUNTRY_MASK, None)
        for layer_id in BOUNDARY_LINE_LAYERS:
            self.handle.set_visibility(layer_id, False)
        self.selected_country = None
        self._enter(CameraPhase.IDLE)

    async def wait(self) -> None:
        task = self._task
        if task is not None:
            await task

    async def close(self) -> None:
        task = self._task
        self._cancel_live_sequence()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
