"""Load sources, compile the risk overlay and install it once the style is ready."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from riskmap.errors import LoadError
from riskmap.expressions import CompiledStyle, compile_style
from riskmap.geocode import GeocodeTable, load_geocodes
from riskmap.layers import VisibilityCoordinator, install_overlay
from riskmap.records import IngestStats, RegionRiskIndex, classify_records, load_risk_records
from riskmap.render import MapHandle
from riskmap.resolver import DEFAULT_POLICY, ColorPolicy, RiskResolver
from riskmap.sources import Source


@dataclass
class RiskOverlay:
    index: RegionRiskIndex
    stats: IngestStats
    geocodes: GeocodeTable
    resolver: RiskResolver
    compiled: CompiledStyle
    visibility: VisibilityCoordinator


async def load_sources(risk_source: Source, geocode_source: Source):
    """Fetch both sources concurrently; either failure aborts the load."""
    try:
        records, geocodes = await asyncio.gather(
            asyncio.to_thread(load_risk_records, risk_source),
            asyncio.to_thread(load_geocodes, geocode_source),
        )
    except LoadError:
        raise
    except Exception as exc:
        raise LoadError(f"Failed to load overlay sources: {exc}") from exc
    return records, geocodes


async def build_overlay(
    handle: MapHandle,
    risk_source: Source,
    geocode_source: Source,
    policy: ColorPolicy = DEFAULT_POLICY,
    country_default: Optional[str] = None,
) -> RiskOverlay:
    """Compile and install the overlay.

    Loading and the style-ready signal are awaited together, so whichever
    finishes last gates installation. Nothing is added to the handle unless
    both sources loaded.
    """
    style_ready = asyncio.ensure_future(handle.wait_for_style())
    try:
        records, geocodes = await load_sources(risk_source, geocode_source)
        index, stats = classify_records(records)
        compiled = compile_style(index, policy, country_default)
        await style_ready
    finally:
        style_ready.cancel()
    install_overlay(handle, compiled)
    visibility = VisibilityCoordinator(handle)
    visibility.apply()
    return RiskOverlay(
        index=index,
        stats=stats,
        geocodes=geocodes,
        resolver=RiskResolver(index, policy),
        compiled=compiled,
        visibility=visibility,
    )


def report_stats(stats: IngestStats) -> None:
    print(
        f"✔️  Classified {stats.total} risk records: "
        f"{stats.country} country, {stats.state} state, {stats.district} district"
    )
    if stats.excluded_elevated:
        print(f"⚠️  Excluded {stats.excluded_elevated} elevation-qualified country records")
    if stats.dropped_uncoded:
        print(f"⚠️  Dropped {stats.dropped_uncoded} records without an administrative code")
    if stats.overwritten:
        print(f"⚠️  {stats.overwritten} records overwrote an earlier entry for the same code")


async def install_or_degrade(
    handle: MapHandle,
    risk_source: Source,
    geocode_source: Source,
    **kwargs,
) -> Optional[RiskOverlay]:
    """Build the overlay; on LoadError leave the base map untouched and return None."""
    try:
        overlay = await build_overlay(handle, risk_source, geocode_source, **kwargs)
    except LoadError as exc:
        print(f"⚠️  Risk overlay not installed: {exc}")
        return None
    report_stats(overlay.stats)
    return overlay
