#!/usr/bin/env python3
"""Generate disease-risk viewer assets (style JSON, data + HTML) from the risk sources."""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Dict, Optional

from riskmap.boundaries import load_boundary_features
from riskmap.camera import CameraChoreographer, CameraTiming
from riskmap.errors import ConfigurationError, LoadError
from riskmap.layers import COUNTRY_SOURCE, visibility_plan
from riskmap.overlay import RiskOverlay, install_or_degrade
from riskmap.render import StyleDocument
from riskmap.resolver import DEFAULT_POLICY
from riskmap.settings import (
    BASE_STYLE_URL,
    BOUNDARIES_FILE,
    COUNTRY_BOUNDARIES_LAYER,
    COUNTRY_ISO_FIELD,
    FIT_MS,
    FIT_PADDING,
    FLY_MS,
    FLY_ZOOM,
    GEOCODE_SOURCE,
    MAPBOX_TOKEN,
    NAVIGATION_CONTROL_POSITION,
    OUTPUT_DIR,
    RESET_MS,
    RISK_SOURCE,
    WHEEL_ZOOM_RATE,
    WORLD_CENTER,
    WORLD_ZOOM,
    ZOOM_OUT_MS,
)

# Durations are irrelevant when framing a static export
INSTANT = CameraTiming(zoom_out_ms=0, fly_ms=0, fit_ms=0, reset_ms=0)


def _display(path: Path) -> Path:
    try:
        return path.relative_to(Path.cwd())
    except ValueError:
        return path


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    print(f"✔️  Wrote {_display(path)}")
    return path


def _viewer_payload(document: StyleDocument, overlay: Optional[RiskOverlay]) -> Dict:
    return {
        'baseStyle': BASE_STYLE_URL,
        'style': document.to_style(),
        'legend': DEFAULT_POLICY.legend(),
        'countries': overlay.geocodes.to_records() if overlay else [],
        'modes': visibility_plan() if overlay else {},
        'controls': {
            'wheelZoomRate': WHEEL_ZOOM_RATE,
            'navigationPosition': NAVIGATION_CONTROL_POSITION,
        },
        'camera': {
            'center': list(document.center),
            'zoom': document.zoom,
            'world': {'center': list(WORLD_CENTER), 'zoom': WORLD_ZOOM},
            'zoomOutMs': ZOOM_OUT_MS,
            'flyMs': FLY_MS,
            'flyZoom': FLY_ZOOM,
            'fitMs': FIT_MS,
            'fitPadding': FIT_PADDING,
            'resetMs': RESET_MS,
            'countrySource': COUNTRY_SOURCE,
            'countrySourceLayer': COUNTRY_BOUNDARIES_LAYER,
            'isoField': COUNTRY_ISO_FIELD,
        },
    }


def _load_boundaries(document: StyleDocument, path: Optional[str], crs: Optional[str]) -> None:
    if not path:
        return
    try:
        features = load_boundary_features(Path(path), source_crs=crs)
    except LoadError as exc:
        print(f"⚠️  Skipping boundaries: {exc}")
        return
    document.load_features(COUNTRY_SOURCE, COUNTRY_BOUNDARIES_LAYER, features)


async def build_assets(
    output_dir: Path,
    risk_source=RISK_SOURCE,
    geocode_source=GEOCODE_SOURCE,
    boundaries: Optional[str] = None,
    boundaries_crs: Optional[str] = None,
    country: Optional[str] = None,
) -> Dict[str, Path]:
    document = StyleDocument()
    _load_boundaries(document, boundaries, boundaries_crs)
    document.mark_style_ready()
    overlay = await install_or_degrade(document, risk_source, geocode_source)
    if overlay is not None and country:
        camera = CameraChoreographer(document, overlay.geocodes, timing=INSTANT)
        try:
            await camera.select_country(country)
        except ConfigurationError as exc:
            print(f"⚠️  {exc}; keeping the world view")

    payload = _viewer_payload(document, overlay)
    return {
        'style': _write(output_dir / 'risk_style.json', json.dumps(payload['style'], indent=2)),
        'data': _write(output_dir / 'risk_data.js', f"window.RISK_MAP = {json.dumps(payload)};\n"),
        'html': _write(output_dir / 'risk_map.html', MAP_HTML.replace('__RISKMAP_TOKEN__', MAPBOX_TOKEN)),
    }


MAP_HTML = """<!DOCTYPE html>
<html lang='en'>
<head>
  <meta charset='utf-8' />
  <title>Disease risk map</title>
  <meta name='viewport' content='width=device-width, initial-scale=1' />
  <link href='https://api.mapbox.com/mapbox-gl-js/v3.4.0/mapbox-gl.css' rel='stylesheet' />
  <style>
    * { box-sizing: border-box; }
    body { margin: 0; font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; }
    #map { position: absolute; inset: 0; }
    .panel { position: absolute; top: 16px; left: 16px; background: rgba(255,255,255,0.95); border-radius: 10px; padding: 12px 16px; box-shadow: 0 6px 20px rgba(0,0,0,0.15); font-size: 0.9rem; display: flex; flex-direction: column; gap: 8px; }
    .zoom-controls { position: absolute; right: 16px; bottom: 32px; display: flex; flex-direction: column; gap: 6px; }
    .zoom-controls button { width: 36px; height: 36px; font-size: 1.2rem; border: none; border-radius: 6px; background: #fff; box-shadow: 0 2px 8px rgba(0,0,0,0.2); cursor: pointer; }
    .map-legend { position: absolute; left: 16px; bottom: 32px; background: rgba(255,255,255,0.95); border-radius: 10px; padding: 10px 14px; font-size: 0.85rem; }
    .map-legend h4 { margin: 0 0 6px; }
    .legend-color { display: inline-block; width: 14px; height: 14px; margin-right: 6px; vertical-align: middle; border: 1px solid rgba(0,0,0,0.2); }
  </style>
</head>
<body>
<div id='map'></div>
<div class='panel'>
  <select id='country-select'><option value='__all__'>All regions</option></select>
  <label><input type='radio' name='mode' value='risk' checked /> Risk</label>
  <label><input type='radio' name='mode' value='elevation' /> Elevation</label>
  <label><input type='checkbox' id='terrain-toggle' /> Terrain</label>
</div>
<div class='zoom-controls'>
  <button id='zoom-in'>＋</button>
  <button id='zoom-out'>−</button>
</div>
<div class='map-legend' id='legend'><h4>Malaria Risk Levels</h4></div>
<script src='https://api.mapbox.com/mapbox-gl-js/v3.4.0/mapbox-gl.js'></script>
<script src='risk_data.js'></script>
<script>
  mapboxgl.accessToken = '__RISKMAP_TOKEN__';
  const data = window.RISK_MAP;
  const camera = data.camera;
  const map = new mapboxgl.Map({ container: 'map', style: data.baseStyle, center: camera.center, zoom: camera.zoom });
  map.scrollZoom.enable();
  map.scrollZoom.setWheelZoomRate(data.controls.wheelZoomRate);
  map.addControl(new mapboxgl.NavigationControl(), data.controls.navigationPosition);

  const legend = document.getElementById('legend');
  data.legend.forEach((entry) => {
    const row = document.createElement('div');
    row.innerHTML = `<span class='legend-color' style='background:${entry.color}'></span> ${entry.label}`;
    legend.appendChild(row);
  });

  document.getElementById('zoom-in').addEventListener('click', () => map.zoomTo(map.getZoom() + 1));
  document.getElementById('zoom-out').addEventListener('click', () => map.zoomTo(map.getZoom() - 1));

  const setVisible = (id, visible) => {
    if (map.getLayer(id)) map.setLayoutProperty(id, 'visibility', visible ? 'visible' : 'none');
  };

  map.on('load', () => {
    Object.entries(data.style.sources).forEach(([id, source]) => map.addSource(id, source));
    data.style.layers.forEach((layer) => map.addLayer(layer));
    if (data.style.terrain) map.setTerrain(data.style.terrain);
  });

  document.querySelectorAll("input[name='mode']").forEach((input) => {
    input.addEventListener('change', () => {
      const plan = data.modes[input.value];
      if (!plan) return;
      plan.show.forEach((id) => setVisible(id, true));
      plan.hide.forEach((id) => setVisible(id, false));
    });
  });

  document.getElementById('terrain-toggle').addEventListener('change', (event) => {
    const terrain = data.modes.terrain;
    if (!terrain) return;
    terrain.layers.forEach((id) => setVisible(id, event.target.checked));
    map.setTerrain(event.target.checked ? terrain.terrain : null);
  });

  const select = document.getElementById('country-select');
  data.countries.forEach((country) => {
    const option = document.createElement('option');
    option.value = country.name;
    option.textContent = country.name;
    select.appendChild(option);
  });

  let sequence = 0;
  const wait = (ms) => new Promise((resolve) => setTimeout(resolve, ms));
  const lineLayers = ['state-lines', 'district-lines'];

  async function selectCountry(name) {
    const id = ++sequence;
    if (name === '__all__') {
      map.easeTo({ center: camera.world.center, zoom: camera.world.zoom, duration: camera.resetMs });
      setVisible('country-mask', false);
      lineLayers.forEach((layer) => setVisible(layer, false));
      return;
    }
    const entry = data.countries.find((country) => country.name === name);
    if (!entry) return;
    map.easeTo({ zoom: 0, duration: camera.zoomOutMs });
    map.setFilter('country-mask', ['!=', ['get', camera.isoField], entry.iso]);
    setVisible('country-mask', true);
    lineLayers.forEach((layer) => setVisible(layer, true));
    await wait(camera.zoomOutMs);
    if (id !== sequence) return;
    map.flyTo({ center: [entry.lng, entry.lat], zoom: camera.flyZoom, duration: camera.flyMs });
    await wait(camera.flyMs);
    if (id !== sequence) return;
    const features = map.querySourceFeatures(camera.countrySource, {
      sourceLayer: camera.countrySourceLayer,
      filter: ['==', ['get', camera.isoField], entry.iso],
    });
    if (!features.length) return;
    const bounds = new mapboxgl.LngLatBounds();
    const extend = (coords) => (typeof coords[0] === 'number' ? bounds.extend(coords) : coords.forEach(extend));
    features.forEach((feature) => extend(feature.geometry.coordinates));
    map.fitBounds(bounds, { padding: camera.fitPadding, duration: camera.fitMs });
  }

  select.addEventListener('change', () => selectCountry(select.value));
</script>
</body>
</html>
"""


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description='Build the disease-risk map viewer (style, data and HTML).')
    parser.add_argument('--risk-source', default=RISK_SOURCE, help='Risk records (JSON/CSV path or URL)')
    parser.add_argument('--geocode-source', default=GEOCODE_SOURCE, help='Country geocodes (JSON/CSV path or URL)')
    parser.add_argument('--boundaries', default=BOUNDARIES_FILE, help='Country boundary shapefile used to frame --country')
    parser.add_argument('--boundaries-crs', default=None, help='CRS of the boundary shapefile if not EPSG:4326')
    parser.add_argument('--country', help='Frame the initial view on this country')
    parser.add_argument('--output', type=Path, default=OUTPUT_DIR, help='Output directory')
    args = parser.parse_args(argv)

    asyncio.run(
        build_assets(
            args.output,
            risk_source=args.risk_source,
            geocode_source=args.geocode_source,
            boundaries=args.boundaries,
            boundaries_crs=args.boundaries_crs,
            country=args.country,
        )
    )


if __name__ == '__main__':
    main()
