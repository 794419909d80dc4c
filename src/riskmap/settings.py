"""Environment-driven settings for the risk map builder."""
from __future__ import annotations

import os
from pathlib import Path

DATA_DIR = Path(os.environ.get('RISKMAP_DATA_DIR', Path.cwd() / 'data'))
RISK_SOURCE = os.environ.get('RISKMAP_RISK_SOURCE', str(DATA_DIR / 'risk_records.json'))
GEOCODE_SOURCE = os.environ.get('RISKMAP_GEOCODE_SOURCE', str(DATA_DIR / 'country_geocodes.json'))
BOUNDARIES_FILE = os.environ.get('RISKMAP_BOUNDARIES')
OUTPUT_DIR = Path(os.environ.get('RISKMAP_OUTPUT', Path.cwd() / 'risk_map'))
REQUEST_TIMEOUT = 30

MAPBOX_TOKEN = os.environ.get('RISKMAP_MAPBOX_TOKEN', 'PASTE_TOKEN_HERE')
BASE_STYLE_URL = 'mapbox://styles/mapbox/light-v11'

# Vector tileset with GADM boundaries, one source-layer per admin level
ADMIN_TILESET_URL = os.environ.get('RISKMAP_ADMIN_TILESET', 'mapbox://ksymes.2bolqz9e')
ADM0_SOURCE_LAYER = os.environ.get('RISKMAP_ADM0_LAYER', 'ADM0')
ADM1_SOURCE_LAYER = os.environ.get('RISKMAP_ADM1_LAYER', 'ADM1')
ADM2_SOURCE_LAYER = os.environ.get('RISKMAP_ADM2_LAYER', 'ADM2')
COUNTRY_FIELD = 'GID_0'
STATE_FIELD = 'GID_1'
DISTRICT_FIELD = 'GID_2'

COUNTRY_BOUNDARIES_URL = 'mapbox://mapbox.country-boundaries-v1'
COUNTRY_BOUNDARIES_LAYER = 'country_boundaries'
COUNTRY_ISO_FIELD = 'iso_3166_1'

DEM_URL = 'mapbox://mapbox.mapbox-terrain-dem-v1'
CONTOURS_URL = 'mapbox://mapbox.mapbox-terrain-v2'
TERRAIN_EXAGGERATION = 1.5
ELEVATION_MASK_MIN_M = float(os.environ.get('RISKMAP_ELEVATION_MASK_MIN_M', 1500))

RISK_OPACITY = 0.6
# Unset means "same as the level 1 colour", which is the observed behaviour
COUNTRY_DEFAULT_COLOR = os.environ.get('RISKMAP_COUNTRY_DEFAULT_COLOR')

WORLD_CENTER = (0.0, 20.0)
WORLD_ZOOM = 2.0
ZOOM_OUT_MS = int(os.environ.get('RISKMAP_ZOOM_OUT_MS', 1000))
FLY_MS = int(os.environ.get('RISKMAP_FLY_MS', 2000))
FIT_MS = int(os.environ.get('RISKMAP_FIT_MS', 1000))
RESET_MS = int(os.environ.get('RISKMAP_RESET_MS', 1500))
FLY_ZOOM = 4.0
FIT_PADDING = 40

WHEEL_ZOOM_RATE = 3
NAVIGATION_CONTROL_POSITION = 'top-right'
