import asyncio
import json

import pytest
import shapefile

from riskmap import build_risk_map_assets as assets
from riskmap.layers import COUNTRY_MASK


@pytest.fixture
def sources(tmp_path):
    risk = tmp_path / 'risk.json'
    risk.write_text(json.dumps([{'gid0': 'EGY', 'risk_level': 2}]), encoding='utf-8')
    geocodes = tmp_path / 'geocodes.json'
    geocodes.write_text(
        json.dumps([{'name': 'Egypt', 'country': 'EG', 'latitude': 26.8, 'longitude': 30.8}]),
        encoding='utf-8',
    )
    boundaries = tmp_path / 'countries'
    writer = shapefile.Writer(str(boundaries), shapeType=shapefile.POLYGON)
    writer.field('ISO_A2', 'C', size=2)
    writer.poly([[[24.7, 22.0], [24.7, 31.7], [36.9, 31.7], [36.9, 22.0], [24.7, 22.0]]])
    writer.record('EG')
    writer.close()
    return risk, geocodes, tmp_path / 'countries.shp'


def _payload(path):
    text = path.read_text(encoding='utf-8')
    assert text.startswith('window.RISK_MAP = ')
    return json.loads(text[len('window.RISK_MAP = '):].rstrip().rstrip(';'))


def test_build_assets_writes_viewer_files(tmp_path, sources):
    risk, geocodes, _ = sources
    out = tmp_path / 'viewer'

    written = asyncio.run(assets.build_assets(out, risk_source=risk, geocode_source=geocodes))

    style = json.loads(written['style'].read_text(encoding='utf-8'))
    layer_ids = [layer['id'] for layer in style['layers']]
    assert 'district-risk' in layer_ids
    assert style['center'] == [0.0, 20.0]
    payload = _payload(written['data'])
    assert [c['name'] for c in payload['countries']] == ['Egypt']
    assert payload['controls']['wheelZoomRate'] == 3
    assert payload['modes']['risk']['show']
    html = written['html'].read_text(encoding='utf-8')
    assert 'Malaria Risk Levels' in html
    assert '__RISKMAP_TOKEN__' not in html


def test_build_assets_frames_selected_country(tmp_path, sources):
    risk, geocodes, boundaries = sources

    written = asyncio.run(
        assets.build_assets(
            tmp_path / 'viewer',
            risk_source=risk,
            geocode_source=geocodes,
            boundaries=str(boundaries),
            country='Egypt',
        )
    )

    style = json.loads(written['style'].read_text(encoding='utf-8'))
    assert style['center'] == pytest.approx([30.8, 26.85])
    mask = next(layer for layer in style['layers'] if layer['id'] == COUNTRY_MASK)
    assert mask['layout']['visibility'] == 'visible'
    assert mask['filter'] == ['!=', ['get', 'iso_3166_1'], 'EG']


def test_build_assets_unknown_country_keeps_world_view(tmp_path, sources, capsys):
    risk, geocodes, _ = sources

    written = asyncio.run(
        assets.build_assets(tmp_path / 'viewer', risk_source=risk, geocode_source=geocodes, country='Atlantis')
    )

    style = json.loads(written['style'].read_text(encoding='utf-8'))
    assert style['center'] == [0.0, 20.0]
    assert 'Atlantis' in capsys.readouterr().out


def test_build_assets_degrades_without_sources(tmp_path, capsys):
    written = asyncio.run(
        assets.build_assets(
            tmp_path / 'viewer',
            risk_source=tmp_path / 'missing.json',
            geocode_source=tmp_path / 'missing.json',
        )
    )

    style = json.loads(written['style'].read_text(encoding='utf-8'))
    assert style['layers'] == []
    assert _payload(written['data'])['countries'] == []
    assert 'Risk overlay not installed' in capsys.readouterr().out


def test_main_parses_arguments(tmp_path, sources):
    risk, geocodes, _ = sources
    out = tmp_path / 'cli'

    assets.main(['--risk-source', str(risk), '--geocode-source', str(geocodes), '--output', str(out)])

    assert (out / 'risk_map.html').exists()
    assert (out / 'risk_style.json').exists()
