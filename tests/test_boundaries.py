import pytest
import shapefile

from riskmap.boundaries import bounding_box, features_bounding_box, load_boundary_features
from riskmap.errors import LoadError


def test_bounding_box_of_polygon():
    geometry = {'type': 'Polygon', 'coordinates': [[[30, 22], [36, 22], [34, 31], [25, 31], [30, 22]]]}

    assert bounding_box(geometry) == (25, 22, 36, 31)


def test_bounding_box_of_multipolygon_and_point():
    multipolygon = {
        'type': 'MultiPolygon',
        'coordinates': [
            [[[0, 0], [1, 0], [1, 1], [0, 0]]],
            [[[5, -2], [6, -2], [6, 3], [5, -2]]],
        ],
    }

    assert bounding_box(multipolygon) == (0, -2, 6, 3)
    assert bounding_box({'type': 'Point', 'coordinates': [3.5, 4.5]}) == (3.5, 4.5, 3.5, 4.5)


def test_bounding_box_of_empty_geometry_is_none():
    assert bounding_box({'type': 'Polygon', 'coordinates': []}) is None
    assert features_bounding_box([]) is None


def test_features_bounding_box_unions_tile_fragments():
    features = [
        {'geometry': {'type': 'Polygon', 'coordinates': [[[24, 22], [30, 22], [30, 27], [24, 22]]]}},
        {'geometry': {'type': 'Polygon', 'coordinates': [[[30, 27], [37, 27], [37, 32], [30, 27]]]}},
    ]

    assert features_bounding_box(features) == (24, 22, 37, 32)


def _write_shapefile(path, crs_points=None):
    writer = shapefile.Writer(str(path), shapeType=shapefile.POLYGON)
    writer.field('ISO_A2', 'C', size=2)
    writer.field('NAME', 'C', size=40)
    writer.poly(crs_points or [[[24.7, 22.0], [24.7, 31.7], [36.9, 31.7], [36.9, 22.0], [24.7, 22.0]]])
    writer.record('EG', 'Egypt')
    writer.close()


def test_load_boundary_features_from_shapefile(tmp_path):
    path = tmp_path / 'countries'
    _write_shapefile(path)

    features = load_boundary_features(tmp_path / 'countries.shp')

    assert len(features) == 1
    assert features[0]['properties'] == {'iso_3166_1': 'EG'}
    west, south, east, north = bounding_box(features[0]['geometry'])
    assert (west, south, east, north) == pytest.approx((24.7, 22.0, 36.9, 31.7))


def test_load_boundary_features_reprojects(tmp_path):
    path = tmp_path / 'mercator'
    # Web Mercator metres around (0, 0) .. (1 degree, 1 degree)
    _write_shapefile(path, [[[0.0, 0.0], [0.0, 111325.14], [111319.49, 111325.14], [111319.49, 0.0], [0.0, 0.0]]])

    features = load_boundary_features(tmp_path / 'mercator.shp', source_crs='EPSG:3857')

    west, south, east, north = bounding_box(features[0]['geometry'])
    assert west == pytest.approx(0.0, abs=1e-6)
    assert south == pytest.approx(0.0, abs=1e-6)
    assert east == pytest.approx(1.0, abs=1e-4)
    assert north == pytest.approx(1.0, abs=1e-3)


def test_load_boundary_features_requires_iso_field(tmp_path):
    path = tmp_path / 'countries'
    _write_shapefile(path)

    with pytest.raises(LoadError):
        load_boundary_features(tmp_path / 'countries.shp', iso_field='ISO_A3')


def test_load_boundary_features_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_boundary_features(tmp_path / 'nope.shp')
