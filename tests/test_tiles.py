import numpy as np
import pytest

from hexterritory.model.geometry_utils import (
    as_points, color_to_rgb, lerp_color, normalize, quantize_key, scale_color,
)
from hexterritory.model.tiles import Tile, TileSet


def test_tile_arrays_are_read_only():
    tile = Tile(0, [[0, 0, 1], [1, 0, 1], [0, 1, 1]], [0.3, 0.3, 1])
    with pytest.raises(ValueError):
        tile.boundary[0, 0] = 5.0
    with pytest.raises(ValueError):
        tile.center[0] = 5.0


def test_tile_validation():
    with pytest.raises(ValueError):
        Tile(0, [[0, 0, 1], [1, 0, 1]], [0, 0, 1])
    with pytest.raises(ValueError):
        Tile(0, [[0, 0, 1], [1, 0, 1], [0, 1, 1]], [0, 0])


def test_fan_triangles():
    hexagon = Tile.from_points(0, [[np.cos(a), np.sin(a), 5] for a in np.linspace(0, 2 * np.pi, 6, endpoint=False)])
    assert hexagon.fan_triangles() == [(0, 1, 2), (0, 2, 3), (0, 3, 4), (0, 4, 5)]
    assert not hexagon.is_pentagon


def test_from_points_projects_missing_centre_to_boundary_radius():
    ring = [[np.cos(a), np.sin(a), 10.0] for a in np.linspace(0, 2 * np.pi, 5, endpoint=False)]
    tile = Tile.from_points(3, ring)
    radius = np.linalg.norm(ring[0])
    np.testing.assert_allclose(tile.center, [0, 0, radius], atol=1e-12)
    assert tile.is_pentagon


def test_tileset_enforces_index_positions():
    tile = Tile(1, [[0, 0, 1], [1, 0, 1], [0, 1, 1]], [0.3, 0.3, 1])
    with pytest.raises(ValueError):
        TileSet([tile])


def test_tileset_lookup():
    tiles = TileSet.from_polygons([
        [[0, 0, 1], [1, 0, 1], [0, 1, 1]],
        [[1, 0, 1], [1, 1, 1], [0, 1, 1]],
    ])
    assert len(tiles) == 2
    assert 1 in tiles
    assert np.int64(0) in tiles
    assert 2 not in tiles
    assert -1 not in tiles
    assert "0" not in tiles
    assert tiles.get(5) is None
    assert tiles.centers().shape == (2, 3)


def test_tileset_with_flags():
    tiles = TileSet.from_polygons([[[0, 0, 1], [1, 0, 1], [0, 1, 1]]] * 2)
    flagged = tiles.with_flags(tiers={0: "gold"}, excluded=[1])
    assert flagged[0].tier == "gold" and not flagged[0].excluded
    assert flagged[1].tier is None and flagged[1].excluded
    assert tiles[1].excluded is False


def test_from_polygons_checks_centre_count():
    with pytest.raises(ValueError):
        TileSet.from_polygons([[[0, 0, 1], [1, 0, 1], [0, 1, 1]]], centers=[])


def test_quantize_key_folds_negative_zero():
    assert quantize_key([-0.00001, 0.0, 1.00004], 4) == quantize_key([0.0, -0.0, 1.0], 4)


def test_as_points_shapes():
    assert as_points([1, 2, 3]).shape == (1, 3)
    with pytest.raises(ValueError):
        as_points([[1, 2]])


def test_normalize_zero_vector():
    np.testing.assert_array_equal(normalize([0, 0, 0]), [0, 0, 0])
    np.testing.assert_allclose(normalize([0, 3, 4]), [0, 0.6, 0.8])


def test_colour_helpers():
    assert scale_color(0x808080, 2.0) == 0xFFFFFF
    assert scale_color(0x646464, 0.5) == 0x323232
    assert lerp_color(0x660000, 0x000000, 0.5) == 0x330000
    assert lerp_color(0x000000, 0x0000FF, 1.0) == 0x0000FF
    assert color_to_rgb(0xFF0000) == (1.0, 0.0, 0.0)
