from collections import Counter

import numpy as np
import pytest

from hexterritory import config
from hexterritory.model.tessellation import expected_tile_count, generate_hexasphere, geodesic_mesh


@pytest.mark.parametrize("subdivisions", [1, 2, 5])
def test_geodesic_mesh_counts(subdivisions):
    points, triangles = geodesic_mesh(subdivisions)
    assert len(points) == expected_tile_count(subdivisions)
    assert len(triangles) == 20 * subdivisions ** 2
    np.testing.assert_allclose(np.linalg.norm(points, axis=1), 1.0)


def test_reference_frequency_tile_count():
    assert expected_tile_count(config.SUBDIVISIONS) == 4842


def test_geodesic_mesh_rejects_zero():
    with pytest.raises(ValueError):
        geodesic_mesh(0)


def test_triangles_wind_outwards():
    points, triangles = geodesic_mesh(3)
    v0, v1, v2 = points[triangles[:, 0]], points[triangles[:, 1]], points[triangles[:, 2]]
    outward = np.einsum("ij,ij->i", np.cross(v1 - v0, v2 - v0), v0 + v1 + v2)
    assert (outward > 0).all()


def test_hexasphere_shape(hexasphere):
    assert len(hexasphere) == expected_tile_count(6)
    sizes = Counter(t.vertex_count for t in hexasphere)
    assert sizes == {5: 12, 6: len(hexasphere) - 12}


def test_hexasphere_lies_on_sphere(hexasphere):
    for tile in hexasphere:
        np.testing.assert_allclose(np.linalg.norm(tile.boundary, axis=1), 100.0)
        assert np.linalg.norm(tile.center) == pytest.approx(100.0)
    assert hexasphere.radius == pytest.approx(100.0)


def test_neighbour_count_matches_corner_count(sphere_graph):
    for tile in sphere_graph.tiles:
        assert len(sphere_graph.graph.neighbors(tile.index)) == tile.vertex_count


def test_indices_are_stable():
    first = generate_hexasphere(radius=10.0, subdivisions=3)
    second = generate_hexasphere(radius=10.0, subdivisions=3)
    for a, b in zip(first, second):
        assert a.index == b.index
        np.testing.assert_array_equal(a.boundary, b.boundary)


def test_boundary_is_counter_clockwise_from_outside(hexasphere):
    for tile in list(hexasphere)[:50]:
        b = tile.boundary
        normal = np.cross(b[1] - b[0], b[2] - b[0])
        assert np.dot(normal, tile.center) > 0
