import numpy as np
import pytest

from hexterritory.controller.projection import (
    cluster_bounds, cluster_centroid, contain_scale, project, tangent_basis, texture_aspect,
)
from hexterritory.model.pattern import PatternAdjustment

FACING_Z = [0.0, 0.0, 100.0]


def test_basis_on_equator():
    basis = tangent_basis(FACING_Z)
    np.testing.assert_allclose(basis.normal, [0, 0, 1])
    np.testing.assert_allclose(basis.east, [1, 0, 0])
    np.testing.assert_allclose(basis.north, [0, 1, 0])


@pytest.mark.parametrize("pole", [[0, 100, 0], [0, -100, 0], [1e-4, 100, 0]])
def test_basis_falls_back_at_the_poles(pole):
    basis = tangent_basis(pole)
    np.testing.assert_allclose(basis.east, [1, 0, 0], atol=1e-5)
    assert np.dot(basis.east, basis.normal) == pytest.approx(0.0)
    assert np.isfinite(basis.north).all()
    assert np.linalg.norm(basis.north) == pytest.approx(1.0)
    assert np.dot(basis.north, basis.east) == pytest.approx(0.0)


@pytest.mark.parametrize("up, centroid", [
    ([1, 0, 0], [100, 0, 0]),
    ([1, 0, 0], [-100, 0.01, 0]),
    ([0, 0, 1], [0, 0, 100]),
    ([1, 1, 0], [70, 70, 0]),
])
def test_basis_fallback_with_custom_up(up, centroid):
    basis = tangent_basis(centroid, up=up)
    m = np.vstack([basis.east, basis.north, basis.normal])
    np.testing.assert_allclose(m @ m.T, np.eye(3), atol=1e-12)


def test_projection_around_custom_up_axis(make_grid):
    tiles = make_grid(1, 2).tiles
    result = project(tiles, [0, 1], up=[0, 0, 1])
    u_span, v_span = result.uv_span()
    assert u_span > 0.0 and v_span > 0.0
    assert all(np.isfinite(uv).all() for uv in result.uvs.values())


def test_basis_is_orthonormal(hexasphere):
    for tile in list(hexasphere)[::17]:
        basis = tangent_basis(tile.center)
        m = np.vstack([basis.east, basis.north, basis.normal])
        np.testing.assert_allclose(m @ m.T, np.eye(3), atol=1e-12)


def test_centroid_is_on_the_sphere(hexasphere):
    members = [0, 1, 2, 3, 50, 51]
    centroid = cluster_centroid(hexasphere, members)
    assert np.linalg.norm(centroid) == pytest.approx(100.0)


def test_single_tile_uvs_swap_axes(make_grid):
    tiles = make_grid(1, 1).tiles
    result = project(tiles, [0], basis=tangent_basis(FACING_Z))
    uv = result.uvs[0]
    assert uv.shape == (4, 2)
    assert result.bounds.width == pytest.approx(1.04)
    assert result.fit_scale == pytest.approx(1.04)
    edge = 0.5 - 0.5 / 1.04
    # Corner (x=1, y=0): u follows y, v follows x
    np.testing.assert_allclose(uv[1], [edge, 1.0 - edge])
    assert ((uv > 0.0) & (uv < 1.0)).all()


def test_projection_is_deterministic(sphere_graph):
    members = sorted(sphere_graph.selectable_tiles())[:12]
    adj = PatternAdjustment(scale=1.5, offset_x=0.1)
    first = project(sphere_graph.tiles, members, adj, aspect=1.6)
    second = project(sphere_graph.tiles, list(reversed(members)), adj, aspect=1.6)
    assert first.uvs.keys() == second.uvs.keys()
    for index in members:
        np.testing.assert_array_equal(first.uvs[index], second.uvs[index])


def test_uvs_follow_boundary_order_and_are_read_only(sphere_graph):
    members = sorted(sphere_graph.selectable_tiles())[:3]
    result = project(sphere_graph.tiles, members)
    for index in members:
        assert result.uvs[index].shape == (sphere_graph.tiles[index].vertex_count, 2)
        assert not result.uvs[index].flags.writeable


def test_user_scale_halves_uv_span(make_grid):
    tiles = make_grid(2, 5).tiles
    l_shape = [0, 1, 5]
    base = project(tiles, l_shape, PatternAdjustment(scale=1))
    zoomed = project(tiles, l_shape, PatternAdjustment(scale=2))
    base_u, base_v = base.uv_span()
    zoom_u, zoom_v = zoomed.uv_span()
    assert zoom_u == pytest.approx(base_u / 2)
    assert zoom_v == pytest.approx(base_v / 2)


def test_offset_shifts_by_half(make_grid):
    tiles = make_grid(1, 2).tiles
    plain = project(tiles, [0, 1])
    shifted = project(tiles, [0, 1], PatternAdjustment(offset_x=1.0, offset_y=-0.5))
    for index in (0, 1):
        np.testing.assert_allclose(shifted.uvs[index][:, 0], plain.uvs[index][:, 0] + 0.5)
        np.testing.assert_allclose(shifted.uvs[index][:, 1], plain.uvs[index][:, 1] - 0.25)


def test_contain_fit_uses_aspect(make_grid):
    tiles = make_grid(1, 3).tiles
    basis = tangent_basis(FACING_Z)
    bounds = cluster_bounds(tiles, [0, 1, 2], basis)
    assert bounds.width == pytest.approx(3 * 1.04)
    assert bounds.height == pytest.approx(1.04)
    assert contain_scale(bounds, 1.0) == pytest.approx(bounds.width)
    assert contain_scale(bounds, 4.0) == pytest.approx(bounds.height * 4.0)


def test_bounds_grow_with_the_cluster(make_grid):
    tiles = make_grid(3, 3).tiles
    basis = tangent_basis(FACING_Z)
    small = cluster_bounds(tiles, [4], basis)
    large = cluster_bounds(tiles, [3, 4, 5, 7], basis)
    assert large.contains(small)
    assert not small.contains(large)


def test_empty_subset():
    from hexterritory.model.tiles import TileSet
    result = project(TileSet([]), [])
    assert result.is_empty
    assert result.uv_span() == (0.0, 0.0)


def test_unknown_members_are_ignored(make_grid):
    tiles = make_grid(1, 2).tiles
    result = project(tiles, [0, 1, 99])
    assert set(result.uvs) == {0, 1}


def test_texture_aspect():
    assert texture_aspect() == 1.0
    assert texture_aspect(300, 150) == 2.0
