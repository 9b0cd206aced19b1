import numpy as np
import pytest

from hexterritory.model.graph import (
    AdjacencyGraph, TileGraph, build_graph, find_excluded, find_pentagons, find_polar,
)
from hexterritory.model.tiles import Tile, TileSet


def test_chain_adjacency(chain_graph):
    graph = chain_graph.graph
    assert graph.neighbors(0) == {1}
    assert graph.neighbors(2) == {1, 3}
    assert graph.neighbors(4) == {3}
    assert graph.edge_count == 4


def test_corner_contact_counts_as_adjacent(grid_graph):
    # Tile 6 (row 1, col 1) touches all eight surrounding squares
    assert grid_graph.graph.neighbors(6) == {0, 1, 2, 5, 7, 10, 11, 12}
    assert grid_graph.graph.are_adjacent(0, 6)
    assert not grid_graph.graph.are_adjacent(0, 2)


def test_unknown_index_has_no_neighbours(chain_graph):
    assert chain_graph.graph.neighbors(99) == frozenset()
    assert not chain_graph.is_known(99)
    assert not chain_graph.is_known(-1)


def test_quantisation_absorbs_float_jitter():
    a = Tile(0, [[0, 0, 100], [1, 0, 100], [1, 1, 100], [0, 1, 100]], [0.5, 0.5, 100])
    b = Tile(1, [[1.00000001, 0, 100], [2, 0, 100], [2, 1, 100], [1, 0.99999999, 100]], [1.5, 0.5, 100])
    far = Tile(2, [[2.01, 0, 100], [3, 0, 100], [3, 1, 100], [2.01, 1, 100]], [2.5, 0.5, 100])
    graph = build_graph([a, b, far])
    assert graph.are_adjacent(0, 1)
    assert not graph.are_adjacent(1, 2)


def test_flood_fill_stays_within_subset(chain_graph):
    graph = chain_graph.graph
    assert graph.flood_fill(0, {0, 1, 3, 4}) == {0, 1}
    assert graph.flood_fill(2, {0, 1}) == set()


def test_connectivity_and_components(chain_graph):
    graph = chain_graph.graph
    assert graph.is_connected([])
    assert graph.is_connected([3])
    assert graph.is_connected([1, 2, 3])
    assert not graph.is_connected([0, 2])
    assert graph.components([4, 0, 1, 3]) == [{0, 1}, {3, 4}]
    assert graph.components([0, 2, 3]) == [{2, 3}, {0}]
    assert graph.largest_component([]) == set()


def test_frontier_skips_blocked(chain_graph):
    assert chain_graph.graph.frontier([2]) == {1, 3}
    assert chain_graph.graph.frontier([2], blocked=[3]) == {1}


def test_adjacency_graph_is_symmetric_mapping():
    graph = AdjacencyGraph({0: [1, 0], 1: [0]})
    assert dict(graph) == {0: frozenset({1}), 1: frozenset({0})}
    assert len(graph) == 2


def test_find_polar_uses_up_axis():
    near_pole = Tile.from_points(0, [[1, 100, 0], [0, 100, 1], [-1, 100, 0]])
    south = Tile.from_points(1, [[1, -100, 0], [0, -100, 1], [-1, -100, 0]])
    equator = Tile.from_points(2, [[100, 0, 1], [100, 1, 0], [100, 0, -1]])
    tiles = [near_pole, south, equator]
    assert find_polar(tiles) == {0, 1}
    assert find_polar(tiles, up=[1, 0, 0]) == {2}


def test_sphere_exclusion(sphere_graph):
    pentagons = find_pentagons(sphere_graph.tiles)
    assert len(pentagons) == 12
    ring = set()
    for p in pentagons:
        ring |= sphere_graph.graph.neighbors(p)
    assert len(ring) == 60
    assert sphere_graph.excluded == pentagons | ring | sphere_graph.polar
    assert sphere_graph.excluded == find_excluded(sphere_graph.tiles, sphere_graph.graph)
    for tile in sphere_graph.tiles:
        assert tile.excluded == (tile.index in sphere_graph.excluded)


def test_polar_tiles_are_near_the_poles(sphere_graph):
    assert sphere_graph.polar
    for index in sphere_graph.polar:
        center = sphere_graph.tiles[index].center
        assert abs(center[1]) / np.linalg.norm(center) > np.cos(np.radians(10.0))


def test_selectable_tiles(sphere_graph):
    selectable = sphere_graph.selectable_tiles()
    assert selectable
    assert not (selectable & sphere_graph.excluded)
    assert len(selectable) + len(sphere_graph.excluded) == len(sphere_graph)


def test_build_accepts_plain_tile_list():
    tiles = [
        Tile(0, [[0, 0, 100], [1, 0, 100], [1, 1, 100], [0, 1, 100]], [0.5, 0.5, 100]),
        Tile(1, [[1, 0, 100], [2, 0, 100], [2, 1, 100], [1, 1, 100]], [1.5, 0.5, 100]),
    ]
    tile_graph = TileGraph.build(tiles)
    assert isinstance(tile_graph.tiles, TileSet)
    assert tile_graph.graph.are_adjacent(0, 1)
    assert tile_graph.excluded == frozenset()


def test_with_tiers_keeps_exclusion(sphere_graph):
    pentagon = min(sphere_graph.pentagons)
    open_tile = min(sphere_graph.selectable_tiles())
    tiered = sphere_graph.with_tiers({pentagon: "gold", open_tile: "bronze"})
    assert tiered.tiles[pentagon].tier == "gold"
    assert tiered.tiles[pentagon].excluded
    assert tiered.tiles[open_tile].tier == "bronze"
    assert not tiered.tiles[open_tile].excluded
    assert tiered.graph is sphere_graph.graph
    assert sphere_graph.tiles[open_tile].tier is None
