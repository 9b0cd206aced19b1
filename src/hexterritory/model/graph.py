"""
Tile Graph Builder
==================
Derives tile adjacency from shared boundary corners and identifies the tiles
that can never be sold (polar caps, pentagon seams and their one-ring).

Why is this file needed?
------------------------
1. Connectivity: Selection legality is defined on the adjacency graph, both
   for growing a region and for proving a removal keeps it in one piece.
2. Exclusion: Hex shapes are distorted near the poles and around the twelve
   pentagons, so pattern projection and pricing are unreliable there.

Classes:
    AdjacencyGraph: Immutable tile index -> neighbours mapping.
    TileGraph: Tiles + graph + excluded set, built once per session.
"""
from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, replace
import logging
from math import pi
from typing import Iterable, Iterator, Mapping, Optional, TYPE_CHECKING

from hexterritory import config
from hexterritory.model.geometry_utils import quantize_key, polar_angle, deg2rad
from hexterritory.model.tiles import Tile, TileSet

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class AdjacencyGraph(Mapping[int, frozenset[int]]):
    """
    Read-only adjacency map. Unknown indices have no neighbours.
    """

    def __init__(self, adjacency: Mapping[int, Iterable[int]]) -> None:
        self._adjacency: dict[int, frozenset[int]] = {
            int(k): frozenset(int(n) for n in v if int(n) != int(k)) for k, v in adjacency.items()
        }

    # Mapping protocol
    def __getitem__(self, index: int) -> frozenset[int]:
        return self._adjacency[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._adjacency)

    def __len__(self) -> int:
        return len(self._adjacency)

    def __repr__(self) -> str:
        return f"AdjacencyGraph(tiles={len(self)}, edges={self.edge_count})"

    @property
    def edge_count(self) -> int:
        return sum(len(n) for n in self._adjacency.values()) // 2

    def neighbors(self, index: int) -> frozenset[int]:
        return self._adjacency.get(index, frozenset())

    def are_adjacent(self, a: int, b: int) -> bool:
        return b in self.neighbors(a)

    def touches(self, index: int, members: Iterable[int] | set[int]) -> bool:
        """True if any neighbour of `index` is in `members`."""
        members = members if isinstance(members, (set, frozenset)) else set(members)
        return any(n in members for n in self.neighbors(index))

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------
    def flood_fill(self, start: int, within: set[int] | frozenset[int]) -> set[int]:
        """
        Breadth-first fill from `start`, restricted to `within`.

        Returns the visited members (empty if start is not in `within`).
        """
        if start not in within:
            return set()
        visited = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in self.neighbors(current):
                if neighbor in within and neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        return visited

    def is_connected(self, subset: Iterable[int]) -> bool:
        """Empty and single-tile subsets count as connected."""
        members = set(subset)
        if len(members) <= 1:
            return True
        start = next(iter(members))
        return len(self.flood_fill(start, members)) == len(members)

    def components(self, subset: Iterable[int]) -> list[set[int]]:
        """
        Connected components of the induced subgraph.

        Ordered by size (largest first), ties broken by smallest member.
        """
        remaining = set(subset)
        parts: list[set[int]] = []
        for start in sorted(remaining):
            if start not in remaining:
                continue
            part = self.flood_fill(start, remaining)
            remaining -= part
            parts.append(part)
        parts.sort(key=lambda p: (-len(p), min(p)))
        return parts

    def largest_component(self, subset: Iterable[int]) -> set[int]:
        parts = self.components(subset)
        return parts[0] if parts else set()

    def frontier(self, subset: Iterable[int], blocked: Iterable[int] = ()) -> set[int]:
        """Neighbours of `subset` that are neither members nor blocked."""
        members = set(subset)
        blocked_set = set(blocked)
        ring: set[int] = set()
        for index in members:
            ring.update(self.neighbors(index))
        return ring - members - blocked_set


def build_graph(tiles: Iterable[Tile], decimals: int = config.VERTEX_DECIMALS) -> AdjacencyGraph:
    """
    Build the adjacency graph from shared boundary corners.

    Each corner is quantised to `decimals` places; tiles sharing at least one
    key are neighbours. Cost is linear in the total number of corners.
    """
    tiles = list(tiles)
    vertex_to_tiles: dict[tuple[float, float, float], list[int]] = defaultdict(list)
    for tile in tiles:
        for key in {quantize_key(v, decimals) for v in tile.boundary}:
            vertex_to_tiles[key].append(tile.index)

    adjacency: dict[int, set[int]] = {tile.index: set() for tile in tiles}
    for owners in vertex_to_tiles.values():
        if len(owners) < 2:
            continue
        for a in owners:
            adjacency[a].update(o for o in owners if o != a)

    graph = AdjacencyGraph(adjacency)
    logger.debug(f"Built {graph!r} from {len(vertex_to_tiles)} distinct corners.")
    return graph


def find_polar(
    tiles: Iterable[Tile],
    threshold_deg: float = config.POLAR_THRESHOLD_DEG,
    up: Optional[npt.ArrayLike] = None,
) -> frozenset[int]:
    """Tiles whose centre lies within `threshold_deg` of either pole."""
    axis = config.WORLD_UP if up is None else up
    threshold = deg2rad(threshold_deg)
    polar = set()
    for tile in tiles:
        phi = polar_angle(tile.center, axis)
        if phi < threshold or phi > pi - threshold:
            polar.add(tile.index)
    return frozenset(polar)


def find_pentagons(tiles: Iterable[Tile]) -> frozenset[int]:
    """The 5-corner seam tiles of the tessellation."""
    return frozenset(t.index for t in tiles if t.is_pentagon)


def find_excluded(
    tiles: Iterable[Tile],
    graph: AdjacencyGraph,
    threshold_deg: float = config.POLAR_THRESHOLD_DEG,
    up: Optional[npt.ArrayLike] = None,
) -> frozenset[int]:
    """
    Polar tiles, pentagon tiles, and the one-ring around every pentagon.
    """
    tiles = list(tiles)
    pentagons = find_pentagons(tiles)
    excluded = set(find_polar(tiles, threshold_deg, up)) | set(pentagons)
    for pentagon in pentagons:
        excluded.update(graph.neighbors(pentagon))
    return frozenset(excluded)


@dataclass(frozen=True)
class TileGraph:
    """
    Session-long constants: tiles, adjacency and exclusion sets.
    """
    tiles: TileSet
    graph: AdjacencyGraph
    excluded: frozenset[int]
    polar: frozenset[int]
    pentagons: frozenset[int]

    @classmethod
    def build(
        cls,
        tiles: TileSet | Iterable[Tile],
        decimals: int = config.VERTEX_DECIMALS,
        polar_threshold_deg: float = config.POLAR_THRESHOLD_DEG,
        up: Optional[npt.ArrayLike] = None,
    ) -> TileGraph:
        tile_set = tiles if isinstance(tiles, TileSet) else TileSet(list(tiles))
        graph = build_graph(tile_set, decimals=decimals)
        polar = find_polar(tile_set, polar_threshold_deg, up)
        pentagons = find_pentagons(tile_set)
        excluded = find_excluded(tile_set, graph, polar_threshold_deg, up)
        logger.info(
            f"Tile graph ready: {len(tile_set)} tiles, {graph.edge_count} edges, "
            f"{len(excluded)} excluded ({len(polar)} polar, {len(pentagons)} pentagons)."
        )
        return cls(
            tiles=tile_set.with_flags(excluded=excluded),
            graph=graph,
            excluded=excluded,
            polar=polar,
            pentagons=pentagons,
        )

    def with_tiers(self, tier_map: Mapping[int, str]) -> TileGraph:
        """Copy with the classifier's tier labels stamped onto the tiles."""
        return replace(self, tiles=self.tiles.with_flags(tiers=dict(tier_map), excluded=self.excluded))

    def __len__(self) -> int:
        return len(self.tiles)

    def is_known(self, index: object) -> bool:
        return index in self.tiles

    def is_excluded(self, index: int) -> bool:
        return index in self.excluded

    def selectable_tiles(self) -> frozenset[int]:
        return frozenset(t.index for t in self.tiles if t.index not in self.excluded)
