"""
Tile Records
============
Immutable surface tiles produced once from the tessellation input.

Classes:
    Tile: One hexagonal (or pentagonal) cell of the sphere.
    TileSet: Index-stable, read-only collection of tiles.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Iterable, Iterator, Optional, Sequence, TYPE_CHECKING

import numpy as np

from hexterritory.model.geometry_utils import as_points

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Tile:
    """
    A single tile of the hexasphere.

    `boundary` is the ordered (N, 3) corner polygon (N = 5 or 6 for a
    Goldberg tessellation), `center` the (3,) centre point on the sphere.
    Both arrays are made read-only on construction.
    """
    index: int
    boundary: npt.NDArray[np.float64]
    center: npt.NDArray[np.float64]
    tier: Optional[str] = None
    excluded: bool = False

    def __post_init__(self) -> None:
        boundary = as_points(self.boundary).copy()
        if boundary.shape[0] < 3:
            raise ValueError(f"Tile {self.index} has {boundary.shape[0]} vertices, need at least 3.")
        center = np.asarray(self.center, dtype=np.float64).reshape(-1).copy()
        if center.shape != (3,):
            raise ValueError(f"Tile {self.index} center must be a 3-vector, got shape {center.shape}.")
        boundary.setflags(write=False)
        center.setflags(write=False)
        object.__setattr__(self, "boundary", boundary)
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "index", int(self.index))

    @property
    def vertex_count(self) -> int:
        return int(self.boundary.shape[0])

    @property
    def is_pentagon(self) -> bool:
        return self.vertex_count == 5

    def fan_triangles(self) -> list[tuple[int, int, int]]:
        """Local triangle indices (0, i, i+1) covering the polygon."""
        return [(0, i, i + 1) for i in range(1, self.vertex_count - 1)]

    def with_flags(self, tier: Optional[str] = None, excluded: Optional[bool] = None) -> Tile:
        return replace(
            self,
            tier=self.tier if tier is None else tier,
            excluded=self.excluded if excluded is None else excluded,
        )

    @classmethod
    def from_points(
        cls,
        index: int,
        boundary: Iterable[Sequence[float]],
        center: Optional[Sequence[float]] = None,
    ) -> Tile:
        """
        Build a tile from raw tessellation output.

        When the centre is missing it is taken as the boundary mean pushed out
        to the boundary's average radius.
        """
        pts = as_points(list(boundary))
        if center is None:
            mean = pts.mean(axis=0)
            radius = float(np.linalg.norm(pts, axis=1).mean())
            norm = float(np.linalg.norm(mean))
            center = mean if norm == 0.0 else mean / norm * radius
        return cls(index=index, boundary=pts, center=np.asarray(center, dtype=np.float64))

    def __repr__(self) -> str:
        return f"Tile({self.index}, n={self.vertex_count}, tier={self.tier!r}, excluded={self.excluded})"


@dataclass
class TileSet:
    """
    Ordered, index-stable tile collection.

    Index N always denotes the same physical tile; `tiles[i].index == i`
    is enforced.
    """
    tiles: list[Tile] = field(default_factory=list)

    def __post_init__(self) -> None:
        for position, tile in enumerate(self.tiles):
            if tile.index != position:
                raise ValueError(f"Tile at position {position} carries index {tile.index}.")

    @classmethod
    def from_polygons(
        cls,
        polygons: Iterable[Iterable[Sequence[float]]],
        centers: Optional[Iterable[Sequence[float]]] = None,
    ) -> TileSet:
        polygons = list(polygons)
        center_list = list(centers) if centers is not None else [None] * len(polygons)
        if len(center_list) != len(polygons):
            raise ValueError(f"Got {len(polygons)} polygons but {len(center_list)} centers.")
        tiles = [Tile.from_points(i, poly, c) for i, (poly, c) in enumerate(zip(polygons, center_list))]
        logger.debug(f"Built TileSet with {len(tiles)} tiles.")
        return cls(tiles)

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def __getitem__(self, index: int) -> Tile:
        return self.tiles[index]

    def __contains__(self, index: object) -> bool:
        return isinstance(index, (int, np.integer)) and 0 <= int(index) < len(self.tiles)

    def get(self, index: int) -> Optional[Tile]:
        return self.tiles[index] if index in self else None

    @property
    def radius(self) -> float:
        """Mean distance of tile centres from the origin."""
        if not self.tiles:
            return 0.0
        return float(np.mean([np.linalg.norm(t.center) for t in self.tiles]))

    def centers(self) -> npt.NDArray[np.float64]:
        return np.array([t.center for t in self.tiles], dtype=np.float64).reshape(-1, 3)

    def with_flags(
        self,
        tiers: Optional[dict[int, str]] = None,
        excluded: Optional[Iterable[int]] = None,
    ) -> TileSet:
        """Copy with tier labels and excluded flags stamped onto the tiles."""
        tiers = tiers or {}
        excluded_set = set(excluded or ())
        return TileSet([
            t.with_flags(tier=tiers.get(t.index), excluded=t.index in excluded_set)
            for t in self.tiles
        ])
