"""
Tangent Projection Engine
=========================
Maps a sponsor image onto an arbitrary patch of the sphere.

Method:
    1. Centroid of the member tile centres, pushed back onto the sphere (the
       raw 3D mean sinks inwards for large clusters).
    2. Tangent basis at the centroid: normal, east = up x normal,
       north = normal x east. Near a pole up x normal vanishes and a fixed
       east axis is used instead.
    3. Every boundary corner is projected onto (east, north).
    4. The bounding box of the projected corners, padded 2% per axis, is
       fitted by a uniform "contain" scale so the whole image is visible
       undistorted and repeats to fill the rest.
    5. Texture U follows north/south and texture V follows east/west, which
       keeps uploaded images upright from the default camera angle.

Everything here is a pure function of (members, basis, adjustment, aspect).
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, Optional, TYPE_CHECKING

import numpy as np

from hexterritory import config
from hexterritory.model.geometry_utils import normalize
from hexterritory.model.pattern import NEUTRAL_ADJUSTMENT, PatternAdjustment
from hexterritory.model.tiles import TileSet

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Above this |cos| the fixed fallback east is too close to the normal
FALLBACK_MAX_ALIGNMENT = 0.9


@dataclass(frozen=True)
class TangentBasis:
    """Local flat frame at a point of the sphere."""
    origin: npt.NDArray[np.float64]
    normal: npt.NDArray[np.float64]
    east: npt.NDArray[np.float64]
    north: npt.NDArray[np.float64]

    def project(self, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """(N, 3) points -> (N, 2) columns (local_u, local_v) = (p.east, p.north)."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return np.column_stack((pts @ self.east, pts @ self.north))


@dataclass(frozen=True)
class ClusterBounds:
    """Axis-aligned box in tangent-plane coordinates."""
    min_u: float
    max_u: float
    min_v: float
    max_v: float

    @property
    def width(self) -> float:
        return self.max_u - self.min_u

    @property
    def height(self) -> float:
        return self.max_v - self.min_v

    @property
    def center_u(self) -> float:
        return (self.min_u + self.max_u) / 2

    @property
    def center_v(self) -> float:
        return (self.min_v + self.max_v) / 2

    def contains(self, other: ClusterBounds) -> bool:
        return (
            self.min_u <= other.min_u and self.max_u >= other.max_u
            and self.min_v <= other.min_v and self.max_v >= other.max_v
        )


@dataclass(frozen=True)
class ProjectionResult:
    """UVs per member tile, in the tile's boundary-vertex order."""
    basis: Optional[TangentBasis] = None
    bounds: Optional[ClusterBounds] = None
    fit_scale: float = 0.0
    texture_aspect: float = 1.0
    uvs: dict[int, npt.NDArray[np.float64]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.uvs

    def uv_span(self) -> tuple[float, float]:
        """Extent of all UVs along (u, v)."""
        if not self.uvs:
            return 0.0, 0.0
        stacked = np.vstack(list(self.uvs.values()))
        extent = stacked.max(axis=0) - stacked.min(axis=0)
        return float(extent[0]), float(extent[1])


def texture_aspect(width: Optional[int] = None, height: Optional[int] = None) -> float:
    """Image width / height; unknown sizes count as the default square texture."""
    w = width or config.DEFAULT_TEXTURE_SIZE
    h = height or config.DEFAULT_TEXTURE_SIZE
    return w / h


def _members(tiles: TileSet, members: Iterable[int]) -> list[int]:
    """Known member indices in ascending order."""
    return sorted({int(m) for m in members if m in tiles})


def cluster_centroid(
    tiles: TileSet,
    members: Iterable[int],
    up: Optional[npt.ArrayLike] = None,
) -> npt.NDArray[np.float64]:
    """
    Mean of the member centres re-normalised onto the sphere surface.

    The sphere radius is the mean centre length of the members. An empty
    subset yields the point above the up axis.
    """
    indices = _members(tiles, members)
    axis = normalize(config.WORLD_UP if up is None else up)
    if not indices:
        return axis * (tiles.radius or 1.0)

    centers = np.array([tiles[i].center for i in indices])
    radius = float(np.linalg.norm(centers, axis=1).mean())
    direction = normalize(centers.mean(axis=0))
    if not direction.any():
        # Antipodal members cancel out; fall back to the first member
        direction = normalize(centers[0])
    return direction * radius


def _fallback_east(normal: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    east = np.array(config.FALLBACK_EAST, dtype=np.float64)
    if abs(float(np.dot(east, normal))) < FALLBACK_MAX_ALIGNMENT:
        return east
    return np.eye(3)[int(np.argmin(np.abs(normal)))]


def tangent_basis(centroid: npt.ArrayLike, up: Optional[npt.ArrayLike] = None) -> TangentBasis:
    """
    East/north frame at `centroid`.

    east = normalize(up x normal); when the centroid is within epsilon of a
    pole the cross product vanishes and a fallback axis is used: the fixed
    east axis, or the world axis least aligned with the normal when the
    fixed one is itself close to the normal (custom up directions).
    """
    origin = np.asarray(centroid, dtype=np.float64).reshape(3)
    normal = normalize(origin)
    axis = np.asarray(config.WORLD_UP if up is None else up, dtype=np.float64)

    east = np.cross(axis, normal)
    if float(np.dot(east, east)) < config.POLE_EPSILON:
        fallback = _fallback_east(normal)
        east = fallback - float(np.dot(fallback, normal)) * normal
    east = normalize(east)
    north = normalize(np.cross(normal, east))
    return TangentBasis(origin=origin, normal=normal, east=east, north=north)


def cluster_bounds(
    tiles: TileSet,
    members: Iterable[int],
    basis: TangentBasis,
    padding: float = config.BOUNDS_PADDING,
) -> Optional[ClusterBounds]:
    """
    Padded bounding box of every member corner in the basis' plane.

    Returns None for an empty subset.
    """
    indices = _members(tiles, members)
    if not indices:
        return None
    local = basis.project(np.vstack([tiles[i].boundary for i in indices]))
    min_u, min_v = local.min(axis=0)
    max_u, max_v = local.max(axis=0)
    pad_u = (max_u - min_u) * padding
    pad_v = (max_v - min_v) * padding
    return ClusterBounds(
        min_u=float(min_u - pad_u),
        max_u=float(max_u + pad_u),
        min_v=float(min_v - pad_v),
        max_v=float(max_v + pad_v),
    )


def contain_scale(bounds: ClusterBounds, aspect: float) -> float:
    """Uniform fit so the full texture is visible without distortion."""
    return max(bounds.width, bounds.height * aspect)


def vertex_uvs(
    local: npt.NDArray[np.float64],
    bounds: ClusterBounds,
    fit_scale: float,
    aspect: float,
    adjustment: PatternAdjustment = NEUTRAL_ADJUSTMENT,
) -> npt.NDArray[np.float64]:
    """
    Tangent coordinates -> texture coordinates.

    u = ((local_v - center_v) / scale + 0.5) / user_scale + offset_x * 0.5
    v = (((local_u - center_u) / scale) * aspect + 0.5) / user_scale + offset_y * 0.5
    """
    scale = fit_scale if fit_scale > 0.0 else 1.0
    user_scale = adjustment.scale or 1.0
    local_u = local[:, 0]
    local_v = local[:, 1]
    u = ((local_v - bounds.center_v) / scale + 0.5) / user_scale + adjustment.offset_x * 0.5
    v = (((local_u - bounds.center_u) / scale) * aspect + 0.5) / user_scale + adjustment.offset_y * 0.5
    return np.column_stack((u, v))


def project(
    tiles: TileSet,
    members: Iterable[int],
    adjustment: PatternAdjustment = NEUTRAL_ADJUSTMENT,
    aspect: float = 1.0,
    up: Optional[npt.ArrayLike] = None,
    basis: Optional[TangentBasis] = None,
) -> ProjectionResult:
    """
    Compute per-vertex UVs for every member tile.

    Args:
        tiles: The session's tile set.
        members: Tile subset to wrap (unknown indices are ignored).
        adjustment: User scale/offset (colour levels are not used here).
        aspect: Texture width / height.
        up: Reference up direction, defaults to +Y.
        basis: Reuse a precomputed basis instead of deriving it from the subset.

    Returns:
        ProjectionResult; empty when the subset is empty.
    """
    indices = _members(tiles, members)
    if not indices:
        return ProjectionResult(texture_aspect=aspect)

    if basis is None:
        basis = tangent_basis(cluster_centroid(tiles, indices, up), up)
    bounds = cluster_bounds(tiles, indices, basis)
    fit = contain_scale(bounds, aspect)

    uvs: dict[int, npt.NDArray[np.float64]] = {}
    for index in indices:
        local = basis.project(tiles[index].boundary)
        uv = vertex_uvs(local, bounds, fit, aspect, adjustment)
        uv.setflags(write=False)
        uvs[index] = uv

    logger.debug(f"Projected {len(indices)} tiles: bounds={bounds.width:.3f}x{bounds.height:.3f}, fit={fit:.3f}.")
    return ProjectionResult(basis=basis, bounds=bounds, fit_scale=fit, texture_aspect=aspect, uvs=uvs)
