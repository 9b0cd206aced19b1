"""
Reference Hexasphere Generator
==============================
Produces the index-stable tile polygons the rest of the engine consumes.

The production tiles come from the game client's tessellation; this module
rebuilds the same kind of surface (a Goldberg polyhedron: 12 pentagons, the
rest hexagons) for tests, tooling and the command-line demo.

Construction:
    1. Split each icosahedron face into n^2 triangles (geodesic frequency n)
       and push the grid points onto the unit sphere.
    2. Merge the duplicated points along shared face edges (KD-tree snap).
    3. Every merged point becomes one tile; its corners are the centroids of
       the incident triangles, ordered counter-clockwise seen from outside.
"""
from __future__ import annotations

from collections import defaultdict
import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial import cKDTree

from hexterritory import config
from hexterritory.model.geometry_utils import normalize
from hexterritory.model.tiles import Tile, TileSet

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

_PHI = (1.0 + 5.0 ** 0.5) / 2.0

ICOSAHEDRON_VERTICES = np.array([
    [-1.0, _PHI, 0.0], [1.0, _PHI, 0.0], [-1.0, -_PHI, 0.0], [1.0, -_PHI, 0.0],
    [0.0, -1.0, _PHI], [0.0, 1.0, _PHI], [0.0, -1.0, -_PHI], [0.0, 1.0, -_PHI],
    [_PHI, 0.0, -1.0], [_PHI, 0.0, 1.0], [-_PHI, 0.0, -1.0], [-_PHI, 0.0, 1.0],
])

ICOSAHEDRON_FACES = np.array([
    [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
    [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
    [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
    [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
])

# Merge radius on the unit sphere; grid spacing at n=100 is still ~1e-2
SNAP_TOLERANCE = 1e-7


def expected_tile_count(subdivisions: int) -> int:
    return 10 * subdivisions * subdivisions + 2


def _face_grid(a: npt.NDArray, b: npt.NDArray, c: npt.NDArray, n: int) -> tuple[npt.NDArray, dict[tuple[int, int], int]]:
    """Grid points of one face, with the (i, j) -> local row lookup."""
    points = []
    lookup: dict[tuple[int, int], int] = {}
    for i in range(n + 1):
        for j in range(n + 1 - i):
            lookup[(i, j)] = len(points)
            points.append(a + (b - a) * (i / n) + (c - a) * (j / n))
    return np.array(points), lookup


def _face_triangles(lookup: dict[tuple[int, int], int], n: int) -> list[tuple[int, int, int]]:
    triangles = []
    for i in range(n):
        for j in range(n - i):
            triangles.append((lookup[(i, j)], lookup[(i + 1, j)], lookup[(i, j + 1)]))
            if i + j < n - 1:
                triangles.append((lookup[(i + 1, j)], lookup[(i + 1, j + 1)], lookup[(i, j + 1)]))
    return triangles


def geodesic_mesh(subdivisions: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
    """
    Unit-sphere geodesic triangulation of frequency `subdivisions`.

    Returns:
        points: (10n^2+2, 3) unique unit vectors, in first-seen order.
        triangles: (20n^2, 3) indices into points, outward (CCW) winding.
    """
    if subdivisions < 1:
        raise ValueError(f"Subdivisions must be >= 1, got {subdivisions}.")

    corners = ICOSAHEDRON_VERTICES / np.linalg.norm(ICOSAHEDRON_VERTICES, axis=1)[:, None]
    all_points = []
    all_triangles = []
    offset = 0
    for face in ICOSAHEDRON_FACES:
        pts, lookup = _face_grid(corners[face[0]], corners[face[1]], corners[face[2]], subdivisions)
        pts = pts / np.linalg.norm(pts, axis=1)[:, None]
        all_points.append(pts)
        all_triangles.extend((a + offset, b + offset, c + offset) for a, b, c in _face_triangles(lookup, subdivisions))
        offset += len(pts)

    raw = np.vstack(all_points)

    # Snap duplicates: the representative of each cluster is its first occurrence
    tree = cKDTree(raw)
    representative = np.array([min(group) for group in tree.query_ball_point(raw, r=SNAP_TOLERANCE)])
    first_seen, inverse = np.unique(representative, return_inverse=True)
    points = raw[first_seen]
    triangles = inverse.reshape(-1)[np.asarray(all_triangles)]

    # Enforce outward winding
    v0, v1, v2 = points[triangles[:, 0]], points[triangles[:, 1]], points[triangles[:, 2]]
    inward = np.einsum("ij,ij->i", np.cross(v1 - v0, v2 - v0), v0 + v1 + v2) < 0.0
    triangles[inward] = triangles[inward][:, [0, 2, 1]]

    expected = expected_tile_count(subdivisions)
    if len(points) != expected:
        raise ValueError(f"Geodesic snap produced {len(points)} points, expected {expected}.")
    return points, triangles


def _ordered_ring(center: npt.NDArray[np.float64], ring: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Sort corner points counter-clockwise around `center` (seen from outside)."""
    normal = normalize(center)
    helper = config.WORLD_UP if abs(float(np.dot(normal, config.WORLD_UP))) < 0.9 else config.FALLBACK_EAST
    e1 = normalize(np.cross(helper, normal))
    e2 = np.cross(normal, e1)
    rel = ring - center
    angles = np.arctan2(rel @ e2, rel @ e1)
    return ring[np.argsort(angles, kind="stable")]


def generate_hexasphere(
    radius: float = config.SPHERE_RADIUS,
    subdivisions: int = config.SUBDIVISIONS,
) -> TileSet:
    """
    Build the hexasphere tile set.

    Args:
        radius: Sphere radius of tile centres and corners.
        subdivisions: Geodesic frequency n; the result has 10n^2+2 tiles.

    Returns:
        Index-stable TileSet (12 pentagons, the rest hexagons).
    """
    points, triangles = geodesic_mesh(subdivisions)

    centroids = points[triangles].mean(axis=1)
    centroids = centroids / np.linalg.norm(centroids, axis=1)[:, None] * radius

    incident: dict[int, list[int]] = defaultdict(list)
    for t_index, tri in enumerate(triangles):
        for p in tri:
            incident[int(p)].append(t_index)

    tiles = []
    for p_index, point in enumerate(points):
        center = point * radius
        ring = _ordered_ring(center, centroids[incident[p_index]])
        tiles.append(Tile(index=p_index, boundary=ring, center=center))

    pentagons = sum(1 for t in tiles if t.is_pentagon)
    logger.info(f"Generated hexasphere: radius={radius}, n={subdivisions}, {len(tiles)} tiles, {pentagons} pentagons.")
    return TileSet(tiles)
