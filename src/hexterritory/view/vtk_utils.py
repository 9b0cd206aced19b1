"""
VTK Mesh Utilities
Builds pyvista meshes of tile subsets, with projected texture coordinates.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

import numpy as np
import numpy.typing as npt
import pyvista as pv

from hexterritory.model.tiles import TileSet

logger = logging.getLogger(__name__)

TILE_INDEX_ARRAY = "tile_index"
TCOORDS_ARRAY = "Texture Coordinates"


class VtkUtils:
    @staticmethod
    def tiles_to_polydata(
        tiles: TileSet,
        indices: Iterable[int],
        uvs: Optional[Mapping[int, npt.NDArray[np.float64]]] = None,
    ) -> pv.PolyData:
        """
        Fan-triangulate the given tiles into one PolyData.

        Corners are not shared between tiles, so each tile keeps its own UVs
        (neighbouring clusters may project the same corner differently).

        Args:
            tiles: Tile set.
            indices: Tiles to include, unknown indices are skipped.
            uvs: Optional tile -> (N, 2) UVs in boundary order. When given, every
                 included tile must have an entry.

        Returns:
            PolyData with a `tile_index` cell array and, if UVs were given,
            active texture coordinates.
        """
        members = sorted({int(i) for i in indices if i in tiles})
        if not members:
            return pv.PolyData()

        points_list: list[npt.NDArray[np.float64]] = []
        faces_list: list[npt.NDArray[np.int_]] = []
        cell_tiles: list[int] = []
        tcoords_list: list[npt.NDArray[np.float64]] = []
        offset = 0

        for index in members:
            tile = tiles[index]
            n = tile.vertex_count
            points_list.append(np.asarray(tile.boundary))
            for a, b, c in tile.fan_triangles():
                faces_list.append(np.array([3, offset + a, offset + b, offset + c], dtype=np.int_))
                cell_tiles.append(index)
            if uvs is not None:
                if index not in uvs:
                    raise ValueError(f"No UVs for tile {index}.")
                tile_uv = np.asarray(uvs[index], dtype=np.float64)
                if tile_uv.shape != (n, 2):
                    raise ValueError(f"UVs of tile {index} have shape {tile_uv.shape}, expected ({n}, 2).")
                tcoords_list.append(tile_uv)
            offset += n

        pd = pv.PolyData(np.vstack(points_list), np.concatenate(faces_list))
        pd.cell_data[TILE_INDEX_ARRAY] = np.asarray(cell_tiles, dtype=np.int_)
        if uvs is not None:
            pd.active_texture_coordinates = np.vstack(tcoords_list)
        logger.debug(f"Built PolyData for {len(members)} tiles ({pd.n_cells} triangles).")
        return pd

    @staticmethod
    def outline_polydata(tiles: TileSet, indices: Iterable[int]) -> pv.PolyData:
        """Merged edge segments of the given tiles (one line cell per edge)."""
        members = sorted({int(i) for i in indices if i in tiles})
        if not members:
            return pv.PolyData()

        points_list: list[npt.NDArray[np.float64]] = []
        lines_list: list[npt.NDArray[np.int_]] = []
        offset = 0
        for index in members:
            boundary = np.asarray(tiles[index].boundary)
            n = boundary.shape[0]
            points_list.append(boundary)
            for i in range(n):
                lines_list.append(np.array([2, offset + i, offset + (i + 1) % n], dtype=np.int_))
            offset += n

        pd = pv.PolyData(np.vstack(points_list))
        pd.lines = np.concatenate(lines_list)
        return pd
