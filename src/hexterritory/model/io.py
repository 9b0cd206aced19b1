"""
Input/Output Manager (HDF5 / JSON)
Saves and restores an editing session to .h5 files and reads assignment feeds.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from importlib.metadata import version, PackageNotFoundError
from typing import Any, Dict, Optional

import h5py
import numpy as np

from hexterritory.model.pattern import AssignmentInfo, OwnerTerritory, parse_feed
from hexterritory.model.tiles import Tile, TileSet

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("hexterritory")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

# HDF5 attributes are limited to 64KB
ATTRIBUTE_JSON_LIMIT = 60000


@dataclass
class SessionData:
    """Everything needed to resume an editing session."""
    tiles: TileSet
    selected: list[int] = field(default_factory=list)
    assignments: Dict[int, AssignmentInfo] = field(default_factory=dict)
    owner_id: Optional[str] = None


class IOManager:
    @staticmethod
    def save_session(
        filepath: str,
        tiles: TileSet,
        selected: list[int],
        assignments: Optional[Dict[int, AssignmentInfo]] = None,
        owner_id: Optional[str] = None,
    ) -> None:
        logger.info(f"Saving session to: {filepath}")
        assignments = assignments or {}
        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                if owner_id is not None:
                    f.attrs["owner_id"] = owner_id

                # --- 1. TILES ---
                # Corners padded to the widest tile; counts restore the real length
                grp_tiles = f.create_group("tiles")
                counts = np.array([t.vertex_count for t in tiles], dtype=np.int32)
                width = int(counts.max()) if len(counts) else 0
                corners = np.full((len(tiles), width, 3), np.nan, dtype=np.float64)
                for tile in tiles:
                    corners[tile.index, :tile.vertex_count] = tile.boundary
                grp_tiles.create_dataset("vertex_counts", data=counts)
                grp_tiles.create_dataset("boundaries", data=corners, compression="gzip")
                grp_tiles.create_dataset("centers", data=tiles.centers())

                # --- 2. SELECTION ---
                f.create_dataset("selected", data=np.asarray(sorted(selected), dtype=np.int64))

                # --- 3. ASSIGNMENTS ---
                assign_json = json.dumps({str(k): v.to_dict() for k, v in sorted(assignments.items())})
                if len(assign_json) > ATTRIBUTE_JSON_LIMIT:
                    logger.info(f"Assignments are large ({len(assign_json)} bytes), using dataset")
                    f.create_dataset("assignments", data=np.void(assign_json.encode("utf-8")))
                else:
                    f.attrs["assignments_json"] = assign_json

            logger.info(f"Session saved: {len(tiles)} tiles, {len(selected)} selected, {len(assignments)} assigned.")
        except Exception as e:
            logger.exception(f"Failed to save session: {e}")
            raise

    @staticmethod
    def load_session(filepath: str) -> SessionData:
        logger.info(f"Loading session from: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ValueError(msg)

        try:
            with h5py.File(filepath, "r") as f:
                grp_tiles = f["tiles"]
                counts = grp_tiles["vertex_counts"][:]
                corners = grp_tiles["boundaries"][:]
                centers = grp_tiles["centers"][:]
                tiles = TileSet([
                    Tile(index=i, boundary=corners[i, :int(n)], center=centers[i])
                    for i, n in enumerate(counts)
                ])

                selected = [int(i) for i in f["selected"][:]] if "selected" in f else []

                assign_json = None
                if "assignments" in f:
                    assign_json = bytes(f["assignments"][()]).decode("utf-8")
                elif "assignments_json" in f.attrs:
                    assign_json = f.attrs["assignments_json"]
                assignments: Dict[int, AssignmentInfo] = {}
                if assign_json:
                    for key, record in json.loads(assign_json).items():
                        assignments[int(key)] = AssignmentInfo.from_dict(record)

                owner_id = f.attrs.get("owner_id")
                if isinstance(owner_id, bytes):
                    owner_id = owner_id.decode("utf-8")

            logger.info(f"Session loaded: {len(tiles)} tiles, {len(selected)} selected.")
            return SessionData(
                tiles=tiles,
                selected=selected,
                assignments=assignments,
                owner_id=None if owner_id is None else str(owner_id),
            )
        except Exception as e:
            logger.exception(f"Failed to load session: {e}")
            raise

    @staticmethod
    def load_feed(filepath: str) -> list[OwnerTerritory]:
        """Read a JSON assignment feed (owner id -> record, or list of sponsors)."""
        logger.info(f"Loading assignment feed from: {filepath}")
        with open(filepath, "r", encoding="utf-8") as fh:
            data: Any = json.load(fh)
        owners = parse_feed(data)
        logger.debug(f"Feed contains {len(owners)} owners.")
        return owners
