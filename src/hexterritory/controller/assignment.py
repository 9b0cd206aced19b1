"""
Assignment / Conflict Tracker
=============================
Holds the tiles already committed to other owners.

Why is this file needed?
------------------------
1. Gating: Tiles owned elsewhere can be neither selected nor deselected by
   the current editing session.
2. Context: The feed is replaced wholesale whenever the admin reloads data or
   starts editing a different sponsor; the edited sponsor's own tiles must be
   filtered out by the caller (see `set_from_feed`), otherwise editing an
   existing territory would be blocked by itself.

The tracker never touches the live selection: tiles already selected stay
selected even if a later feed marks them as owned.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Union

from PySide6.QtCore import QObject, Signal

from hexterritory.model.pattern import AssignmentInfo, Feed, parse_feed

logger = logging.getLogger(__name__)

UNKNOWN_OWNER = ""



class AssignmentTracker(QObject):
    """
    Read-only set of tiles owned elsewhere.

    Signals:
        assigned_changed: Emitted with the new tile -> AssignmentInfo dict
                          after every wholesale replacement.
    """
    assigned_changed = Signal(object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._assigned: Dict[int, AssignmentInfo] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_assigned(self, tile: int) -> bool:
        return tile in self._assigned

    def info(self, tile: int) -> Optional[AssignmentInfo]:
        return self._assigned.get(tile)

    @property
    def assigned(self) -> frozenset[int]:
        return frozenset(self._assigned)

    def tile_map(self) -> Dict[int, AssignmentInfo]:
        return dict(self._assigned)

    def __len__(self) -> int:
        return len(self._assigned)

    def __contains__(self, tile: object) -> bool:
        return tile in self._assigned

    def owners(self) -> set[str]:
        return {info.owner_id for info in self._assigned.values()}

    def groups(self) -> Dict[str, tuple[AssignmentInfo, list[int]]]:
        """owner id -> (info of the owner's first tile, sorted tile indices)."""
        grouped: Dict[str, tuple[AssignmentInfo, list[int]]] = {}
        for tile in sorted(self._assigned):
            info = self._assigned[tile]
            if info.owner_id not in grouped:
                grouped[info.owner_id] = (info, [])
            grouped[info.owner_id][1].append(tile)
        return grouped

    def groups_with_pattern(self) -> Dict[str, tuple[AssignmentInfo, list[int]]]:
        """Like `groups`, restricted to owners that uploaded a pattern image."""
        return {owner: group for owner, group in self.groups().items() if group[0].has_pattern}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def set_assigned(self, tile_to_info: Union[Mapping[int, Union[AssignmentInfo, str]], Iterable[int]]) -> None:
        """
        Replace the assigned set wholesale.

        Args:
            tile_to_info: tile -> AssignmentInfo (or bare owner id), or a plain
                          iterable of tile indices whose owner is unknown.
        """
        assigned: Dict[int, AssignmentInfo] = {}
        if isinstance(tile_to_info, Mapping):
            for tile, info in tile_to_info.items():
                if not isinstance(info, AssignmentInfo):
                    info = AssignmentInfo(owner_id=str(info))
                assigned[int(tile)] = info
        else:
            for tile in tile_to_info:
                assigned[int(tile)] = AssignmentInfo(owner_id=UNKNOWN_OWNER)

        self._assigned = assigned
        logger.debug(f"Assigned set replaced: {len(assigned)} tiles, {len(self.owners())} owners.")
        self.assigned_changed.emit(dict(assigned))

    def set_from_feed(self, feed: Feed, exclude_owner: Optional[str] = None) -> None:
        """
        Load the persistence feed, skipping the owner currently being edited.

        If two owners claim the same tile the later record wins; such overlaps
        are data errors of the persistence layer and are logged.
        """
        tile_map: Dict[int, AssignmentInfo] = {}
        for owner in parse_feed(feed):
            if exclude_owner is not None and owner.owner_id == str(exclude_owner):
                continue
            info = owner.info
            for tile in owner.tile_indices:
                previous = tile_map.get(tile)
                if previous is not None and previous.owner_id != info.owner_id:
                    logger.warning(
                        f"Tile {tile} claimed by both '{previous.owner_id}' and '{info.owner_id}'."
                    )
                tile_map[tile] = info
        self.set_assigned(tile_map)

    def clear(self) -> None:
        self.set_assigned({})
