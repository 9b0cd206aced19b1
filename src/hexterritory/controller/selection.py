"""
Selection State Tracker
=======================
Owns the live territory selection and keeps it a single connected region.

Why is this file needed?
------------------------
1. Invariant: Between any two operations the selection is empty or exactly
   one connected component of the adjacency graph. Every mutation is checked
   before it is applied, not at save time.
2. Interaction: Clicks toggle single tiles; a paint-drag applies the same
   add/remove operation to every tile the pointer passes over, still checking
   legality tile by tile.

Invalid input (unknown index, excluded or owned tile, a removal that would
split the region) is a routine outcome of clicking around, so operations
return False instead of raising.
"""
from __future__ import annotations

from enum import StrEnum
import logging
from typing import Iterable, Iterator, Optional

from PySide6.QtCore import QObject, Signal

from hexterritory import config
from hexterritory.controller.assignment import AssignmentTracker
from hexterritory.model.graph import TileGraph

logger = logging.getLogger(__name__)


class SelectionInvariantError(AssertionError):
    """A disconnected selection was observed. Always a programming defect."""


class PaintMode(StrEnum):
    ADD = "add"
    REMOVE = "remove"


class SelectionTracker(QObject):
    """
    Contiguous tile selection with discrete toggle and paint-drag editing.

    Signals:
        selection_changed: Emitted with the sorted index list after every
                           operation that actually changed the selection.
    """
    selection_changed = Signal(list)

    def __init__(
        self,
        tile_graph: TileGraph,
        assignments: Optional[AssignmentTracker] = None,
        strict: Optional[bool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.tile_graph = tile_graph
        self.assignments = assignments if assignments is not None else AssignmentTracker(self)
        self.strict = config.STRICT_INVARIANTS if strict is None else strict

        self._selected: set[int] = set()
        self._paint_mode: Optional[PaintMode] = None
        self._last_painted: Optional[int] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def selected(self) -> list[int]:
        """Current selection as a sorted plain index list."""
        return sorted(self._selected)

    @property
    def paint_mode(self) -> Optional[PaintMode]:
        return self._paint_mode

    @property
    def is_empty(self) -> bool:
        return not self._selected

    def __contains__(self, tile: object) -> bool:
        return tile in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def __iter__(self) -> Iterator[int]:
        return iter(self.selected)

    # ------------------------------------------------------------------
    # Legality checks
    # ------------------------------------------------------------------
    def _is_available(self, tile: int) -> bool:
        return (
            self.tile_graph.is_known(tile)
            and not self.tile_graph.is_excluded(tile)
            and not self.assignments.is_assigned(tile)
        )

    def can_select(self, tile: int) -> bool:
        """
        True iff the tile is unexcluded, unassigned and either the selection
        is empty or the tile touches it. Membership is not part of the rule;
        `select` treats an already selected tile as a no-op.
        """
        if not self._is_available(tile):
            return False
        if not self._selected:
            return True
        return self.tile_graph.graph.touches(tile, self._selected)

    def can_deselect(self, tile: int) -> bool:
        """
        True iff the tile is selected and the rest of the selection stays
        one connected region without it.
        """
        if tile not in self._selected or self.assignments.is_assigned(tile):
            return False
        if len(self._selected) == 1:
            return True
        remaining = self._selected - {tile}
        start = next(iter(remaining))
        reached = self.tile_graph.graph.flood_fill(start, remaining)
        return len(reached) == len(remaining)

    def selectable_frontier(self) -> set[int]:
        """Unselected tiles that would currently pass `can_select`."""
        if not self._selected:
            return set()
        blocked = set(self.tile_graph.excluded) | set(self.assignments.assigned)
        return self.tile_graph.graph.frontier(self._selected, blocked)

    # ------------------------------------------------------------------
    # Discrete editing
    # ------------------------------------------------------------------
    def _add(self, tile: int) -> None:
        self._selected.add(tile)
        self._after_mutation()

    def _remove(self, tile: int) -> None:
        self._selected.discard(tile)
        self._after_mutation()

    def _after_mutation(self) -> None:
        if self.strict:
            self._enforce_invariant()
        self.selection_changed.emit(self.selected)

    def select(self, tile: int) -> bool:
        if tile in self._selected:
            return False
        if not self.can_select(tile):
            logger.debug(f"Select rejected for tile {tile}.")
            return False
        self._add(tile)
        return True

    def deselect(self, tile: int) -> bool:
        if not self.can_deselect(tile):
            logger.debug(f"Deselect rejected for tile {tile}.")
            return False
        self._remove(tile)
        return True

    def toggle(self, tile: int) -> bool:
        """
        Select the tile if eligible, otherwise deselect it if eligible.

        Returns:
            True if the selection changed.
        """
        if tile in self._selected:
            return self.deselect(tile)
        return self.select(tile)

    # ------------------------------------------------------------------
    # Paint-drag
    # ------------------------------------------------------------------
    def paint_begin(self, tile: int) -> bool:
        """
        Start a gesture on `tile`: ADD if it is unselected, REMOVE if selected.

        A gesture that starts outside the planet (unknown index) is ignored.
        """
        if not self.tile_graph.is_known(tile):
            self.paint_end()
            return False
        self._paint_mode = PaintMode.REMOVE if tile in self._selected else PaintMode.ADD
        self._last_painted = None
        logger.debug(f"Paint gesture started on tile {tile} in {self._paint_mode} mode.")
        return self.paint_tile(tile)

    def paint_tile(self, tile: int) -> bool:
        """
        Apply the gesture's operation to the tile under the pointer.

        Consecutive events over the same tile are processed once.
        """
        if self._paint_mode is None or tile == self._last_painted:
            return False
        self._last_painted = tile

        match self._paint_mode:
            case PaintMode.ADD:
                if tile in self._selected:
                    return False
                return self.select(tile)
            case PaintMode.REMOVE:
                if tile not in self._selected:
                    return False
                return self.deselect(tile)
        return False

    def paint_end(self) -> None:
        self._paint_mode = None
        self._last_painted = None

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    def set_all(self, tiles: Iterable[int]) -> None:
        """
        Load a saved cluster, bypassing the growth rule.

        Unknown, excluded and assigned-elsewhere tiles are dropped silently.
        """
        self.paint_end()
        loaded = {int(t) for t in tiles if self._is_available(int(t))}
        if loaded == self._selected:
            return
        self._selected = loaded
        self._enforce_invariant()
        logger.info(f"Loaded selection of {len(self._selected)} tiles.")
        self.selection_changed.emit(self.selected)

    def clear(self) -> None:
        self.paint_end()
        if not self._selected:
            return
        self._selected.clear()
        self.selection_changed.emit([])

    # ------------------------------------------------------------------
    # Invariant guard
    # ------------------------------------------------------------------
    def is_contiguous(self) -> bool:
        return self.tile_graph.graph.is_connected(self._selected)

    def _enforce_invariant(self) -> None:
        """
        Fail loudly in strict mode; otherwise keep the largest component.
        """
        if self.is_contiguous():
            return
        parts = self.tile_graph.graph.components(self._selected)
        message = f"Selection split into {len(parts)} components (sizes {[len(p) for p in parts]})."
        if self.strict:
            raise SelectionInvariantError(message)
        logger.error(f"{message} Keeping the largest component.")
        self._selected = set(parts[0])
