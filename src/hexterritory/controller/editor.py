"""
Territory Editor (Session Facade)
=================================
Wires the trackers, the projection engine and the tier classifier into one
editing session for the admin tool.

Why is this file needed?
------------------------
It acts as the dependency-injection root of the core. It:
1. Resolves the optional tier classifier once, at construction.
2. Owns one SelectionTracker and one AssignmentTracker sharing the graph.
3. Recomputes the pattern projection whenever the selection, the pattern or
   its adjustment changes, and publishes per-tile UV updates.
4. Derives every tile's tagged visual state for the renderer.
"""
from __future__ import annotations

from collections import Counter
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, Union, TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from hexterritory import config
from hexterritory.controller.assignment import AssignmentTracker
from hexterritory.controller.projection import ProjectionResult, project
from hexterritory.controller.selection import SelectionTracker
from hexterritory.model.graph import TileGraph
from hexterritory.model.pattern import NEUTRAL_ADJUSTMENT, Feed, OwnerTerritory, PatternAdjustment, TextureRef, parse_feed
from hexterritory.model.tile_state import (
    AssignedToOther, Base, Excluded, PatternPreview, Selected, TileVisual,
)
from hexterritory.view.render_adapter import Highlight, PatternRenderAdapter

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class TierClassifier(Protocol):
    def build_tier_map(self, tile_graph: TileGraph) -> Mapping[int, str]: ...


ClassifierLike = Union[TierClassifier, Callable[[TileGraph], Mapping[int, str]]]


def resolve_tier_map(classifier: Optional[ClassifierLike], tile_graph: TileGraph) -> Optional[Dict[int, str]]:
    """Run the classifier once; None when no classifier was injected."""
    if classifier is None:
        return None
    if hasattr(classifier, "build_tier_map"):
        tier_map = classifier.build_tier_map(tile_graph)
    elif callable(classifier):
        tier_map = classifier(tile_graph)
    else:
        raise TypeError(f"Tier classifier must be callable or provide build_tier_map(): {classifier!r}")
    return {int(k): str(v) for k, v in tier_map.items()}


class TerritoryEditor(QObject):
    """
    One single-operator editing session.

    Signals:
        selection_changed: Re-emitted from the selection tracker (index list).
        uvs_changed: tile -> (N, 2) UVs after every projection refresh.
        visuals_changed: Emitted when tile states may have changed.
    """
    selection_changed = Signal(list)
    uvs_changed = Signal(object)
    visuals_changed = Signal()

    def __init__(
        self,
        tile_graph: TileGraph,
        tier_classifier: Optional[ClassifierLike] = None,
        tier_colors: Optional[Mapping[str, int]] = None,
        strict: Optional[bool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._tier_map = resolve_tier_map(tier_classifier, tile_graph)
        self._tier_colors = dict(tier_colors or {})
        self.tile_graph = tile_graph if self._tier_map is None else tile_graph.with_tiers(self._tier_map)

        self.assignments = AssignmentTracker(self)
        self.selection = SelectionTracker(self.tile_graph, self.assignments, strict=strict, parent=self)

        self.owner_id: Optional[str] = None
        self._feed: Optional[list[OwnerTerritory]] = None
        self._pattern: Optional[TextureRef] = None
        self._adjustment: PatternAdjustment = NEUTRAL_ADJUSTMENT
        self._projection = ProjectionResult()
        self._assigned_projections: Dict[str, ProjectionResult] = {}

        self.selection.selection_changed.connect(self._on_selection_changed)
        self.assignments.assigned_changed.connect(self._on_assigned_changed)

        if self._tier_map is not None:
            logger.info(f"Tier map built: {self.tier_stats()}")

    # ------------------------------------------------------------------
    # Tier classifier
    # ------------------------------------------------------------------
    @property
    def tier_map(self) -> Optional[Dict[int, str]]:
        return None if self._tier_map is None else dict(self._tier_map)

    def tier_of(self, tile: int) -> Optional[str]:
        if self._tier_map is None:
            return None
        return self._tier_map.get(tile)

    def tier_stats(self) -> Optional[Dict[str, int]]:
        if self._tier_map is None:
            return None
        return dict(Counter(self._tier_map.values()))

    def tier_color(self, tile: int) -> int:
        tier = self.tier_of(tile)
        if tier is None:
            return config.DEFAULT_TIER_COLOR
        return self._tier_colors.get(tier, config.DEFAULT_TIER_COLOR)

    # ------------------------------------------------------------------
    # Editing context
    # ------------------------------------------------------------------
    def switch_context(
        self,
        owner_id: Optional[str] = None,
        saved_tiles: Iterable[int] = (),
        feed: Optional[Feed] = None,
    ) -> None:
        """
        Start editing another sponsor (or a new one when owner_id is None).

        The feed (the last one given when `feed` is None) is reloaded without
        the owner's own tiles, then the owner's saved cluster is loaded into
        the selection.
        """
        self.owner_id = None if owner_id is None else str(owner_id)
        self.selection.clear()
        self.clear_pattern_preview()
        if feed is not None:
            self._feed = parse_feed(feed)
        if self._feed is not None:
            self.assignments.set_from_feed(self._feed, exclude_owner=self.owner_id)
        self.selection.set_all(saved_tiles)
        logger.info(f"Editing context switched to {self.owner_id or '<new sponsor>'} with {len(self.selection)} tiles.")

    def selected_indices(self) -> list[int]:
        """Plain index list for the pricing/billing module."""
        return self.selection.selected

    # ------------------------------------------------------------------
    # Pattern preview
    # ------------------------------------------------------------------
    @property
    def pattern(self) -> Optional[TextureRef]:
        return self._pattern

    @property
    def adjustment(self) -> PatternAdjustment:
        return self._adjustment

    @property
    def projection(self) -> ProjectionResult:
        return self._projection

    def set_pattern_preview(
        self,
        texture: Optional[TextureRef],
        adjustment: Union[PatternAdjustment, Mapping[str, Any], None] = None,
    ) -> None:
        """Show `texture` on the selected tiles; None clears the preview."""
        self._adjustment = self._coerce_adjustment(adjustment)
        if texture is None:
            self.clear_pattern_preview()
            return
        self._pattern = texture
        self._refresh_projection()

    def update_pattern_adjustment(self, adjustment: Union[PatternAdjustment, Mapping[str, Any], None]) -> None:
        self._adjustment = self._coerce_adjustment(adjustment)
        if self._pattern is not None and not self.selection.is_empty:
            self._refresh_projection()

    def clear_pattern_preview(self) -> None:
        had_pattern = self._pattern is not None
        self._pattern = None
        self._projection = ProjectionResult()
        if had_pattern:
            self.uvs_changed.emit({})
            self.visuals_changed.emit()

    @staticmethod
    def _coerce_adjustment(adjustment: Union[PatternAdjustment, Mapping[str, Any], None]) -> PatternAdjustment:
        if isinstance(adjustment, PatternAdjustment):
            return adjustment
        return PatternAdjustment.from_dict(dict(adjustment) if adjustment else None)

    def _refresh_projection(self) -> None:
        if self._pattern is None or self.selection.is_empty:
            self._projection = ProjectionResult()
        else:
            self._projection = project(
                self.tile_graph.tiles,
                self.selection.selected,
                adjustment=self._adjustment,
                aspect=self._pattern.aspect,
            )
        self.uvs_changed.emit(dict(self._projection.uvs))
        self.visuals_changed.emit()

    # ------------------------------------------------------------------
    # Assigned territories
    # ------------------------------------------------------------------
    def assigned_projections(self) -> Dict[str, ProjectionResult]:
        """Faint-pattern projections per other owner, computed per owner group."""
        return dict(self._assigned_projections)

    def _refresh_assigned_projections(self) -> None:
        projections: Dict[str, ProjectionResult] = {}
        for owner_id, (info, tiles) in self.assignments.groups_with_pattern().items():
            projections[owner_id] = project(
                self.tile_graph.tiles,
                tiles,
                adjustment=info.pattern_adjustment,
                aspect=info.pattern_image.aspect,
            )
        self._assigned_projections = projections

    # ------------------------------------------------------------------
    # Renderer feed
    # ------------------------------------------------------------------
    def tile_visual(self, tile: int) -> Optional[TileVisual]:
        """Tagged state of a tile; None for unknown indices."""
        if not self.tile_graph.is_known(tile):
            return None
        if tile in self.selection:
            if self._pattern is not None and tile in self._projection.uvs:
                return PatternPreview(texture=self._pattern, adjustment=self._adjustment)
            return Selected()
        if self.tile_graph.is_excluded(tile):
            return Excluded(pentagon=tile in self.tile_graph.pentagons)
        info = self.assignments.info(tile)
        if info is not None:
            return AssignedToOther(
                base_color=PatternRenderAdapter.assigned_base_color(self.tier_color(tile)),
                owner_id=info.owner_id,
                pattern=info.pattern_image,
                adjustment=info.pattern_adjustment,
            )
        return Base(tier_color=self.tier_color(tile))

    def highlight(self, tile: int, frontier: Optional[set[int]] = None) -> Highlight:
        """Frontier/dim hint for an unselected base tile."""
        if self.selection.is_empty:
            return Highlight.NONE
        frontier = self.selection.selectable_frontier() if frontier is None else frontier
        return Highlight.FRONTIER if tile in frontier else Highlight.DIMMED

    def visuals(self) -> Dict[int, TileVisual]:
        return {t.index: self.tile_visual(t.index) for t in self.tile_graph.tiles}

    def uv_updates(self) -> Dict[int, npt.NDArray[np.float64]]:
        """
        Current UVs for every textured tile: the preview on the selection and
        the faint patterns on other owners' tiles (selection wins on overlap).
        """
        updates: Dict[int, npt.NDArray[np.float64]] = {}
        for result in self._assigned_projections.values():
            for tile, uv in result.uvs.items():
                if tile not in self.selection:
                    updates[tile] = uv
        updates.update(self._projection.uvs)
        return updates

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------
    def _on_selection_changed(self, selected: list) -> None:
        if self._pattern is not None:
            self._refresh_projection()
        else:
            self.visuals_changed.emit()
        self.selection_changed.emit(selected)

    def _on_assigned_changed(self, _tile_map: object) -> None:
        self._refresh_assigned_projections()
        self.visuals_changed.emit()
