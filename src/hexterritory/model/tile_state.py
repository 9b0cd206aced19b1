"""
Per-tile visual state as a tagged variant.

The renderer derives the draw material from the current tag alone, so there
is no stashed "original material" to restore when a tile changes state.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Union

from hexterritory.model.pattern import PatternAdjustment, TextureRef


class TileTag(StrEnum):
    EXCLUDED = "excluded"
    BASE = "base"
    ASSIGNED = "assigned"
    SELECTED = "selected"
    PREVIEW = "preview"


@dataclass(frozen=True)
class Excluded:
    pentagon: bool = False
    tag: TileTag = TileTag.EXCLUDED


@dataclass(frozen=True)
class Base:
    tier_color: int
    tag: TileTag = TileTag.BASE


@dataclass(frozen=True)
class AssignedToOther:
    base_color: int
    owner_id: str
    pattern: Optional[TextureRef] = None
    adjustment: Optional[PatternAdjustment] = None
    tag: TileTag = TileTag.ASSIGNED


@dataclass(frozen=True)
class Selected:
    tag: TileTag = TileTag.SELECTED


@dataclass(frozen=True)
class PatternPreview:
    texture: TextureRef
    adjustment: PatternAdjustment
    tag: TileTag = TileTag.PREVIEW


TileVisual = Union[Excluded, Base, AssignedToOther, Selected, PatternPreview]
