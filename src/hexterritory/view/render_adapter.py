"""
Pattern Render Adapter
======================
Translates a pattern image plus its adjustment into the parameters the
renderer feeds its materials with, and resolves tile colours from the tagged
tile state.

Nothing here draws. `apply_levels` mirrors the fragment shader's colour
pipeline in numpy so previews and tests can check it on the CPU.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from hexterritory import config
from hexterritory.model.geometry_utils import color_to_rgb, lerp_color, scale_color
from hexterritory.model.pattern import NEUTRAL_ADJUSTMENT, PatternAdjustment, TextureRef
from hexterritory.model.tile_state import (
    AssignedToOther, Base, Excluded, PatternPreview, Selected, TileVisual,
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Rec.601 luma weights used by the saturation step
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])
MIN_INPUT_RANGE = 0.001


class MaterialKind(StrEnum):
    UNLIT_TEXTURED = "unlit_textured"
    LEVELS_SHADER = "levels_shader"
    ASSIGNED_BLEND = "assigned_blend"
    FLAT = "flat"


class Wrap(StrEnum):
    REPEAT = "repeat"


class Filter(StrEnum):
    NEAREST = "nearest"


class Highlight(StrEnum):
    """Hint for unselected base tiles while a selection exists."""
    NONE = "none"
    FRONTIER = "frontier"
    DIMMED = "dimmed"


@dataclass(frozen=True)
class MaterialParams:
    """Renderer-facing material description."""
    kind: MaterialKind
    texture: Optional[TextureRef] = None
    color: int = config.DEFAULT_TIER_COLOR
    emissive: int = 0x000000
    tint: int = config.SELECTION_TINT
    input_black: float = 0.0
    input_white: float = 1.0
    gamma: float = 1.0
    output_black: float = 0.0
    output_white: float = 1.0
    saturation: float = 1.0
    mix: float = 0.0
    wrap: Wrap = Wrap.REPEAT
    filter: Filter = Filter.NEAREST

    @property
    def use_unlit(self) -> bool:
        return self.kind == MaterialKind.UNLIT_TEXTURED

    def uniforms(self) -> dict[str, object]:
        """Shader uniform values keyed the way the fragment shader names them."""
        if self.kind == MaterialKind.ASSIGNED_BLEND:
            return {"map": self.texture, "uBase": color_to_rgb(self.color), "uMix": self.mix}
        return {
            "map": self.texture,
            "uInputBlack": self.input_black,
            "uInputWhite": self.input_white,
            "uGamma": self.gamma,
            "uOutputBlack": self.output_black,
            "uOutputWhite": self.output_white,
            "uSaturation": self.saturation,
            "uTint": color_to_rgb(self.tint),
        }


class PatternRenderAdapter:
    @staticmethod
    def material_params(
        texture: TextureRef,
        adjustment: PatternAdjustment = NEUTRAL_ADJUSTMENT,
        tint: int = config.SELECTION_TINT,
    ) -> MaterialParams:
        """
        Selected-tile preview material.

        With every colour parameter at its neutral default the renderer should
        use a cheap unlit textured material instead of the levels shader.
        """
        kind = MaterialKind.UNLIT_TEXTURED if adjustment.is_neutral_color else MaterialKind.LEVELS_SHADER
        return MaterialParams(
            kind=kind,
            texture=texture,
            color=tint,
            tint=tint,
            input_black=adjustment.input_black / 255.0,
            input_white=adjustment.input_white / 255.0,
            gamma=adjustment.input_gamma,
            output_black=adjustment.output_black / 255.0,
            output_white=adjustment.output_white / 255.0,
            saturation=adjustment.saturation,
        )

    @staticmethod
    def assigned_base_color(tier_color: int) -> int:
        """50% red warning colour blended with the tile's tier colour."""
        return lerp_color(config.ASSIGNED_RED, tier_color, 0.5)

    @staticmethod
    def assigned_params(texture: Optional[TextureRef], base_color: int) -> MaterialParams:
        """Faint sponsor pattern over tiles owned by somebody else."""
        if texture is None:
            return MaterialParams(kind=MaterialKind.FLAT, color=base_color)
        return MaterialParams(
            kind=MaterialKind.ASSIGNED_BLEND,
            texture=texture,
            color=base_color,
            mix=config.ASSIGNED_MIX,
        )

    @staticmethod
    def tile_color(visual: TileVisual, highlight: Highlight = Highlight.NONE) -> int:
        """Flat colour of a tile for its current state."""
        match visual:
            case Excluded(pentagon=True):
                return config.PENTAGON_COLOR
            case Excluded():
                return config.EXCLUDED_COLOR
            case Selected() | PatternPreview():
                return config.SELECTED_COLOR
            case AssignedToOther(base_color=color):
                return color
            case Base(tier_color=color):
                if highlight == Highlight.FRONTIER:
                    return scale_color(color, config.FRONTIER_BRIGHTEN)
                if highlight == Highlight.DIMMED:
                    return scale_color(color, config.NON_SELECTABLE_DIM)
                return color
        raise TypeError(f"Unknown tile visual: {visual!r}")

    @classmethod
    def material_for(cls, visual: TileVisual, highlight: Highlight = Highlight.NONE) -> MaterialParams:
        """Derive the draw material purely from the tile's tag."""
        match visual:
            case PatternPreview(texture=texture, adjustment=adjustment):
                return cls.material_params(texture, adjustment)
            case AssignedToOther(base_color=color, pattern=pattern):
                return cls.assigned_params(pattern, color)
            case Selected():
                return MaterialParams(
                    kind=MaterialKind.FLAT,
                    color=config.SELECTED_COLOR,
                    emissive=config.SELECTED_EMISSIVE,
                )
            case _:
                return MaterialParams(kind=MaterialKind.FLAT, color=cls.tile_color(visual, highlight))


def apply_levels(rgb: npt.ArrayLike, params: MaterialParams) -> npt.NDArray[np.float64]:
    """
    CPU reference of the levels shader on colours in 0..1.

    Steps: input levels, gamma, output levels, saturation around luma, tint.
    The unlit path only applies the tint.
    """
    color = np.asarray(rgb, dtype=np.float64)
    tint = np.array(color_to_rgb(params.tint))
    if params.use_unlit:
        return np.clip(color * tint, 0.0, 1.0)

    input_range = max(MIN_INPUT_RANGE, params.input_white - params.input_black)
    color = np.clip((color - params.input_black) / input_range, 0.0, 1.0)
    color = np.power(color, 1.0 / params.gamma)
    color = params.output_black + color * (params.output_white - params.output_black)

    luminance = (color @ LUMA_WEIGHTS)[..., None]
    color = luminance + (color - luminance) * params.saturation
    return np.clip(color * tint, 0.0, 1.0)
