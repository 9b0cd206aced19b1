"""
Pattern & Assignment Value Objects
==================================
Pure configuration records exchanged with persistence and the renderer.

Classes:
    PatternAdjustment: Placement (scale/offset) and colour levels of a sponsor image.
    TextureRef: Opaque image reference plus its pixel size.
    AssignmentInfo: What the core knows about a tile owned by another sponsor.
    OwnerTerritory: One sponsor record of the persistence feed.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from hexterritory import config

# Persisted (camelCase) key -> field name
_ADJUSTMENT_KEYS: Dict[str, str] = {
    "scale": "scale",
    "offsetX": "offset_x",
    "offsetY": "offset_y",
    "inputBlack": "input_black",
    "inputGamma": "input_gamma",
    "inputWhite": "input_white",
    "outputBlack": "output_black",
    "outputWhite": "output_white",
    "saturation": "saturation",
}


@dataclass(frozen=True)
class PatternAdjustment:
    """
    User placement and Photoshop-style levels for a pattern image.

    Levels are in 0..255 like the admin form sliders; gamma and saturation
    are plain multipliers. The defaults are the neutral values.
    """
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    input_black: float = 0.0
    input_gamma: float = 1.0
    input_white: float = 255.0
    output_black: float = 0.0
    output_white: float = 255.0
    saturation: float = 1.0

    def __post_init__(self) -> None:
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, float(getattr(self, name)))
        if self.input_gamma <= 0.0:
            raise ValueError(f"Gamma must be positive, got {self.input_gamma}.")
        if self.scale <= 0.0:
            raise ValueError(f"Pattern scale must be positive, got {self.scale}.")

    @property
    def is_neutral_color(self) -> bool:
        """True when none of the colour parameters changes the image."""
        return (
            self.input_black == 0.0
            and self.input_white == 255.0
            and self.input_gamma == 1.0
            and self.output_black == 0.0
            and self.output_white == 255.0
            and self.saturation == 1.0
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> PatternAdjustment:
        """
        Parse a persisted adjustment (camelCase or snake_case keys).

        A zero/missing scale falls back to 1 and missing offsets to 0; the
        colour levels keep explicit zeros.
        """
        if not data:
            return cls()
        values: Dict[str, float] = {}
        for key, value in data.items():
            name = _ADJUSTMENT_KEYS.get(key, key)
            if name in cls.__dataclass_fields__ and value is not None:
                values[name] = float(value)
        if not values.get("scale"):
            values["scale"] = 1.0
        values["offset_x"] = values.get("offset_x") or 0.0
        values["offset_y"] = values.get("offset_y") or 0.0
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        return {key: getattr(self, name) for key, name in _ADJUSTMENT_KEYS.items()}


NEUTRAL_ADJUSTMENT = PatternAdjustment()


@dataclass(frozen=True)
class TextureRef:
    """
    Reference to an uploaded image (URL, data URL or file path).

    Width/height are optional; unknown sizes fall back to a square texture.
    """
    source: str
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def aspect(self) -> float:
        w = self.width or config.DEFAULT_TEXTURE_SIZE
        h = self.height or config.DEFAULT_TEXTURE_SIZE
        return w / h


@dataclass(frozen=True)
class AssignmentInfo:
    """A tile committed to another owner."""
    owner_id: str
    pattern_image: Optional[TextureRef] = None
    pattern_adjustment: PatternAdjustment = field(default_factory=PatternAdjustment)

    @property
    def has_pattern(self) -> bool:
        return self.pattern_image is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ownerId": self.owner_id,
            "patternImage": asdict(self.pattern_image) if self.pattern_image else None,
            "patternAdjustment": self.pattern_adjustment.to_dict(),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> AssignmentInfo:
        image = data.get("patternImage")
        if isinstance(image, str):
            image = TextureRef(source=image)
        elif isinstance(image, dict):
            image = TextureRef(**image)
        owner = data.get("ownerId", data.get("sponsorId"))
        if owner is None:
            raise ValueError(f"Assignment record has no owner id: {data!r}")
        return AssignmentInfo(
            owner_id=str(owner),
            pattern_image=image or None,
            pattern_adjustment=PatternAdjustment.from_dict(data.get("patternAdjustment")),
        )


@dataclass(frozen=True)
class OwnerTerritory:
    """One persisted sponsor record as delivered by the assignment feed."""
    owner_id: str
    tile_indices: tuple[int, ...] = ()
    pattern_image: Optional[TextureRef] = None
    pattern_adjustment: PatternAdjustment = field(default_factory=PatternAdjustment)

    @property
    def info(self) -> AssignmentInfo:
        return AssignmentInfo(
            owner_id=self.owner_id,
            pattern_image=self.pattern_image,
            pattern_adjustment=self.pattern_adjustment,
        )

    @staticmethod
    def from_dict(owner_id: Any, data: Mapping[str, Any]) -> OwnerTerritory:
        """
        Accepts either a flat `tileIndices` list or the sponsor shape
        `{"cluster": {"tileIndices": [...]}}`.
        """
        indices = data.get("tileIndices")
        if indices is None:
            indices = (data.get("cluster") or {}).get("tileIndices", [])
        if isinstance(indices, (str, bytes)) or not isinstance(indices, Iterable):
            raise ValueError(f"Owner '{owner_id}' has malformed tile indices: {indices!r}")
        info = AssignmentInfo.from_dict({**data, "ownerId": owner_id})
        return OwnerTerritory(
            owner_id=info.owner_id,
            tile_indices=tuple(int(i) for i in indices),
            pattern_image=info.pattern_image,
            pattern_adjustment=info.pattern_adjustment,
        )


Feed = Union[
    Mapping[Any, Union[OwnerTerritory, Mapping[str, Any]]],
    Iterable[Union[OwnerTerritory, Mapping[str, Any]]],
]


def parse_feed(feed: Feed) -> list[OwnerTerritory]:
    """
    Normalise an assignment feed.

    The feed is either a mapping owner id -> record, or a list of sponsor
    records carrying their own `id`.
    """
    owners: list[OwnerTerritory] = []
    if isinstance(feed, Mapping):
        for owner_id, record in feed.items():
            if isinstance(record, OwnerTerritory):
                owners.append(record)
            else:
                owners.append(OwnerTerritory.from_dict(owner_id, record))
        return owners

    for record in feed:
        if isinstance(record, OwnerTerritory):
            owners.append(record)
        elif "id" not in record:
            raise ValueError(f"Sponsor record without 'id': {record!r}")
        else:
            owners.append(OwnerTerritory.from_dict(record["id"], record))
    return owners
