from __future__ import annotations

from typing import TYPE_CHECKING

from math import acos, pi
import numpy as np

if TYPE_CHECKING:
    from numpy import typing as npt


def deg2rad(degrees: float) -> float:
    return degrees * pi / 180


def as_points(a: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Coerce input into an (N, 3) float array.

    Raises:
        ValueError: If the input cannot be reshaped to (N, 3).
    """
    arr = np.asarray(a, dtype=np.float64)
    if arr.ndim == 1 and arr.size == 3:
        arr = arr.reshape(1, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected shape (N, 3), got {arr.shape}.")
    return arr


def normalize(v: npt.ArrayLike, eps: float = 1e-12) -> npt.NDArray[np.float64]:
    """Unit vector in the direction of v; a zero vector stays zero."""
    arr = np.asarray(v, dtype=np.float64)
    mag = float(np.linalg.norm(arr))
    if mag < eps:
        return np.zeros_like(arr)
    return arr / mag


def quantize_key(vertex: npt.ArrayLike, decimals: int) -> tuple[float, float, float]:
    """
    Hashable key of a vertex rounded to a fixed decimal precision.

    Shared corners of neighbouring tiles are generated independently and may
    differ in the last bits; rounding collapses them onto the same key.
    """
    x, y, z = np.round(np.asarray(vertex, dtype=np.float64), decimals)
    # +0.0 folds -0.0 into 0.0 so both round to the same key
    return (float(x) + 0.0, float(y) + 0.0, float(z) + 0.0)


def polar_angle(point: npt.ArrayLike, up: npt.ArrayLike) -> float:
    """
    Angle in radians between a point's direction and the up axis.

    0 at the north pole, pi at the south pole.
    """
    direction = normalize(point)
    axis = normalize(up)
    cos_phi = float(np.clip(np.dot(direction, axis), -1.0, 1.0))
    return acos(cos_phi)


def scale_color(hex_color: int, factor: float) -> int:
    """Brighten (factor > 1) or dim (factor < 1) a 0xRRGGBB colour, clamped per channel."""
    r = min(255, int(((hex_color >> 16) & 0xFF) * factor))
    g = min(255, int(((hex_color >> 8) & 0xFF) * factor))
    b = min(255, int((hex_color & 0xFF) * factor))
    return (r << 16) | (g << 8) | b


def lerp_color(a: int, b: int, t: float) -> int:
    """Linear blend between two 0xRRGGBB colours (t=0 -> a, t=1 -> b)."""
    ca = np.array([(a >> 16) & 0xFF, (a >> 8) & 0xFF, a & 0xFF], dtype=np.float64)
    cb = np.array([(b >> 16) & 0xFF, (b >> 8) & 0xFF, b & 0xFF], dtype=np.float64)
    r, g, bl = np.clip(np.round(ca + (cb - ca) * t), 0, 255).astype(int)
    return (int(r) << 16) | (int(g) << 8) | int(bl)


def color_to_rgb(hex_color: int) -> tuple[float, float, float]:
    """0xRRGGBB -> (r, g, b) floats in 0..1."""
    return (
        ((hex_color >> 16) & 0xFF) / 255.0,
        ((hex_color >> 8) & 0xFF) / 255.0,
        (hex_color & 0xFF) / 255.0,
    )
