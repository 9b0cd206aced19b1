"""
Configuration & Global Constants
================================
This module serves as the central registry for tolerances, thresholds and
colours used across the territory engine.

Why is this file needed?
------------------------
1. Consistency: The tessellation, the graph builder and the projection engine
   must agree on the sphere radius, the up axis and the vertex tolerance.
   Keeping them here avoids magic numbers scattered throughout the code.
2. Debugging: Strict invariant checking can be switched on from the
   environment without touching the code (HEXTERRITORY_STRICT=1).

Exports:
    SPHERE_RADIUS (float): Radius of the reference hexasphere.
    SUBDIVISIONS (int): Geodesic frequency of the reference hexasphere.
    STRICT_INVARIANTS (bool): Raise instead of repairing a broken selection.
"""
import os

import numpy as np


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Sphere
SPHERE_RADIUS: float = 100.0
SUBDIVISIONS: int = 22  # Geodesic frequency of the reference generator (4842 tiles)
WORLD_UP: np.ndarray = np.array([0.0, 1.0, 0.0])
WORLD_UP.setflags(write=False)

# Graph building
VERTEX_DECIMALS: int = 4  # 1e-4 absorbs float jitter of shared corners
POLAR_THRESHOLD_DEG: float = 10.0

# Projection
POLE_EPSILON: float = 1e-3  # squared length of up x normal
BOUNDS_PADDING: float = 0.02
FALLBACK_EAST: np.ndarray = np.array([1.0, 0.0, 0.0])
FALLBACK_EAST.setflags(write=False)
DEFAULT_TEXTURE_SIZE: int = 256

# Colours (0xRRGGBB)
DEFAULT_TIER_COLOR: int = 0x4A4A4A
EXCLUDED_COLOR: int = 0x2A2A2A
PENTAGON_COLOR: int = 0x000000
SELECTED_COLOR: int = 0xFFD700
SELECTED_EMISSIVE: int = 0x333300
SELECTION_TINT: int = 0xFFFF88
ASSIGNED_RED: int = 0x660000
ASSIGNED_MIX: float = 0.5
FRONTIER_BRIGHTEN: float = 1.4
NON_SELECTABLE_DIM: float = 0.6

# Invariant checking
STRICT_INVARIANTS: bool = _env_flag("HEXTERRITORY_STRICT")
