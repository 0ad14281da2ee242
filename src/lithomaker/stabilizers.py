"""
Stabilizer Builder

Two support feet, one at each side of the bottom edge, that keep the
lithophane upright while printing. Each foot has a front half glued to the
relief side and a back half glued to the flat side. Each half is a wedge
that slopes outward to a wide base.

The halves meet the panel through a 1 mm neck that sits 1 mm away from the
panel surface, so the feet snap off after printing. Permanent stabilizers
drop that offset and attach flush.
"""

import logging
import numpy as np

from .config import MeshConfig

logger = logging.getLogger(__name__)

# Widest a foot gets, clamped further by the frame border
MAX_STABILIZER_WIDTH = 4.0

# Distance from the panel to the top of the sloped face
_WEDGE_TOP = 3.0

# Triangles per foot (front and back half)
STABILIZER_TRIANGLES = 32


def stabilizers_due(config: MeshConfig, total_height: float) -> bool:
    """True when feet are enabled and the model is tall enough to need them."""
    return config.enable_stabilizers and total_height > config.stabilizer_threshold


def stabilizer_width(config: MeshConfig) -> float:
    return min(config.frame_border, MAX_STABILIZER_WIDTH)


def _build_foot(
    x: float,
    width: float,
    height: float,
    reach: float,
    front_z: float,
    back_z: float,
    z_delta: float
) -> list:
    """
    One foot: front half then back half.

    Args:
        x: Left edge of the foot
        width: Foot width along x
        height: Foot height along y
        reach: How far the base extends away from the panel
        front_z: Front panel surface
        back_z: Back panel surface
        z_delta: 1 for a flush (permanent) neck, 0 for a breakaway neck
    """
    x0, x1 = x, x + width
    h = height
    points = []

    # Front half, extending towards +z
    z = front_z
    neck = z + 1 - z_delta
    top = z + _WEDGE_TOP
    base = z + reach

    points += [
        # Left side
        (x0, 0, neck), (x0, 0, base), (x0, h, top),
        (x0, h, top), (x0, h, neck), (x0, h - 1, neck),
        (x0, h, top), (x0, h - 1, neck), (x0, 0, neck),
        # Right side
        (x1, h, top), (x1, 0, base), (x1, 0, neck),
        (x1, h - 1, neck), (x1, h, neck), (x1, h, top),
        (x1, 0, neck), (x1, h - 1, neck), (x1, h, top),
        # Top
        (x0 + 1, h, neck), (x0, h, neck), (x0, h, top),
        (x0, h, top), (x1, h, top), (x1, h, neck),
        (x1 - 1, h, neck), (x0 + 1, h, neck), (x0, h, top),
        (x0, h, top), (x1, h, neck), (x1 - 1, h, neck),
        # Bottom
        (x0, 0, base), (x0, 0, neck), (x1, 0, neck),
        (x0, 0, base), (x1, 0, neck), (x1, 0, base),
        # Sloped face
        (x0, h, top), (x0, 0, base), (x1, 0, base),
        (x0, h, top), (x1, 0, base), (x1, h, top),
        # Neck
        (x0 + 1, h - 1, neck), (x0 + 1, h, neck), (x1 - 1, h, neck),
        (x0 + 1, h - 1, neck), (x1 - 1, h, neck), (x1 - 1, h - 1, neck),
    ]

    # Back half, mirrored towards -z
    z = back_z
    neck = z - 1 + z_delta
    top = z - _WEDGE_TOP
    base = z - reach

    points += [
        # Right side
        (x1, 0, neck), (x1, 0, base), (x1, h, top),
        (x1, h, top), (x1, h, neck), (x1, h - 1, neck),
        (x1, h, top), (x1, h - 1, neck), (x1, 0, neck),
        # Left side
        (x0, h, top), (x0, 0, base), (x0, 0, neck),
        (x0, h - 1, neck), (x0, h, neck), (x0, h, top),
        (x0, 0, neck), (x0, h - 1, neck), (x0, h, top),
        # Top
        (x1 - 1, h, neck), (x1, h, neck), (x1, h, top),
        (x1, h, top), (x0, h, top), (x0, h, neck),
        (x0 + 1, h, neck), (x1 - 1, h, neck), (x1, h, top),
        (x1, h, top), (x0, h, neck), (x0 + 1, h, neck),
        # Bottom
        (x1, 0, base), (x1, 0, neck), (x0, 0, neck),
        (x1, 0, base), (x0, 0, neck), (x0, 0, base),
        # Sloped face
        (x1, h, top), (x1, 0, base), (x0, 0, base),
        (x1, h, top), (x0, 0, base), (x0, h, top),
        # Neck
        (x1 - 1, h - 1, neck), (x1 - 1, h, neck), (x0 + 1, h, neck),
        (x1 - 1, h - 1, neck), (x0 + 1, h, neck), (x0 + 1, h - 1, neck),
    ]

    return points


def build_stabilizers(width: float, total_height: float, config: MeshConfig) -> np.ndarray:
    """
    Build both feet if the model needs them.

    Args:
        width: Total model width
        total_height: Total model height
        config: Mesh parameters

    Returns:
        (192, 3) float32 points, or an empty (0, 3) array when the feet are
        disabled or the model is not taller than the threshold
    """
    if not stabilizers_due(config, total_height):
        return np.zeros((0, 3), dtype=np.float32)

    stab_height = total_height * config.stabilizer_height_factor
    stab_width = stabilizer_width(config)
    reach = stab_height * 0.5
    z_delta = 1.0 if config.permanent_stabilizers else 0.0

    points = []
    for x in (0.0, width - stab_width):
        points += _build_foot(
            x,
            stab_width,
            stab_height,
            reach,
            front_z=config.relief_depth,
            back_z=-config.min_thickness,
            z_delta=z_delta,
        )

    logger.info(
        "Stabilizers generated: height=%.2fmm, width=%.2fmm%s",
        stab_height, stab_width,
        " (permanent)" if config.permanent_stabilizers else ""
    )

    return np.array(points, dtype=np.float32)
