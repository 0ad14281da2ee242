"""
Frame Builder

A rectangular picture frame around the relief. The frame is a closed box
whose front face is a ring at the full relief height, beveled inward down to
a flat shelf at z = 0 that the relief rests on.

Coordinates are model space: (0, 0) to (width, total_height), the same space
the tessellator maps grid points into.
"""

import numpy as np

from .config import MeshConfig

# Quads emitted by build_frame (two triangles each)
FRAME_QUADS = 14


def _quad(a, b, c, d, e, f) -> list:
    """Two triangles given as six corners."""
    return [a, b, c, d, e, f]


def build_frame(width: float, total_height: float, config: MeshConfig) -> np.ndarray:
    """
    Build the beveled frame.

    Args:
        width: Total model width
        total_height: Total model height
        config: Mesh parameters (thicknesses, border, slope factor)

    Returns:
        (84, 3) float32 points
    """
    back = -config.min_thickness
    depth = config.relief_depth
    slope = depth * config.frame_slope_factor
    border = config.frame_border
    w, h = width, total_height

    # Inner shelf corners at z = 0
    s_left, s_right = border + slope, w - border - slope
    s_bottom, s_top = border + slope, h - border - slope
    # Front ring inner corners at z = depth
    r_left, r_right = border, w - border
    r_bottom, r_top = border, h - border

    points = []

    # Top outer wall
    points += _quad(
        (w, h, back), (0, h, back), (0, h, depth),
        (w, h, back), (0, h, depth), (w, h, depth),
    )

    # Inner shelf the relief rests on
    points += _quad(
        (s_right, s_bottom, 0), (s_right, s_top, 0), (s_left, s_top, 0),
        (s_right, s_bottom, 0), (s_left, s_top, 0), (s_left, s_bottom, 0),
    )

    # Outer walls and back face
    points += _quad(
        (0, 0, depth), (0, h, depth), (0, h, back),
        (0, 0, depth), (0, h, back), (0, 0, back),
    )
    points += _quad(
        (0, 0, back), (w, 0, back), (w, 0, depth),
        (0, 0, back), (w, 0, depth), (0, 0, depth),
    )
    points += _quad(
        (w, 0, back), (w, h, back), (w, h, depth),
        (w, 0, back), (w, h, depth), (w, 0, depth),
    )
    points += _quad(
        (0, 0, back), (0, h, back), (w, h, back),
        (0, 0, back), (w, h, back), (w, 0, back),
    )

    # Front ring
    points += _quad(
        (r_left, r_bottom, depth), (r_left, r_top, depth), (0, h, depth),
        (r_left, r_bottom, depth), (0, h, depth), (0, 0, depth),
    )
    points += _quad(
        (r_right, r_top, depth), (r_right, r_bottom, depth), (w, 0, depth),
        (r_right, r_top, depth), (w, 0, depth), (w, h, depth),
    )
    points += _quad(
        (r_left, r_top, depth), (r_right, r_top, depth), (w, h, depth),
        (r_left, r_top, depth), (w, h, depth), (0, h, depth),
    )
    points += _quad(
        (r_right, r_bottom, depth), (r_left, r_bottom, depth), (0, 0, depth),
        (r_right, r_bottom, depth), (0, 0, depth), (w, 0, depth),
    )

    # Bevel from the ring down to the shelf
    points += _quad(
        (s_left, s_bottom, 0), (s_left, s_top, 0), (r_left, r_top, depth),
        (s_left, s_bottom, 0), (r_left, r_top, depth), (r_left, r_bottom, depth),
    )
    points += _quad(
        (s_right, s_top, 0), (s_right, s_bottom, 0), (r_right, r_bottom, depth),
        (s_right, s_top, 0), (r_right, r_bottom, depth), (r_right, r_top, depth),
    )
    points += _quad(
        (s_left, s_top, 0), (s_right, s_top, 0), (r_right, r_top, depth),
        (s_left, s_top, 0), (r_right, r_top, depth), (r_left, r_top, depth),
    )
    points += _quad(
        (s_right, s_bottom, 0), (s_left, s_bottom, 0), (r_left, r_bottom, depth),
        (s_right, s_bottom, 0), (r_left, r_bottom, depth), (r_right, r_bottom, depth),
    )

    return np.array(points, dtype=np.float32)
