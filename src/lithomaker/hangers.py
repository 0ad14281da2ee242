"""
Hanger Builder

Small loops on the top edge for hanging the finished lithophane. Each loop
is a 9 mm wide, 3 mm tall pentagon with a trapezoidal hole, 2 mm thick.
"""

import numpy as np

from .config import MeshConfig

# Full width of one loop; loops are centered on their slot
HANGER_WIDTH = 9.0
HANGER_THICKNESS = 2.0

# Triangles per loop
HANGER_TRIANGLES = 16


def hanger_offsets(width: float, count: int) -> list:
    """Left edge of each loop, evenly spaced along ``width``."""
    slot = width / count
    return [slot * i + slot / 2.0 - HANGER_WIDTH / 2.0 for i in range(count)]


def _build_loop(x: float, y: float) -> list:
    """One loop with its left edge at ``x``, standing on the edge ``y``."""
    front, back = 0.0, HANGER_THICKNESS

    return [
        # Front face
        (x + 3, y, front), (x, y, front), (x + 3, y + 3, front),
        (x + 3, y + 3, front), (x + 6, y + 3, front), (x + 9, y, front),
        # Front face around the hole
        (x + 9, y, front), (x + 6, y, front), (x + 5, y + 1, front),
        (x + 4, y + 1, front), (x + 3, y, front), (x + 3, y + 3, front),
        (x + 3, y + 3, front), (x + 9, y, front), (x + 5, y + 1, front),
        (x + 3, y + 3, front), (x + 5, y + 1, front), (x + 4, y + 1, front),

        # Back face
        (x + 3, y + 3, back), (x, y, back), (x + 3, y, back),
        (x + 3, y + 3, back), (x + 3, y, back), (x + 4, y + 1, back),
        (x + 9, y, back), (x + 6, y + 3, back), (x + 3, y + 3, back),
        (x + 5, y + 1, back), (x + 6, y, back), (x + 9, y, back),
        (x + 3, y + 3, back), (x + 4, y + 1, back), (x + 5, y + 1, back),
        (x + 5, y + 1, back), (x + 9, y, back), (x + 3, y + 3, back),

        # Inside of the hole
        (x + 5, y + 1, front), (x + 6, y, front), (x + 6, y, back),
        (x + 5, y + 1, front), (x + 6, y, back), (x + 5, y + 1, back),

        # Top of the arch
        (x + 6, y + 3, front), (x + 3, y + 3, front), (x + 3, y + 3, back),
        (x + 6, y + 3, front), (x + 3, y + 3, back), (x + 6, y + 3, back),
    ]


def build_hangers(width: float, total_height: float, config: MeshConfig) -> np.ndarray:
    """
    Build the hanging loops.

    Args:
        width: Total model width
        total_height: Total model height (loops stand on this edge)
        config: Mesh parameters

    Returns:
        (hanger_count * 48, 3) float32 points, empty when hangers are off
    """
    if not config.enable_hangers or config.hanger_count < 1:
        return np.zeros((0, 3), dtype=np.float32)

    points = []
    for x in hanger_offsets(width, config.hanger_count):
        points += _build_loop(x, total_height)

    return np.array(points, dtype=np.float32)
