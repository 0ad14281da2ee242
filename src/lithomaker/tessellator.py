"""
Surface Tessellation with Numba JIT Compilation

Turns the height grid into the front relief of the lithophane: two triangles
per grid cell plus four walls that close the relief down to the flat base
plane at z = -min_thickness.

Parallelism:
    Rows are cut into fixed-size chunks and put on a queue. A pool of worker
    threads pulls chunks until the queue is empty (dynamic scheduling), and
    each worker keeps its own list of output arrays. The row kernel is
    compiled with ``nogil=True`` so the workers really run side by side.
    Once every worker has returned, the private lists are concatenated in
    worker order. The result is the same triangle set for any worker count,
    but not in top-to-bottom row order.
"""

import logging
import os
import queue
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
import numpy as np
from numba import njit

from .config import MeshScale
from .heightmap import HeightGrid

logger = logging.getLogger(__name__)

# Rows handed to a worker at a time
CHUNK_ROWS = 32


@njit(cache=True, nogil=True)
def _put(
    out: np.ndarray,
    i: int,
    x: float,
    y: float,
    z: float,
    width_factor: float,
    border: float
) -> int:
    """Write grid point (x, y, z) to row ``i`` in model space."""
    out[i, 0] = x * width_factor + border
    out[i, 1] = y * width_factor + border
    out[i, 2] = z
    return i + 1


@njit(cache=True, nogil=True)
def _tessellate_rows(
    depth: np.ndarray,
    row_start: int,
    row_stop: int,
    width_factor: float,
    border: float,
    base_z: float
) -> np.ndarray:
    """
    Tessellate grid rows [row_start, row_stop).

    Args:
        depth: (H, W) float32 relief depths, model row order
        row_start: First row of the chunk
        row_stop: One past the last row (at most H - 1)
        width_factor: Millimeters per grid cell
        border: Frame border offset
        base_z: Z of the base plane the walls close to

    Returns:
        (K, 3) float32 points, K a multiple of 3
    """
    height, width = depth.shape
    last = height - 1

    triangles = (row_stop - row_start) * (4 + 2 * (width - 1))
    if row_start == 0 and row_stop > 0:
        triangles += 4 * (width - 1)

    out = np.empty((triangles * 3, 3), dtype=np.float32)
    i = 0

    for y in range(row_start, row_stop):
        left = depth[y, 0]
        left_next = depth[y + 1, 0]

        # Left wall
        i = _put(out, i, 0, y, base_z, width_factor, border)
        i = _put(out, i, 0, y, left, width_factor, border)
        i = _put(out, i, 0, y + 1, left_next, width_factor, border)

        i = _put(out, i, 0, y + 1, left_next, width_factor, border)
        i = _put(out, i, 0, y + 1, base_z, width_factor, border)
        i = _put(out, i, 0, y, base_z, width_factor, border)

        for x in range(width - 1):
            top = depth[y, x]
            top_right = depth[y, x + 1]
            bottom = depth[y + 1, x]
            bottom_right = depth[y + 1, x + 1]

            if y == 0:
                # Top wall
                i = _put(out, i, x + 1, 0, depth[0, x + 1], width_factor, border)
                i = _put(out, i, x, 0, depth[0, x], width_factor, border)
                i = _put(out, i, x, 0, base_z, width_factor, border)

                i = _put(out, i, x, 0, base_z, width_factor, border)
                i = _put(out, i, x + 1, 0, base_z, width_factor, border)
                i = _put(out, i, x + 1, 0, depth[0, x + 1], width_factor, border)

                # Bottom wall
                i = _put(out, i, x, last, base_z, width_factor, border)
                i = _put(out, i, x, last, depth[last, x], width_factor, border)
                i = _put(out, i, x + 1, last, depth[last, x + 1], width_factor, border)

                i = _put(out, i, x + 1, last, depth[last, x + 1], width_factor, border)
                i = _put(out, i, x + 1, last, base_z, width_factor, border)
                i = _put(out, i, x, last, base_z, width_factor, border)

            # Relief, two triangles per cell
            i = _put(out, i, x, y, top, width_factor, border)
            i = _put(out, i, x + 1, y + 1, bottom_right, width_factor, border)
            i = _put(out, i, x, y + 1, bottom, width_factor, border)

            i = _put(out, i, x, y, top, width_factor, border)
            i = _put(out, i, x + 1, y, top_right, width_factor, border)
            i = _put(out, i, x + 1, y + 1, bottom_right, width_factor, border)

        right = depth[y, width - 1]
        right_next = depth[y + 1, width - 1]

        # Right wall
        i = _put(out, i, width - 1, y + 1, right_next, width_factor, border)
        i = _put(out, i, width - 1, y, right, width_factor, border)
        i = _put(out, i, width - 1, y, base_z, width_factor, border)

        i = _put(out, i, width - 1, y, base_z, width_factor, border)
        i = _put(out, i, width - 1, y + 1, base_z, width_factor, border)
        i = _put(out, i, width - 1, y + 1, right_next, width_factor, border)

    return out


def relief_depths(grid: HeightGrid, depth_factor: float) -> np.ndarray:
    """
    Convert brightness samples to relief depths.

    Brighter pixels become thinner: 0 maps to the full relief depth and 255
    to zero. Rows are reversed so that model row 0 is the bottom image row
    and the picture stands upright with the hangers on top.

    Returns:
        (H, W) C-contiguous float32 array
    """
    samples = grid.samples[::-1].astype(np.float32)
    return np.ascontiguousarray((255.0 - samples) * np.float32(depth_factor))


def surface_triangle_count(grid_width: int, grid_height: int) -> int:
    """Exact number of triangles :class:`SurfaceTessellator` emits."""
    if grid_width < 2 or grid_height < 2:
        return 0
    rows = grid_height - 1
    cells = grid_width - 1
    return rows * (4 + 2 * cells) + 4 * cells


def default_worker_count() -> int:
    """Worker threads used when none are requested."""
    return os.cpu_count() or 1


class SurfaceTessellator:
    """
    Parallel relief tessellation.

    Wraps the Numba row kernel and fans it out over a thread pool.
    """

    def __init__(
        self,
        scale: MeshScale,
        min_thickness: float,
        workers: Optional[int] = None,
        chunk_rows: int = CHUNK_ROWS
    ):
        """
        Initialize the tessellator.

        Args:
            scale: Derived scaling for this generation
            min_thickness: Thickness below the z=0 datum (base plane depth)
            workers: Thread count (default: host CPU count)
            chunk_rows: Rows per scheduling chunk
        """
        self.scale = scale
        self.base_z = -float(min_thickness)
        self.workers = workers or default_worker_count()
        self.chunk_rows = max(int(chunk_rows), 1)

    def tessellate(self, grid: HeightGrid) -> np.ndarray:
        """
        Tessellate the relief surface and its edge walls.

        Args:
            grid: Height grid, at least 2x2

        Returns:
            (K, 3) float32 points
        """
        depth = relief_depths(grid, self.scale.depth_factor)
        rows = grid.height - 1

        chunks = queue.SimpleQueue()
        starts = range(0, max(rows, 0), self.chunk_rows)
        for start in starts:
            chunks.put(start)

        workers = max(1, min(self.workers, len(starts)))
        logger.debug(
            "Tessellating %d rows in %d chunks on %d threads",
            rows, len(starts), workers
        )

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._drain, depth, chunks)
                for _ in range(workers)
            ]
            # Barrier: nothing is merged until every worker is done
            per_worker = [future.result() for future in futures]

        parts = [part for worker_parts in per_worker for part in worker_parts]
        if not parts:
            return np.zeros((0, 3), dtype=np.float32)
        return np.concatenate(parts)

    def _drain(self, depth: np.ndarray, chunks: queue.SimpleQueue) -> List[np.ndarray]:
        """Worker loop: tessellate chunks until the queue runs dry."""
        parts = []
        last_row = depth.shape[0] - 1

        while True:
            try:
                start = chunks.get_nowait()
            except queue.Empty:
                break

            stop = min(start + self.chunk_rows, last_row)
            parts.append(_tessellate_rows(
                depth,
                start,
                stop,
                float(self.scale.width_factor),
                float(self.scale.border),
                self.base_z
            ))

        return parts


def build_backside(
    scale: MeshScale,
    grid_width: int,
    grid_height: int,
    min_thickness: float
) -> np.ndarray:
    """
    Flat back of the relief: one quad on the base plane.

    Returns:
        (6, 3) float32 points
    """
    z = -min_thickness
    right = grid_width - 1
    top = grid_height - 1

    corners = [
        (0, top), (right, top), (0, 0),
        (right, top), (right, 0), (0, 0),
    ]
    return np.array(
        [scale.map_point(x, y, z) for x, y in corners],
        dtype=np.float32
    )


def build_segmented_backside(
    scale: MeshScale,
    grid_width: int,
    grid_height: int,
    min_thickness: float,
    segments: int
) -> np.ndarray:
    """
    Backside split into bendable segments.

    Segmentation is not implemented; this returns the flat backside.
    """
    logger.debug(
        "Segmented backside (%d segments) requested, using flat backside",
        segments
    )
    return build_backside(scale, grid_width, grid_height, min_thickness)
