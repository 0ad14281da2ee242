"""
Main LithophaneGenerator Class

This is the primary interface for the lithophane pipeline.
It orchestrates:
1. Surface tessellation (parallel)
2. Backside
3. Frame
4. Stabilizer feet (optional)
5. Hanging loops (optional)
6. Export to various formats

Example Usage:
    generator = LithophaneGenerator(MeshConfig(width=150))
    generator.generate(grid)
    generator.export("output.stl")
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union
import numpy as np

from .buffer import TriangleBuffer
from .config import MeshConfig, MeshScale
from .heightmap import HeightGrid
from .tessellator import (
    SurfaceTessellator,
    build_backside,
    build_segmented_backside,
)
from .frame import build_frame
from .stabilizers import build_stabilizers
from .hangers import build_hangers
from .exporters import (
    ExportErrorKind,
    ExportFormat,
    ExportResult,
    format_from_path,
    get_exporter,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Progress checkpoints reported to the callback
PROGRESS_TOTAL = 100
PROGRESS_SURFACE = 50
PROGRESS_BACKSIDE = 60
PROGRESS_FRAME = 80


def estimate_vertex_count(config: MeshConfig, grid_width: int, grid_height: int) -> int:
    """
    Rough upper estimate of the points one generation produces.

    Used to reserve buffer capacity up front.
    """
    return (
        (grid_width - 1) * (grid_height - 1) * 6 * 3  # relief and walls
        + 12  # backside
        + 500  # frame
        + (1000 if config.enable_stabilizers else 0)
        + (config.hanger_count * 300 if config.enable_hangers else 0)
    )


class LithophaneGenerator:
    """
    High-level interface for lithophane mesh generation.

    Attributes:
        config: The mesh parameters used by the next generation
        mesh: The last generated triangle buffer
        dimensions: (width, total_height) of the last generated mesh
    """

    def __init__(
        self,
        config: Optional[MeshConfig] = None,
        workers: Optional[int] = None
    ):
        """
        Initialize the LithophaneGenerator.

        Args:
            config: Mesh parameters (defaults to MeshConfig())
            workers: Tessellation threads (default: host CPU count)
        """
        self._config = config or MeshConfig()
        self.workers = workers

        self._mesh: Optional[TriangleBuffer] = None
        self._scale: Optional[MeshScale] = None

    @property
    def config(self) -> MeshConfig:
        return self._config

    def set_config(self, config: MeshConfig) -> "LithophaneGenerator":
        """
        Replace the configuration for subsequent generations.

        Returns:
            self for method chaining
        """
        self._config = config
        return self

    def generate(
        self,
        grid: Union[HeightGrid, np.ndarray],
        progress_callback: Optional[ProgressCallback] = None
    ) -> TriangleBuffer:
        """
        Build the complete lithophane mesh.

        Args:
            grid: Height grid (or 2D array of brightness samples), at least 2x2
            progress_callback: Called with (current, 100) at 50, 60, 80 and 100

        Returns:
            TriangleBuffer with the finished triangle soup
        """
        grid = HeightGrid.from_array(grid)
        if grid.width < 2 or grid.height < 2:
            raise ValueError(
                f"Height grid must be at least 2x2, got {grid.width}x{grid.height}"
            )

        config = self._config
        self._mesh = None
        self._scale = None

        scale = MeshScale.from_config(config, grid.width, grid.height)

        mesh = TriangleBuffer(
            capacity=estimate_vertex_count(config, grid.width, grid.height)
        )

        logger.info(
            "Generating mesh for %dx%d image -> %.2f x %.2f mm",
            grid.width, grid.height, scale.width, scale.total_height
        )

        tessellator = SurfaceTessellator(scale, config.min_thickness, self.workers)
        mesh.append(tessellator.tessellate(grid))
        self._report(progress_callback, PROGRESS_SURFACE)

        if config.enable_segmentation and config.backside_segments > 1:
            mesh.append(build_segmented_backside(
                scale, grid.width, grid.height,
                config.min_thickness, config.backside_segments
            ))
        else:
            mesh.append(build_backside(
                scale, grid.width, grid.height, config.min_thickness
            ))
        self._report(progress_callback, PROGRESS_BACKSIDE)

        mesh.append(build_frame(scale.width, scale.total_height, config))
        self._report(progress_callback, PROGRESS_FRAME)

        mesh.append(build_stabilizers(scale.width, scale.total_height, config))
        mesh.append(build_hangers(scale.width, scale.total_height, config))
        self._report(progress_callback, PROGRESS_TOTAL)

        logger.info("Mesh generated: %d triangles", mesh.triangle_count)

        self._mesh = mesh
        self._scale = scale
        return mesh

    @staticmethod
    def _report(callback: Optional[ProgressCallback], current: int):
        if callback is not None:
            callback(current, PROGRESS_TOTAL)

    def export(
        self,
        output_path: Union[str, Path],
        fmt: Optional[Union[str, ExportFormat]] = None,
        **exporter_kwargs
    ) -> ExportResult:
        """
        Export the last generated mesh.

        Args:
            output_path: Output file path
            fmt: Export format (default: picked from the file suffix)
            **exporter_kwargs: Passed to the exporter constructor

        Returns:
            ExportResult describing the outcome
        """
        if self._mesh is None:
            return ExportResult.failed(
                ExportErrorKind.INVALID_MESH, "No mesh generated"
            )

        if fmt is None:
            fmt = format_from_path(output_path)

        exporter = get_exporter(fmt, **exporter_kwargs)
        return exporter.export(self._mesh, output_path)

    @property
    def mesh(self) -> Optional[TriangleBuffer]:
        """Get the last generated mesh."""
        return self._mesh

    @property
    def dimensions(self) -> Optional[Tuple[float, float]]:
        """(width, total_height) in millimeters of the last mesh."""
        if self._scale is None:
            return None
        return self._scale.dimensions

    @property
    def triangle_count(self) -> int:
        """Get the number of mesh triangles."""
        if self._mesh is None:
            return 0
        return self._mesh.triangle_count
