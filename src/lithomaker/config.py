"""
Mesh Configuration

Physical parameters of the lithophane and the scaling factors derived from
them. A configuration is immutable: build a new one (``dataclasses.replace``)
to regenerate with different settings.

All lengths are millimeters.
"""

from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Tuple


@dataclass(frozen=True)
class MeshConfig:
    """
    Parameters for one mesh generation.

    Attributes:
        min_thickness: Thickness of the brightest pixels
        total_thickness: Thickness of the darkest pixels
        frame_border: Width of the frame around the relief
        width: Total width including the frame
        frame_slope_factor: How far the inner bevel recedes, in (0, 1)
        enable_stabilizers: Add breakaway support feet
        permanent_stabilizers: Attach the feet solidly instead of by a thin neck
        stabilizer_threshold: Only add feet when the model is taller than this
        stabilizer_height_factor: Foot height as a fraction of model height
        enable_hangers: Add hanging loops along the top edge
        hanger_count: Number of hanging loops
        enable_segmentation: Reserved for bendable backsides (inert)
        backside_segments: Reserved (inert)
        frame_segments: Reserved (inert)
    """

    min_thickness: float = 0.8
    total_thickness: float = 4.0
    frame_border: float = 3.0
    width: float = 200.0
    frame_slope_factor: float = 0.75

    enable_stabilizers: bool = True
    permanent_stabilizers: bool = False
    stabilizer_threshold: float = 60.0
    stabilizer_height_factor: float = 0.15

    enable_hangers: bool = True
    hanger_count: int = 2

    enable_segmentation: bool = False
    backside_segments: int = 1
    frame_segments: int = 1

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MeshConfig":
        """Build a config from a dict, ignoring keys that are not fields."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    @property
    def relief_depth(self) -> float:
        """Height of the relief above the z=0 datum."""
        return self.total_thickness - self.min_thickness

    def validate(self) -> List[str]:
        """
        List the parameters that would produce degenerate geometry.

        The mesh generator never calls this; it builds whatever it is given.

        Returns:
            Human-readable problems, empty if the config looks sane
        """
        problems = []

        if self.min_thickness <= 0:
            problems.append("min_thickness must be positive")
        if self.total_thickness <= self.min_thickness:
            problems.append("total_thickness must exceed min_thickness")
        if self.frame_border < 0:
            problems.append("frame_border must not be negative")
        if self.frame_border * 2 >= self.width:
            problems.append("frame_border must be less than half the width")
        if not 0 < self.frame_slope_factor < 1:
            problems.append("frame_slope_factor must lie in (0, 1)")
        if not 0 < self.stabilizer_height_factor < 1:
            problems.append("stabilizer_height_factor must lie in (0, 1)")
        if self.enable_hangers and self.hanger_count < 1:
            problems.append("hanger_count must be at least 1")

        return problems


@dataclass(frozen=True)
class MeshScale:
    """
    Scaling shared by every builder of one generation.

    Attributes:
        depth_factor: Relief millimeters per brightness step
        width_factor: Millimeters per grid cell
        border: Frame border offset applied to grid coordinates
        width: Total model width
        total_height: Total model height including the frame
    """

    depth_factor: float
    width_factor: float
    border: float
    width: float
    total_height: float

    @classmethod
    def from_config(
        cls,
        config: MeshConfig,
        grid_width: int,
        grid_height: int
    ) -> "MeshScale":
        """
        Derive the scaling for a grid of the given size.

        Args:
            config: Mesh parameters
            grid_width: Number of samples per row (W)
            grid_height: Number of rows (H)
        """
        border = config.frame_border
        depth_factor = (config.total_thickness - config.min_thickness) / 255.0
        width_factor = (config.width - border * 2) / grid_width
        total_height = border * 2 + grid_height * width_factor

        return cls(
            depth_factor=depth_factor,
            width_factor=width_factor,
            border=border,
            width=config.width,
            total_height=total_height,
        )

    def map_point(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        """Map grid coordinates to model space; z passes through unchanged."""
        return (
            x * self.width_factor + self.border,
            y * self.width_factor + self.border,
            z,
        )

    @property
    def dimensions(self) -> Tuple[float, float]:
        """(width, total_height) of the finished model."""
        return (self.width, self.total_height)
