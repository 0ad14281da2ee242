"""
LithoMaker
==========

Turn photographs into printable lithophanes.

This package converts a grayscale height field into a closed triangle mesh
(a thin relief panel in a beveled frame, with optional snap-off support feet
and hanging loops) and writes it as STL, OBJ or 3MF.

Key Features:
- Relief tessellation with Numba JIT kernels, parallel over row chunks
- Beveled frame, breakaway stabilizer feet, hanging loops
- Export to binary/ASCII STL, Wavefront OBJ and 3MF

Example Usage:
    from lithomaker import ImageLoader, LithophaneGenerator, MeshConfig

    grid = ImageLoader(max_size=1000).load("photo.jpg")
    generator = LithophaneGenerator(MeshConfig(width=150))
    generator.generate(grid)
    generator.export("lithophane.stl")
"""

__version__ = "1.0.0"
__author__ = "LithoMaker Contributors"

from .buffer import TriangleBuffer
from .config import MeshConfig, MeshScale
from .heightmap import HeightGrid
from .generator import LithophaneGenerator
from .ingestion import ImageLoader
from .exporters import (
    ExportErrorKind,
    ExportFormat,
    ExportResult,
    get_exporter,
)

__all__ = [
    "TriangleBuffer",
    "MeshConfig",
    "MeshScale",
    "HeightGrid",
    "LithophaneGenerator",
    "ImageLoader",
    "ExportErrorKind",
    "ExportFormat",
    "ExportResult",
    "get_exporter",
]
