"""
Export modules for various 3D formats.

Supported formats:
- STL binary (.stl) - Default, what every slicer reads
- STL ASCII (.stl) - Human readable
- Wavefront (.obj) - Universal legacy support
- 3MF (.3mf) - Modern slicer container, millimeter units
"""

from enum import Enum
from pathlib import Path
from typing import Union

from .base import (
    Exporter,
    ExportErrorKind,
    ExportResult,
    deduplicate_vertices,
)
from .stl_exporter import STLExporter
from .obj_exporter import OBJExporter
from .threemf_exporter import ThreeMFExporter


class ExportFormat(Enum):
    """Export targets, selected explicitly by the caller."""
    STL = "stl"
    STL_ASCII = "stl_ascii"
    OBJ = "obj"
    THREEMF = "3mf"


def get_exporter(fmt: Union[str, ExportFormat], **kwargs) -> Exporter:
    """
    Create the exporter for a format.

    Args:
        fmt: ExportFormat or its value ("stl", "stl_ascii", "obj", "3mf")
        **kwargs: Passed to the exporter constructor

    Returns:
        Exporter instance
    """
    fmt = ExportFormat(fmt)

    if fmt == ExportFormat.STL:
        return STLExporter(binary=True, **kwargs)
    elif fmt == ExportFormat.STL_ASCII:
        return STLExporter(binary=False, **kwargs)
    elif fmt == ExportFormat.OBJ:
        return OBJExporter(**kwargs)
    else:
        return ThreeMFExporter(**kwargs)


def format_from_path(path: Union[str, Path]) -> ExportFormat:
    """
    Pick a format from a file suffix (binary STL for unknown suffixes).
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix == "obj":
        return ExportFormat.OBJ
    if suffix == "3mf":
        return ExportFormat.THREEMF
    return ExportFormat.STL


__all__ = [
    "Exporter",
    "ExportErrorKind",
    "ExportFormat",
    "ExportResult",
    "STLExporter",
    "OBJExporter",
    "ThreeMFExporter",
    "deduplicate_vertices",
    "format_from_path",
    "get_exporter",
]
