"""
STL Format Exporter

STL is the lingua franca of slicers. Both flavors are supported:

Binary layout (little endian):
- 80-byte header, ASCII, zero padded
- uint32 triangle count
- Per triangle: float32 normal[3], float32 vertex[3][3], uint16 attribute count

ASCII grammar:
    solid lithophane
    facet normal 0 0 0
        outer loop
            vertex x y z   (x3, 6 significant digits)
        endloop
    endfacet
    endsolid

Normals are always written as zero; slicers recompute them from the
vertices.
"""

from pathlib import Path
import struct
import numpy as np

from .base import Exporter, ExportResult


STL_HEADER_SIZE = 80
STL_HEADER_TEXT = b"LithoMaker Export"

# One binary facet, 50 bytes, no padding
STL_FACET_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attributes", "<u2"),
])


class STLExporter(Exporter):
    """
    Export triangle buffers to STL.

    Supports:
    - Binary STL (default, compact)
    - ASCII STL (human readable)
    """

    extension = "stl"

    def __init__(self, binary: bool = True):
        """
        Initialize the exporter.

        Args:
            binary: If True, write binary STL, otherwise ASCII
        """
        self.binary = binary
        self.name = "binary STL" if binary else "ASCII STL"

    def _write(self, vertices: np.ndarray, output_path: Path) -> ExportResult:
        if self.binary:
            self._write_binary(vertices, output_path)
        else:
            self._write_ascii(vertices, output_path)
        return ExportResult.ok(output_path.stat().st_size)

    def _write_binary(self, vertices: np.ndarray, path: Path):
        """Write binary STL file."""
        triangles = vertices.reshape(-1, 3, 3)

        facets = np.zeros(len(triangles), dtype=STL_FACET_DTYPE)
        facets["vertices"] = triangles

        header = STL_HEADER_TEXT.ljust(STL_HEADER_SIZE, b"\0")

        with open(path, "wb") as f:
            f.write(header)
            f.write(struct.pack("<I", len(triangles)))
            f.write(facets.tobytes())

    def _write_ascii(self, vertices: np.ndarray, path: Path):
        """Write ASCII STL file."""
        lines = ["solid lithophane"]

        coords = vertices.astype(np.float64).tolist()
        for i in range(0, len(coords), 3):
            lines.append("facet normal 0 0 0")
            lines.append("\touter loop")
            for x, y, z in coords[i:i + 3]:
                lines.append(f"\t\tvertex {x:g} {y:g} {z:g}")
            lines.append("\tendloop")
            lines.append("endfacet")

        lines.append("endsolid")

        with open(path, "w", encoding="ascii", newline="\n") as f:
            f.write("\n".join(lines))
            f.write("\n")
