"""
Wavefront OBJ Format Exporter

Plain geometry only: one object, deduplicated ``v`` lines and 1-indexed
``f`` triangle lines. No normals, texture coordinates or materials.
"""

from pathlib import Path
import numpy as np

from .base import Exporter, ExportResult, deduplicate_vertices


class OBJExporter(Exporter):
    """Export triangle buffers to Wavefront OBJ."""

    name = "OBJ"
    extension = "obj"

    def __init__(self, model_name: str = "lithophane"):
        """
        Initialize the exporter.

        Args:
            model_name: Name written on the ``o`` line
        """
        self.model_name = model_name

    def _write(self, vertices: np.ndarray, output_path: Path) -> ExportResult:
        unique, indices = deduplicate_vertices(vertices)
        faces = (indices + 1).reshape(-1, 3)

        lines = []
        lines.append("# LithoMaker Export")
        lines.append(f"# Triangles: {len(faces)}")
        lines.append("")
        lines.append(f"o {self.model_name}")
        lines.append("")

        for x, y, z in unique.astype(np.float64).tolist():
            lines.append(f"v {x:.6f} {y:.6f} {z:.6f}")

        lines.append("")
        lines.append("# Faces")

        for a, b, c in faces.tolist():
            lines.append(f"f {a} {b} {c}")

        with open(output_path, "w", encoding="ascii", newline="\n") as f:
            f.write("\n".join(lines))
            f.write("\n")

        return ExportResult.ok(output_path.stat().st_size)
