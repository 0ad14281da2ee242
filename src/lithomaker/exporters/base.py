"""
Common exporter plumbing: the result record, the exporter interface, mesh
validation and vertex deduplication for indexed formats.

Exporters never raise for the failures a user can cause (empty mesh,
unwritable path, missing archiver); they log and return a failed
:class:`ExportResult` instead.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np

from ..buffer import TriangleBuffer

logger = logging.getLogger(__name__)

# Decimal places that identify a vertex when deduplicating
VERTEX_KEY_DECIMALS = 6

MeshLike = Union[TriangleBuffer, np.ndarray, list]


class ExportErrorKind(Enum):
    """Why an export failed."""
    INVALID_MESH = "invalid_mesh"
    IO_FAILURE = "io_failure"
    PACKAGING_FAILURE = "packaging_failure"


@dataclass
class ExportResult:
    """
    Outcome of one export call.

    Attributes:
        success: True if the file was written
        error: Human-readable reason, empty on success
        bytes_written: Size of the written file
        kind: Failure category, None on success
    """

    success: bool
    error: str = ""
    bytes_written: int = 0
    kind: Optional[ExportErrorKind] = None

    @classmethod
    def ok(cls, bytes_written: int) -> "ExportResult":
        return cls(success=True, bytes_written=bytes_written)

    @classmethod
    def failed(cls, kind: ExportErrorKind, error: str) -> "ExportResult":
        return cls(success=False, error=error, kind=kind)

    def __bool__(self) -> bool:
        return self.success


def as_vertex_array(mesh: MeshLike) -> np.ndarray:
    """
    Flatten a buffer or array-like into an (N, 3) float32 array.

    Input whose size is not a multiple of 3 comes back flat (1D) for
    :func:`check_mesh` to reject.
    """
    if isinstance(mesh, TriangleBuffer):
        return mesh.vertices
    vertices = np.asarray(mesh, dtype=np.float32)
    if vertices.size == 0:
        return vertices.reshape(0, 3)
    if vertices.size % 3 != 0:
        return vertices.reshape(-1)
    return vertices.reshape(-1, 3)


def check_mesh(vertices: np.ndarray) -> Optional[str]:
    """Return why ``vertices`` cannot be exported, or None if it can."""
    if len(vertices) == 0:
        return "Empty mesh"
    if vertices.ndim != 2 or len(vertices) % 3 != 0:
        return "Invalid mesh: vertex count not divisible by 3"
    return None


def deduplicate_vertices(vertices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Merge vertices that agree to six decimal places.

    Unique vertices keep the order of their first occurrence.

    Args:
        vertices: (N, 3) points

    Returns:
        Tuple of (unique (M, 3) vertices, (N,) 0-based indices into them)
    """
    scale = 10.0 ** VERTEX_KEY_DECIMALS
    keys = np.rint(vertices.astype(np.float64) * scale).astype(np.int64)

    _, first, inverse = np.unique(
        keys, axis=0, return_index=True, return_inverse=True
    )
    inverse = inverse.reshape(-1)

    # np.unique sorts; renumber by first occurrence
    order = np.argsort(first, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))

    return vertices[first[order]], rank[inverse]


class Exporter(ABC):
    """Serializes a triangle buffer to one file format."""

    #: Display name
    name: str = ""
    #: File extension without the dot
    extension: str = ""

    def export(self, mesh: MeshLike, output_path: Union[str, Path]) -> ExportResult:
        """
        Write ``mesh`` to ``output_path``.

        Args:
            mesh: TriangleBuffer or (N, 3) array-like, N a multiple of 3
            output_path: Target file, overwritten if present

        Returns:
            ExportResult describing the outcome
        """
        output_path = Path(output_path)
        vertices = as_vertex_array(mesh)

        problem = check_mesh(vertices)
        if problem is not None:
            logger.warning("%s export refused: %s", self.name, problem)
            return ExportResult.failed(ExportErrorKind.INVALID_MESH, problem)

        try:
            result = self._write(vertices, output_path)
        except OSError as e:
            logger.warning("%s export to %s failed: %s", self.name, output_path, e)
            return ExportResult.failed(
                ExportErrorKind.IO_FAILURE,
                f"Cannot open file for writing: {e}"
            )

        if result.success:
            logger.info(
                "Exported %s: %s (%d bytes, %d triangles)",
                self.name, output_path, result.bytes_written, len(vertices) // 3
            )
        return result

    @abstractmethod
    def _write(self, vertices: np.ndarray, output_path: Path) -> ExportResult:
        """Format-specific writer; may raise OSError."""
