"""
Triangle Buffer

The shared geometric data model of the pipeline: an ordered run of 3D
points, implicitly grouped in triples. Every triple is one triangle.

There is no index or adjacency structure during generation and no normals
are stored; exporters deduplicate vertices on their own when the target
format wants an indexed mesh.
"""

from typing import Iterator, Optional, Union
import numpy as np


# Growth factor used when an append overflows the reserved capacity
_GROWTH = 1.5


class TriangleBuffer:
    """
    Growable (N, 3) float32 point array where N is always a multiple of 3.

    Capacity can be reserved up front from a triangle-count estimate so that
    the builders append without reallocating.
    """

    def __init__(self, capacity: int = 0):
        """
        Initialize an empty buffer.

        Args:
            capacity: Number of points to reserve
        """
        self._data = np.empty((max(int(capacity), 0), 3), dtype=np.float32)
        self._size = 0

    @classmethod
    def from_points(cls, points: Union[np.ndarray, list]) -> "TriangleBuffer":
        """Create a buffer holding a copy of ``points``."""
        points = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        buffer = cls(capacity=len(points))
        buffer.append(points)
        return buffer

    def reserve(self, capacity: int):
        """Make sure at least ``capacity`` points fit without reallocating."""
        if capacity <= len(self._data):
            return
        data = np.empty((capacity, 3), dtype=np.float32)
        data[:self._size] = self._data[:self._size]
        self._data = data

    def append(self, points: np.ndarray):
        """
        Append a run of points.

        Args:
            points: Array-like of shape (K, 3), K a multiple of 3

        Raises:
            ValueError: If the run does not consist of whole triangles
        """
        points = np.asarray(points, dtype=np.float32)
        if points.size == 0:
            return
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Points must have shape (K, 3), got {points.shape}")
        if len(points) % 3 != 0:
            raise ValueError(
                f"Point count {len(points)} is not a multiple of 3"
            )

        needed = self._size + len(points)
        if needed > len(self._data):
            self.reserve(max(needed, int(len(self._data) * _GROWTH)))

        self._data[self._size:needed] = points
        self._size = needed

    def clear(self):
        """Drop all points but keep the reserved storage."""
        self._size = 0

    @property
    def capacity(self) -> int:
        """Number of points that fit without reallocating."""
        return len(self._data)

    @property
    def vertices(self) -> np.ndarray:
        """(N, 3) view of the stored points."""
        return self._data[:self._size]

    @property
    def triangle_count(self) -> int:
        return self._size // 3

    def triangles(self) -> np.ndarray:
        """(T, 3, 3) view: triangle, corner, coordinate."""
        return self.vertices.reshape(-1, 3, 3)

    def to_array(self) -> np.ndarray:
        """Return an independent copy of the points."""
        return self.vertices.copy()

    def bounds(self) -> Optional[np.ndarray]:
        """
        Axis-aligned bounding box.

        Returns:
            (2, 3) array of [min, max] corners, or None for an empty buffer
        """
        if self._size == 0:
            return None
        vertices = self.vertices
        return np.stack([vertices.min(axis=0), vertices.max(axis=0)])

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.vertices)

    def __repr__(self) -> str:
        return f"TriangleBuffer(triangles={self.triangle_count})"
