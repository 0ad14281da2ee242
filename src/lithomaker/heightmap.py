"""
Height Grid

The 2D intensity field the lithophane is built from. Samples are 8-bit
brightness values, row-major with the origin in the top-left corner, exactly
as an image library hands them out.
"""

from dataclasses import dataclass
from typing import Union
import numpy as np


@dataclass(frozen=True, eq=False)
class HeightGrid:
    """
    Immutable (H, W) uint8 sample array.

    Attributes:
        samples: Read-only brightness samples, 0 = black, 255 = white
    """

    samples: np.ndarray

    def __post_init__(self):
        samples = np.asarray(self.samples)

        if samples.ndim != 2:
            raise ValueError(f"Height grid must be 2D, got shape {samples.shape}")

        if samples.dtype != np.uint8:
            if samples.size and not np.isfinite(samples).all():
                raise ValueError("Height grid samples must be finite")
            if samples.size and (samples.min() < 0 or samples.max() > 255):
                raise ValueError("Height grid samples must lie in [0, 255]")
            samples = np.rint(samples).astype(np.uint8)

        samples = np.ascontiguousarray(samples)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @classmethod
    def from_array(cls, array: Union[np.ndarray, list]) -> "HeightGrid":
        """Wrap any 2D array-like with values in [0, 255]."""
        if isinstance(array, HeightGrid):
            return array
        return cls(np.array(array, copy=True))

    @property
    def width(self) -> int:
        return self.samples.shape[1]

    @property
    def height(self) -> int:
        return self.samples.shape[0]

    @property
    def shape(self):
        """(height, width) like a numpy image."""
        return self.samples.shape

    def sample(self, x: int, y: int) -> int:
        """Brightness at column ``x``, row ``y`` (top-left origin)."""
        return int(self.samples[y, x])

    def flipped(self) -> "HeightGrid":
        """Return a vertically mirrored copy."""
        return HeightGrid(self.samples[::-1].copy())
