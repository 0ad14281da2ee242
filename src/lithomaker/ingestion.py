"""
Image Ingestion and Preprocessing Module

This module handles:
- Loading photographs in the common raster formats
- Down-scaling to a maximum dimension with smooth resampling
- Grayscale conversion to the 8-bit height grid
- A JPEG block-artifact heuristic to warn about low-quality sources
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np
from PIL import Image

from .heightmap import HeightGrid

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("png", "jpg", "jpeg", "webp", "tiff", "tif", "bmp")


def is_format_supported(extension: str) -> bool:
    """Check a file extension, with or without the leading dot."""
    return extension.lower().lstrip(".") in SUPPORTED_EXTENSIONS


def detect_jpeg_artifacts(samples: np.ndarray) -> bool:
    """
    Guess whether an image shows visible JPEG block artifacts.

    JPEG compresses 8x8 blocks, so artifacts show up as brightness jumps
    on block boundaries. Compare the jump across a boundary with the jump
    between two pixels inside the block, sampled every 32 pixels.

    Args:
        samples: (H, W) grayscale array

    Returns:
        True if artifacts are likely present
    """
    height, width = samples.shape
    if width < 16 or height < 16:
        return False

    ys = np.arange(8, height - 8, 32)
    xs = np.arange(8, width - 8, 32)
    if len(ys) == 0 or len(xs) == 0:
        return False

    rows = samples[ys].astype(np.int32)
    boundary = np.abs(rows[:, xs] - rows[:, xs - 1])
    internal = np.abs(rows[:, xs - 4] - rows[:, xs - 5])

    boundary_avg = boundary.mean()
    internal_avg = internal.mean()

    return bool(boundary_avg > internal_avg * 1.5 and boundary_avg > 10)


def to_grayscale(img: Image.Image) -> Image.Image:
    """
    Convert any Pillow image to 8-bit grayscale ("L").

    16-bit and 32-bit integer modes are scaled down by their bit depth
    rather than clipped, so 16-bit PNG and TIFF sources keep their tones.
    Float images are taken as 0-255 values.
    """
    if img.mode == "L":
        return img

    if img.mode.startswith("I;16") or img.mode == "I":
        values = np.array(img).astype(np.int64)
        values = np.clip(values, 0, 65535) >> 8
        return Image.fromarray(values.astype(np.uint8))

    if img.mode == "F":
        values = np.clip(np.array(img), 0, 255)
        return Image.fromarray(np.rint(values).astype(np.uint8))

    return img.convert("L")


class ImageLoader:
    """
    Photograph loader producing lithophane height grids.

    Key features:
    - Any Pillow-readable format, converted to 8-bit grayscale
    - Optional down-scaling so the longest side fits ``max_size``
    - Optional vertical flip
    """

    def __init__(self, max_size: int = 0, flip: bool = False):
        """
        Initialize the image loader.

        Args:
            max_size: Longest allowed side in pixels, 0 = keep the original size
            flip: Mirror the image vertically
        """
        self.max_size = max_size
        self.flip = flip

        self._grid: Optional[HeightGrid] = None
        self._original_format: str = ""
        self._original_size: Optional[Tuple[int, int]] = None
        self._was_converted = False
        self._was_resized = False
        self._has_quality_warning = False

    def load(self, image_path: Union[str, Path]) -> HeightGrid:
        """
        Load and preprocess an image.

        Args:
            image_path: Path to the photograph

        Returns:
            HeightGrid of the processed image
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")

        with Image.open(image_path) as img:
            img.load()
            self._original_format = (img.format or "").upper()
            self._original_size = img.size

            if self._original_format in ("JPEG", "JPG"):
                self._has_quality_warning = detect_jpeg_artifacts(
                    np.array(img.convert("L"), dtype=np.uint8)
                )
                if self._has_quality_warning:
                    logger.info("JPEG quality warning for: %s", image_path)
            else:
                self._has_quality_warning = False

            self._was_converted = img.mode != "L"
            gray = to_grayscale(img)
            if self._was_converted:
                logger.info("Image converted to grayscale from %s", img.mode)

            processed = self._resize(gray)
            samples = np.array(processed, dtype=np.uint8)

        return self._finish(samples)

    def load_from_array(self, array: np.ndarray) -> HeightGrid:
        """
        Load from a numpy image instead of a file.

        Args:
            array: (H, W) grayscale, (H, W, 3) RGB or (H, W, 4) RGBA array

        Returns:
            HeightGrid of the processed image
        """
        array = np.asarray(array)
        if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
            raise ValueError("Image array must have shape (H, W), (H, W, 3) or (H, W, 4)")

        if array.dtype == np.uint16:
            array = array >> 8

        img = Image.fromarray(array.astype(np.uint8))
        self._original_format = ""
        self._original_size = img.size
        self._has_quality_warning = False

        self._was_converted = img.mode != "L"
        processed = self._resize(to_grayscale(img))

        return self._finish(np.array(processed, dtype=np.uint8))

    def _resize(self, img: Image.Image) -> Image.Image:
        """Shrink so the longest side fits max_size, keeping the aspect ratio."""
        self._was_resized = False
        width, height = img.size

        if self.max_size <= 0 or (width <= self.max_size and height <= self.max_size):
            return img

        if width > height:
            new_size = (self.max_size, max(1, round(height * self.max_size / width)))
        else:
            new_size = (max(1, round(width * self.max_size / height)), self.max_size)

        self._was_resized = True
        logger.info("Image resized from %s to %s", img.size, new_size)
        return img.resize(new_size, Image.Resampling.LANCZOS)

    def _finish(self, samples: np.ndarray) -> HeightGrid:
        if self.flip:
            samples = samples[::-1]
        self._grid = HeightGrid(samples.copy())
        return self._grid

    @property
    def grid(self) -> HeightGrid:
        """Get the last loaded height grid."""
        if self._grid is None:
            raise RuntimeError("No image loaded")
        return self._grid

    @property
    def original_format(self) -> str:
        return self._original_format

    @property
    def original_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) before any processing."""
        return self._original_size

    @property
    def was_converted(self) -> bool:
        """True if the source was not already grayscale."""
        return self._was_converted

    @property
    def was_resized(self) -> bool:
        return self._was_resized

    @property
    def has_quality_warning(self) -> bool:
        """True for JPEG sources with likely block artifacts."""
        return self._has_quality_warning
