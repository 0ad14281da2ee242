#!/usr/bin/env python3
"""
LithoMaker Demo Script

This script demonstrates the full lithophane pipeline by:
1. Creating synthetic test images (no external photos needed)
2. Generating lithophane meshes with different options
3. Exporting to all supported formats
4. Printing statistics and timings

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lithomaker import LithophaneGenerator, MeshConfig
from lithomaker.exporters import ExportFormat
from lithomaker.tessellator import surface_triangle_count


def create_test_image_gradient(width: int = 120, height: int = 80) -> np.ndarray:
    """
    Create a horizontal black-to-white gradient.

    Returns:
        (H, W) uint8 array
    """
    row = np.linspace(0, 255, width)
    return np.tile(row, (height, 1)).astype(np.uint8)


def create_test_image_rings(size: int = 100) -> np.ndarray:
    """
    Create concentric rings, a good test of relief resolution.

    Returns:
        (H, W) uint8 array
    """
    y, x = np.mgrid[0:size, 0:size]
    dist = np.sqrt((x - size / 2) ** 2 + (y - size / 2) ** 2)
    return ((np.sin(dist / 3.0) * 0.5 + 0.5) * 255).astype(np.uint8)


def create_test_image_portrait(width: int = 90, height: int = 120) -> np.ndarray:
    """
    Create a crude silhouette: dark head and shoulders on a bright background.

    Returns:
        (H, W) uint8 array
    """
    image = np.full((height, width), 230, dtype=np.uint8)
    y, x = np.mgrid[0:height, 0:width]

    head = (x - width / 2) ** 2 + (y - height / 3) ** 2 < (width / 5) ** 2
    shoulders = (y > height * 0.6) & (np.abs(x - width / 2) < width * 0.4)

    image[head | shoulders] = 40
    return image


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("LithoMaker - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    test_images = [
        ("gradient", create_test_image_gradient(), MeshConfig(width=100)),
        ("rings", create_test_image_rings(), MeshConfig(width=80, hanger_count=1)),
        ("portrait", create_test_image_portrait(), MeshConfig(
            width=90, permanent_stabilizers=True, hanger_count=3
        )),
    ]

    total_start = time.time()

    for name, image, config in test_images:
        print(f"\n--- Processing: {name} ---")
        print(f"Input size: {image.shape[1]}x{image.shape[0]} pixels")

        generator = LithophaneGenerator(config)

        gen_start = time.time()
        generator.generate(
            image,
            lambda current, total: print(f"  progress {current}/{total}")
        )
        gen_time = time.time() - gen_start

        width, height = generator.dimensions
        surface = surface_triangle_count(image.shape[1], image.shape[0])

        print(f"  Size: {width:.1f} x {height:.1f} mm")
        print(f"  Triangles: {generator.triangle_count} ({surface} relief)")
        print(f"  Generation: {gen_time*1000:.1f}ms")

        # Export to all formats
        print(f"\n  Exporting...")

        for fmt, suffix in [
            (ExportFormat.STL, ".stl"),
            (ExportFormat.STL_ASCII, "_ascii.stl"),
            (ExportFormat.OBJ, ".obj"),
            (ExportFormat.THREEMF, ".3mf"),
        ]:
            path = output_dir / f"{name}{suffix}"
            kwargs = {"archiver": "builtin"} if fmt == ExportFormat.THREEMF else {}
            result = generator.export(path, fmt, **kwargs)

            if result.success:
                print(f"    Saved: {path} ({result.bytes_written} bytes)")
            else:
                print(f"    {fmt.value} export failed: {result.error}")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_tessellation():
    """Benchmark relief generation against worker count."""
    print("\n--- Tessellation Benchmark ---\n")

    image = create_test_image_rings(800)

    for workers in (1, 2, 4, 8):
        generator = LithophaneGenerator(MeshConfig(), workers=workers)
        start = time.time()
        generator.generate(image)
        elapsed = time.time() - start
        print(f"  {workers} workers: {elapsed*1000:.1f}ms, {generator.triangle_count} triangles")


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_tessellation()
