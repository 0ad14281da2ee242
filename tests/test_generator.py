"""
Unit tests for the lithophane mesh pipeline.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lithomaker import LithophaneGenerator, MeshConfig, MeshScale, HeightGrid
from lithomaker.buffer import TriangleBuffer
from lithomaker.tessellator import (
    SurfaceTessellator,
    build_backside,
    relief_depths,
    surface_triangle_count,
)
from lithomaker.frame import FRAME_QUADS, build_frame
from lithomaker.stabilizers import STABILIZER_TRIANGLES, build_stabilizers
from lithomaker.hangers import HANGER_TRIANGLES, build_hangers, hanger_offsets


def sorted_triangles(points: np.ndarray) -> np.ndarray:
    """Triangles as rows of nine coordinates, in a canonical order."""
    rows = np.asarray(points, dtype=np.float64).reshape(-1, 9)
    return rows[np.lexsort(rows.T[::-1])]


class TestTriangleBuffer(unittest.TestCase):
    """Tests for TriangleBuffer class."""

    def test_empty_buffer(self):
        buffer = TriangleBuffer()
        assert len(buffer) == 0
        assert buffer.triangle_count == 0
        assert buffer.bounds() is None

    def test_append_and_grow(self):
        """Appending past the reserved capacity keeps every point."""
        buffer = TriangleBuffer(capacity=3)
        buffer.append(np.zeros((3, 3)))
        buffer.append(np.ones((6, 3)))

        assert buffer.triangle_count == 3
        assert buffer.capacity >= 9
        assert buffer.vertices[0, 0] == 0.0
        assert buffer.vertices[8, 2] == 1.0

    def test_append_rejects_partial_triangles(self):
        buffer = TriangleBuffer()
        with self.assertRaises(ValueError):
            buffer.append(np.zeros((4, 3)))
        with self.assertRaises(ValueError):
            buffer.append(np.zeros((3, 2)))

    def test_clear_keeps_capacity(self):
        buffer = TriangleBuffer.from_points(np.zeros((6, 3)))
        capacity = buffer.capacity
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.capacity == capacity

    def test_bounds(self):
        buffer = TriangleBuffer.from_points([[0, 0, 0], [1, 2, 3], [-1, 0, 5]])
        low, high = buffer.bounds()
        assert list(low) == [-1, 0, 0]
        assert list(high) == [1, 2, 5]


class TestHeightGrid(unittest.TestCase):
    """Tests for HeightGrid class."""

    def test_create_grid(self):
        grid = HeightGrid(np.zeros((3, 5), dtype=np.uint8))
        assert grid.width == 5
        assert grid.height == 3

    def test_samples_read_only(self):
        grid = HeightGrid.from_array([[1, 2], [3, 4]])
        with self.assertRaises(ValueError):
            grid.samples[0, 0] = 9

    def test_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            HeightGrid(np.zeros(4))
        with self.assertRaises(ValueError):
            HeightGrid(np.full((2, 2), 300.0))

    def test_rejects_non_finite(self):
        samples = np.zeros((2, 2))
        samples[0, 1] = np.nan
        with self.assertRaises(ValueError):
            HeightGrid(samples)
        with self.assertRaises(ValueError):
            HeightGrid(np.full((2, 2), np.inf))

    def test_flipped(self):
        grid = HeightGrid.from_array([[0, 0], [255, 255]])
        assert grid.flipped().sample(0, 0) == 255
        assert grid.sample(0, 0) == 0


class TestMeshConfig(unittest.TestCase):
    """Tests for configuration and derived scaling."""

    def test_defaults(self):
        config = MeshConfig()
        assert config.min_thickness == 0.8
        assert config.total_thickness == 4.0
        assert config.frame_border == 3.0
        assert config.width == 200.0
        assert config.hanger_count == 2
        assert config.enable_stabilizers
        assert not config.permanent_stabilizers
        assert config.validate() == []

    def test_validate_reports_problems(self):
        config = MeshConfig(min_thickness=2.0, total_thickness=1.0, frame_slope_factor=1.5)
        problems = config.validate()
        assert len(problems) == 2

    def test_from_mapping_ignores_unknown_keys(self):
        config = MeshConfig.from_mapping({"width": 120.0, "colour": "red"})
        assert config.width == 120.0

    def test_scale(self):
        """Default config on a 100x50 grid."""
        scale = MeshScale.from_config(MeshConfig(), 100, 50)

        assert abs(scale.width_factor - 1.94) < 1e-9
        assert abs(scale.total_height - 103.0) < 1e-9
        assert abs(scale.depth_factor - 3.2 / 255) < 1e-12
        x, y, z = scale.map_point(10, 5, 1.5)
        assert abs(x - 22.4) < 1e-9
        assert abs(y - 12.7) < 1e-9
        assert z == 1.5


class TestTessellator(unittest.TestCase):
    """Tests for the relief tessellation."""

    def setUp(self):
        self.config = MeshConfig()
        rng = np.random.default_rng(7)
        self.grid = HeightGrid(rng.integers(0, 256, size=(20, 13), dtype=np.uint8))
        self.scale = MeshScale.from_config(self.config, self.grid.width, self.grid.height)

    def test_triangle_count(self):
        points = SurfaceTessellator(self.scale, self.config.min_thickness).tessellate(self.grid)
        assert len(points) % 3 == 0
        assert len(points) // 3 == surface_triangle_count(13, 20)
        assert surface_triangle_count(4, 4) == 42

    def test_points_inside_relief_area(self):
        points = SurfaceTessellator(self.scale, self.config.min_thickness).tessellate(self.grid)
        border = self.scale.border
        wf = self.scale.width_factor

        assert points[:, 0].min() >= border - 1e-4
        assert points[:, 0].max() <= border + 12 * wf + 1e-4
        assert points[:, 1].min() >= border - 1e-4
        assert points[:, 1].max() <= border + 19 * wf + 1e-4
        assert points[:, 2].min() >= -self.config.min_thickness - 1e-4
        assert points[:, 2].max() <= self.config.relief_depth + 1e-4

    def test_depth_inversion(self):
        """Black pixels are thickest, white pixels sit at z = 0."""
        depth = relief_depths(HeightGrid.from_array([[0, 255], [255, 0]]), 3.2 / 255)
        # Rows are reversed: model row 0 is the bottom image row
        assert abs(depth[0, 0] - 0.0) < 1e-5
        assert abs(depth[0, 1] - 3.2) < 1e-5
        assert abs(depth[1, 0] - 3.2) < 1e-5

    def test_every_vertex_on_grid_mapping(self):
        """Each point is map_point of a grid coordinate, at that sample's depth."""
        points = SurfaceTessellator(self.scale, self.config.min_thickness).tessellate(self.grid)
        scale = self.scale
        samples = self.grid.samples.astype(np.float64)
        base_z = -self.config.min_thickness

        gx = np.rint((points[:, 0] - scale.border) / scale.width_factor).astype(int)
        gy = np.rint((points[:, 1] - scale.border) / scale.width_factor).astype(int)

        assert gx.min() >= 0 and gx.max() <= self.grid.width - 1
        assert gy.min() >= 0 and gy.max() <= self.grid.height - 1
        assert np.allclose(points[:, 0], gx * scale.width_factor + scale.border, atol=1e-4)
        assert np.allclose(points[:, 1], gy * scale.width_factor + scale.border, atol=1e-4)

        on_base = np.abs(points[:, 2] - base_z) < 1e-6
        relief = ~on_base
        # Model row gy is image row H - 1 - gy
        expected = (255.0 - samples[self.grid.height - 1 - gy, gx]) * scale.depth_factor
        assert relief.sum() > 0
        assert np.allclose(points[relief, 2], expected[relief], atol=1e-4)

    def test_bottom_image_row_at_model_origin(self):
        samples = np.full((4, 4), 255, dtype=np.uint8)
        samples[-1] = 0
        grid = HeightGrid(samples)
        scale = MeshScale.from_config(self.config, 4, 4)

        points = SurfaceTessellator(scale, self.config.min_thickness).tessellate(grid)
        on_first_row = np.abs(points[:, 1] - scale.border) < 1e-4
        above_base = points[:, 2] > -self.config.min_thickness + 1e-4

        assert np.allclose(points[on_first_row & above_base, 2], self.config.relief_depth, atol=1e-4)

    def test_edge_caps_emitted_once(self):
        """The top and bottom walls are not repeated per chunk or worker."""
        scale = self.scale
        points = SurfaceTessellator(
            scale, self.config.min_thickness, workers=4, chunk_rows=1
        ).tessellate(self.grid)

        triangles = points.reshape(-1, 3, 3)
        first_row = np.all(np.abs(triangles[:, :, 1] - scale.border) < 1e-4, axis=1)
        assert first_row.sum() == 2 * (self.grid.width - 1)

    def test_worker_count_does_not_change_triangles(self):
        serial = SurfaceTessellator(
            self.scale, self.config.min_thickness, workers=1
        ).tessellate(self.grid)
        parallel = SurfaceTessellator(
            self.scale, self.config.min_thickness, workers=4, chunk_rows=2
        ).tessellate(self.grid)

        assert serial.shape == parallel.shape
        assert np.array_equal(sorted_triangles(serial), sorted_triangles(parallel))

    def test_backside(self):
        points = build_backside(self.scale, 13, 20, 0.8)
        assert points.shape == (6, 3)
        assert np.allclose(points[:, 2], -0.8)


class TestFrame(unittest.TestCase):
    """Tests for the beveled frame."""

    def test_triangle_count(self):
        points = build_frame(200.0, 103.0, MeshConfig())
        assert len(points) == FRAME_QUADS * 6
        assert len(points) // 3 == 28

    def test_frame_spans_model(self):
        config = MeshConfig()
        points = build_frame(200.0, 103.0, config)

        assert points[:, 0].min() == 0.0
        assert abs(points[:, 0].max() - 200.0) < 1e-4
        assert abs(points[:, 1].max() - 103.0) < 1e-4
        assert abs(points[:, 2].min() + config.min_thickness) < 1e-5
        assert abs(points[:, 2].max() - config.relief_depth) < 1e-5


class TestStabilizers(unittest.TestCase):
    """Tests for the support feet."""

    def test_threshold_is_strict(self):
        assert len(build_stabilizers(50.0, 50.0, MeshConfig(stabilizer_threshold=49.9))) > 0
        assert len(build_stabilizers(50.0, 50.0, MeshConfig(stabilizer_threshold=50.0))) == 0

    def test_disabled(self):
        points = build_stabilizers(200.0, 103.0, MeshConfig(enable_stabilizers=False))
        assert points.shape == (0, 3)

    def test_triangle_count(self):
        points = build_stabilizers(200.0, 103.0, MeshConfig())
        assert len(points) // 3 == STABILIZER_TRIANGLES * 2
        assert len(points) // 3 == 64

    def test_breakaway_neck(self):
        """Breakaway feet keep a 1 mm gap, permanent feet touch the panel."""
        config = MeshConfig()
        front_gap = config.relief_depth + 1
        back_gap = -config.min_thickness - 1

        breakaway = build_stabilizers(200.0, 103.0, config)
        permanent = build_stabilizers(
            200.0, 103.0, MeshConfig(permanent_stabilizers=True)
        )

        assert np.any(np.isclose(breakaway[:, 2], front_gap, atol=1e-5))
        assert np.any(np.isclose(breakaway[:, 2], back_gap, atol=1e-5))
        assert not np.any(np.isclose(permanent[:, 2], front_gap, atol=1e-5))
        assert not np.any(np.isclose(permanent[:, 2], back_gap, atol=1e-5))

    def test_foot_width_clamped(self):
        config = MeshConfig(frame_border=10.0)
        points = build_stabilizers(200.0, 103.0, config)
        left = points[points[:, 0] < 100]
        assert abs(left[:, 0].max() - 4.0) < 1e-5


class TestHangers(unittest.TestCase):
    """Tests for the hanging loops."""

    def test_triangle_count(self):
        for count in (1, 2, 5):
            points = build_hangers(200.0, 103.0, MeshConfig(hanger_count=count))
            assert len(points) // 3 == count * HANGER_TRIANGLES

    def test_disabled(self):
        assert len(build_hangers(200.0, 103.0, MeshConfig(enable_hangers=False))) == 0

    def test_offsets(self):
        assert hanger_offsets(200.0, 2) == [45.5, 145.5]

    def test_loops_stand_on_top_edge(self):
        points = build_hangers(200.0, 103.0, MeshConfig())
        assert abs(points[:, 1].min() - 103.0) < 1e-4
        assert abs(points[:, 1].max() - 106.0) < 1e-4


class TestLithophaneGenerator(unittest.TestCase):
    """Integration tests for LithophaneGenerator."""

    def test_minimal_grid(self):
        """A flat 4x4 grid without feet or hangers."""
        config = MeshConfig(enable_stabilizers=False, enable_hangers=False)
        generator = LithophaneGenerator(config)
        mesh = generator.generate(np.full((4, 4), 128, dtype=np.uint8))

        # 42 relief and wall + 2 backside + 28 frame
        assert mesh.triangle_count == 72
        assert generator.dimensions == (200.0, 200.0)

    def test_full_pipeline(self):
        generator = LithophaneGenerator(MeshConfig(width=50.0, stabilizer_threshold=49.9))
        mesh = generator.generate(np.full((4, 4), 128, dtype=np.uint8))
        assert mesh.triangle_count == 72 + 64 + 2 * 16

    def test_progress_checkpoints(self):
        calls = []
        generator = LithophaneGenerator()
        generator.generate(
            np.zeros((6, 8), dtype=np.uint8),
            lambda current, total: calls.append((current, total))
        )
        assert calls == [(50, 100), (60, 100), (80, 100), (100, 100)]

    def test_regenerate_replaces_mesh(self):
        generator = LithophaneGenerator(MeshConfig(enable_stabilizers=False, enable_hangers=False))
        generator.generate(np.zeros((10, 10), dtype=np.uint8))
        generator.generate(np.zeros((4, 4), dtype=np.uint8))
        assert generator.triangle_count == 72

    def test_rejects_tiny_grid(self):
        generator = LithophaneGenerator()
        with self.assertRaises(ValueError):
            generator.generate(np.zeros((1, 5), dtype=np.uint8))
        assert generator.mesh is None

    def test_export_without_mesh(self):
        result = LithophaneGenerator().export("unused.stl")
        assert not result.success
        assert result.error


if __name__ == "__main__":
    unittest.main(verbosity=2)
