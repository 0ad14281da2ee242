"""
Unit tests for the mesh exporters.
"""

import shutil
import struct
import sys
import tempfile
import zipfile
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lithomaker import LithophaneGenerator, MeshConfig, TriangleBuffer
from lithomaker.exporters import (
    ExportErrorKind,
    ExportFormat,
    OBJExporter,
    STLExporter,
    ThreeMFExporter,
    deduplicate_vertices,
    format_from_path,
    get_exporter,
)
from lithomaker.exporters.stl_exporter import STL_FACET_DTYPE
from lithomaker.exporters.threemf_exporter import PACKAGE_PARTS, build_model_xml


def two_triangles() -> TriangleBuffer:
    """A unit square split along its diagonal."""
    return TriangleBuffer.from_points([
        [0, 0, 0], [1, 0, 0], [1, 1, 0],
        [0, 0, 0], [1, 1, 0], [0, 1, 0],
    ])


class ExporterTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()


class TestDeduplication(unittest.TestCase):
    """Tests for vertex deduplication."""

    def test_shared_corners_merge(self):
        unique, indices = deduplicate_vertices(two_triangles().vertices)
        assert len(unique) == 4
        assert indices.tolist() == [0, 1, 2, 0, 2, 3]

    def test_first_occurrence_order(self):
        points = np.array([[5, 5, 5], [1, 1, 1], [5, 5, 5]], dtype=np.float32)
        unique, indices = deduplicate_vertices(points)
        assert unique.tolist() == [[5, 5, 5], [1, 1, 1]]
        assert indices.tolist() == [0, 1, 0]

    def test_six_decimal_key(self):
        """Points closer than 1e-6 merge; points 1e-3 apart stay apart."""
        points = np.array([
            [1.0, 2.0, 3.0],
            [1.0 + 2e-7, 2.0, 3.0],
            [1.001, 2.0, 3.0],
        ])
        unique, indices = deduplicate_vertices(points)
        assert len(unique) == 2
        assert indices.tolist() == [0, 0, 1]


class TestSTLExporter(ExporterTestCase):
    """Tests for STL output."""

    def test_binary_layout(self):
        path = self.tmp / "square.stl"
        result = STLExporter().export(two_triangles(), path)

        assert result.success
        data = path.read_bytes()
        assert result.bytes_written == len(data) == 80 + 4 + 2 * 50
        assert data.startswith(b"LithoMaker Export")
        assert struct.unpack("<I", data[80:84])[0] == 2

        second = np.frombuffer(data[84 + 50 + 12:84 + 50 + 48], dtype="<f4")
        assert second.reshape(3, 3).tolist() == [[0, 0, 0], [1, 1, 0], [0, 1, 0]]

    def test_binary_round_trip(self):
        """A generated mesh reads back from binary STL unchanged."""
        generator = LithophaneGenerator()
        rng = np.random.default_rng(3)
        mesh = generator.generate(rng.integers(0, 256, size=(9, 12), dtype=np.uint8))

        path = self.tmp / "model.stl"
        result = STLExporter().export(mesh, path)

        assert result.success
        data = path.read_bytes()
        count = struct.unpack("<I", data[80:84])[0]
        facets = np.frombuffer(data[84:], dtype=STL_FACET_DTYPE)

        assert count == mesh.triangle_count == len(facets)
        assert np.array_equal(facets["vertices"], mesh.triangles())
        assert not facets["normal"].any()
        assert not facets["attributes"].any()

    def test_binary_normals_zero(self):
        path = self.tmp / "square.stl"
        STLExporter().export(two_triangles(), path)
        data = path.read_bytes()
        assert np.frombuffer(data[84:96], dtype="<f4").tolist() == [0, 0, 0]

    def test_ascii_grammar(self):
        path = self.tmp / "square.stl"
        result = STLExporter(binary=False).export(two_triangles(), path)

        assert result.success
        lines = path.read_text().splitlines()
        assert lines[0] == "solid lithophane"
        assert lines[-1] == "endsolid"
        assert lines.count("facet normal 0 0 0") == 2
        assert len([l for l in lines if l.strip().startswith("vertex")]) == 6
        assert lines[4].strip() == "vertex 1 0 0"


class TestOBJExporter(ExporterTestCase):
    """Tests for OBJ output."""

    def test_deduplicated_faces(self):
        path = self.tmp / "square.obj"
        result = OBJExporter().export(two_triangles(), path)

        assert result.success
        lines = path.read_text().splitlines()
        assert lines[0] == "# LithoMaker Export"
        assert "o lithophane" in lines

        vertices = [l for l in lines if l.startswith("v ")]
        faces = [l for l in lines if l.startswith("f ")]
        assert len(vertices) == 4
        assert vertices[1] == "v 1.000000 0.000000 0.000000"
        assert faces == ["f 1 2 3", "f 1 3 4"]

    def test_generated_mesh_shares_vertices(self):
        generator = LithophaneGenerator(MeshConfig(enable_hangers=False))
        generator.generate(np.full((6, 6), 100, dtype=np.uint8))

        path = self.tmp / "model.obj"
        result = generator.export(path)

        assert result.success
        text = path.read_text()
        vertex_count = text.count("\nv ")
        assert 0 < vertex_count < len(generator.mesh)
        assert text.count("\nf ") == generator.triangle_count


class TestThreeMFExporter(ExporterTestCase):
    """Tests for 3MF output."""

    def test_builtin_package(self):
        path = self.tmp / "square.3mf"
        result = ThreeMFExporter(archiver="builtin").export(two_triangles(), path)

        assert result.success
        assert result.bytes_written == path.stat().st_size

        with zipfile.ZipFile(path) as archive:
            names = archive.namelist()
            model = archive.read("3D/3dmodel.model").decode("utf-8")

        for part in PACKAGE_PARTS:
            assert part in names
        assert 'unit="millimeter"' in model
        assert model.count("<vertex ") == 4
        assert '<triangle v1="0" v2="2" v3="3"/>' in model

    def test_overwrites_existing_file(self):
        path = self.tmp / "square.3mf"
        path.write_bytes(b"stale")
        result = ThreeMFExporter(archiver="builtin").export(two_triangles(), path)

        assert result.success
        assert zipfile.is_zipfile(path)

    @unittest.skipIf(shutil.which("zip") is None, "zip tool not installed")
    def test_external_package(self):
        path = self.tmp / "square.3mf"
        result = ThreeMFExporter().export(two_triangles(), path)

        assert result.success
        with zipfile.ZipFile(path) as archive:
            assert "3D/3dmodel.model" in archive.namelist()

    def test_missing_archiver(self):
        path = self.tmp / "square.3mf"
        exporter = ThreeMFExporter(archiver_command=("lithomaker-no-such-zip-tool",))
        result = exporter.export(two_triangles(), path)

        assert not result.success
        assert result.kind == ExportErrorKind.PACKAGING_FAILURE
        assert result.error == "Failed to create 3MF archive"
        assert result.bytes_written == 0

    def test_failed_packaging_keeps_previous_file(self):
        path = self.tmp / "model.3mf"
        ThreeMFExporter(archiver="builtin").export(two_triangles(), path)
        previous = path.read_bytes()

        exporter = ThreeMFExporter(archiver_command=("lithomaker-no-such-zip-tool",))
        result = exporter.export(two_triangles(), path)

        assert not result.success
        assert path.read_bytes() == previous
        assert [p.name for p in self.tmp.iterdir()] == ["model.3mf"]

    def test_archiver_timeout(self):
        path = self.tmp / "square.3mf"
        exporter = ThreeMFExporter(
            archiver_command=(sys.executable, "-c", "import time; time.sleep(10)"),
            timeout=0.5
        )
        result = exporter.export(two_triangles(), path)

        assert not result.success
        assert result.kind == ExportErrorKind.PACKAGING_FAILURE
        assert not path.exists()

    def test_archiver_exit_status(self):
        path = self.tmp / "square.3mf"
        exporter = ThreeMFExporter(
            archiver_command=(sys.executable, "-c", "import sys; sys.exit(3)")
        )
        result = exporter.export(two_triangles(), path)

        assert not result.success
        assert result.kind == ExportErrorKind.PACKAGING_FAILURE
        assert result.error == "Failed to create 3MF archive"
        assert not path.exists()

    def test_scratch_removed(self):
        """Only the finished archive is left behind, on success and on failure."""
        path = self.tmp / "square.3mf"

        ThreeMFExporter(archiver="builtin").export(two_triangles(), path)
        assert [p.name for p in self.tmp.iterdir()] == ["square.3mf"]

        path.unlink()
        ThreeMFExporter(archiver_command=("lithomaker-no-such-zip-tool",)).export(
            two_triangles(), path
        )
        assert list(self.tmp.iterdir()) == []

    def test_model_merges_close_vertices(self):
        points = two_triangles().to_array().astype(np.float64)
        points[4, 0] += 3e-7
        model = build_model_xml(points)
        assert model.count("<vertex ") == 4

    def test_unknown_archiver(self):
        with self.assertRaises(ValueError):
            ThreeMFExporter(archiver="tar")


class TestExportFailures(ExporterTestCase):
    """Failures are reported, not raised."""

    EXPORTERS = [
        STLExporter(),
        STLExporter(binary=False),
        OBJExporter(),
        ThreeMFExporter(archiver="builtin"),
    ]

    def test_empty_mesh(self):
        for exporter in self.EXPORTERS:
            path = self.tmp / f"empty.{exporter.extension}"
            result = exporter.export(TriangleBuffer(), path)

            assert not result.success
            assert result.error == "Empty mesh"
            assert result.kind == ExportErrorKind.INVALID_MESH
            assert result.bytes_written == 0
            assert not path.exists()

    def test_partial_triangle(self):
        points = np.zeros((4, 3), dtype=np.float32)
        for exporter in self.EXPORTERS:
            result = exporter.export(points, self.tmp / "bad.out")

            assert not result.success
            assert "divisible by 3" in result.error
            assert result.bytes_written == 0

    def test_flat_array_with_partial_point(self):
        for exporter in self.EXPORTERS:
            result = exporter.export(np.zeros(4), self.tmp / "bad.out")

            assert not result.success
            assert result.kind == ExportErrorKind.INVALID_MESH
            assert result.bytes_written == 0

    def test_missing_directory(self):
        for exporter in self.EXPORTERS:
            path = self.tmp / "missing" / f"model.{exporter.extension}"
            result = exporter.export(two_triangles(), path)

            assert not result.success
            assert result.kind == ExportErrorKind.IO_FAILURE
            assert result.error.startswith("Cannot open file for writing")
            assert result.bytes_written == 0


class TestFormatSelection(unittest.TestCase):
    """Tests for format lookup."""

    def test_get_exporter(self):
        assert isinstance(get_exporter("stl"), STLExporter)
        assert not get_exporter(ExportFormat.STL_ASCII).binary
        assert isinstance(get_exporter("obj"), OBJExporter)
        assert isinstance(get_exporter("3mf", archiver="builtin"), ThreeMFExporter)

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            get_exporter("gltf")

    def test_format_from_path(self):
        assert format_from_path("a.OBJ") == ExportFormat.OBJ
        assert format_from_path("a.3mf") == ExportFormat.THREEMF
        assert format_from_path("a.stl") == ExportFormat.STL
        assert format_from_path("a") == ExportFormat.STL


if __name__ == "__main__":
    unittest.main(verbosity=2)
