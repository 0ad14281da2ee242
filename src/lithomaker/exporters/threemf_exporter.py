"""
3MF Format Exporter

A 3MF file is a ZIP container (Open Packaging Conventions) holding:
- [Content_Types].xml: MIME types of the parts
- _rels/.rels: relationship pointing at the model part
- 3D/3dmodel.model: XML mesh (vertices + triangles), unit="millimeter"

The parts are written to a scratch directory and then archived. By default
the external ``zip`` tool does the archiving with a bounded wait; the
in-process ``zipfile`` archiver can be selected instead. The finished
archive replaces the target only after packaging succeeds, and the scratch
directory is removed on every path.
"""

import logging
import os
import shutil
import subprocess
import tempfile
import zipfile
from pathlib import Path
from typing import List, Sequence
import numpy as np

from .base import Exporter, ExportErrorKind, ExportResult, deduplicate_vertices

logger = logging.getLogger(__name__)

# Seconds to wait for the external archiver
ARCHIVE_TIMEOUT = 30.0

# Archiver choices
ARCHIVER_EXTERNAL = "external"
ARCHIVER_BUILTIN = "builtin"

CONTENT_TYPES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
  <Default Extension="model" ContentType="application/vnd.ms-package.3dmanufacturing-3dmodel+xml"/>
</Types>
"""

RELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Target="/3D/3dmodel.model" Id="rel0" Type="http://schemas.microsoft.com/3dmanufacturing/2013/01/3dmodel"/>
</Relationships>
"""

MODEL_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<model unit="millimeter" xmlns="http://schemas.microsoft.com/3dmanufacturing/core/2015/02">
  <resources>
    <object id="1" type="model">
      <mesh>
        <vertices>
"""

MODEL_FOOTER = """        </triangles>
      </mesh>
    </object>
  </resources>
  <build>
    <item objectid="1"/>
  </build>
</model>
"""

# Package members, relative to the package root
PACKAGE_PARTS = ("[Content_Types].xml", "_rels/.rels", "3D/3dmodel.model")


def build_model_xml(vertices: np.ndarray) -> str:
    """
    Build the 3D model part for a triangle soup.

    Args:
        vertices: (N, 3) points, N a multiple of 3

    Returns:
        XML document text
    """
    unique, indices = deduplicate_vertices(vertices)

    lines = [MODEL_HEADER.rstrip("\n")]
    for x, y, z in unique.astype(np.float64).tolist():
        lines.append(f'          <vertex x="{x:.6f}" y="{y:.6f}" z="{z:.6f}"/>')

    lines.append("        </vertices>")
    lines.append("        <triangles>")

    for a, b, c in indices.reshape(-1, 3).tolist():
        lines.append(f'          <triangle v1="{a}" v2="{b}" v3="{c}"/>')

    return "\n".join(lines) + "\n" + MODEL_FOOTER


class ThreeMFExporter(Exporter):
    """
    Export triangle buffers to 3MF.

    Features:
    - Vertex deduplication (0-indexed triangles)
    - External or in-process ZIP packaging
    """

    name = "3MF"
    extension = "3mf"

    def __init__(
        self,
        archiver: str = ARCHIVER_EXTERNAL,
        archiver_command: Sequence[str] = ("zip", "-r", "-q"),
        timeout: float = ARCHIVE_TIMEOUT
    ):
        """
        Initialize the exporter.

        Args:
            archiver: "external" to run ``archiver_command``, "builtin" for zipfile
            archiver_command: Program and flags; the target path and "." are appended
            timeout: Seconds to wait for the external archiver
        """
        if archiver not in (ARCHIVER_EXTERNAL, ARCHIVER_BUILTIN):
            raise ValueError(f"Unknown archiver: {archiver}")

        self.archiver = archiver
        self.archiver_command = list(archiver_command)
        self.timeout = timeout

    def _write(self, vertices: np.ndarray, output_path: Path) -> ExportResult:
        output_path = output_path.resolve()
        if not output_path.parent.is_dir():
            raise FileNotFoundError(f"No such directory: {output_path.parent}")

        # Beside the target so os.replace stays on one filesystem
        with tempfile.TemporaryDirectory(
            prefix=".lithomaker_3mf_", dir=output_path.parent
        ) as scratch:
            scratch = Path(scratch)
            parts = scratch / "package"
            archive = scratch / "archive.3mf"

            parts.mkdir()
            self._write_parts(parts, vertices)

            if self.archiver == ARCHIVER_BUILTIN:
                self._archive_builtin(parts, archive)
                packaged = True
            else:
                packaged = self._archive_external(parts, archive)

            if not packaged or not archive.is_file():
                return ExportResult.failed(
                    ExportErrorKind.PACKAGING_FAILURE,
                    "Failed to create 3MF archive"
                )

            os.replace(archive, output_path)

        return ExportResult.ok(output_path.stat().st_size)

    def _write_parts(self, root: Path, vertices: np.ndarray):
        """Write the three package members below ``root``."""
        (root / "_rels").mkdir()
        (root / "3D").mkdir()

        (root / "[Content_Types].xml").write_text(CONTENT_TYPES_XML, encoding="utf-8")
        (root / "_rels" / ".rels").write_text(RELS_XML, encoding="utf-8")
        (root / "3D" / "3dmodel.model").write_text(
            build_model_xml(vertices), encoding="utf-8"
        )

    def _archive_builtin(self, root: Path, output_path: Path):
        """Archive with zipfile."""
        with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as archive:
            for part in PACKAGE_PARTS:
                archive.write(root / part, arcname=part)

    def _archive_external(self, root: Path, output_path: Path) -> bool:
        """
        Archive with the external tool.

        Returns:
            True if the tool ran and exited with status 0
        """
        command: List[str] = self.archiver_command + [str(output_path), "."]

        if shutil.which(command[0]) is None:
            logger.warning("3MF archiver not found: %s", command[0])
            return False

        try:
            completed = subprocess.run(
                command,
                cwd=root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("3MF archiver timed out after %.0fs", self.timeout)
            return False

        if completed.returncode != 0:
            logger.warning(
                "3MF archiver exited with status %d: %s",
                completed.returncode,
                completed.stderr.decode(errors="replace").strip()
            )
            return False

        return True
