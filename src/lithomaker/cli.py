"""
Command-Line Interface for LithoMaker

Usage:
    lithomaker photo.jpg -o lithophane.stl
    lithomaker photo.jpg --width 150 --frame-border 5 -o lithophane.3mf
    lithomaker photo.png --no-stabilizers --hangers 3 -f obj -o lithophane

"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import MeshConfig
from .exporters import ExportFormat, format_from_path
from .generator import LithophaneGenerator
from .ingestion import ImageLoader
from .logging_utils import setup_logging

logger = logging.getLogger(__name__)

# File suffix written for each format
FORMAT_SUFFIXES = {
    ExportFormat.STL: ".stl",
    ExportFormat.STL_ASCII: ".stl",
    ExportFormat.OBJ: ".obj",
    ExportFormat.THREEMF: ".3mf",
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    defaults = MeshConfig()

    parser = argparse.ArgumentParser(
        prog="lithomaker",
        description="LithoMaker - Convert photographs to printable lithophanes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lithomaker photo.jpg -o lithophane.stl
      Binary STL, 200 mm wide, with feet and two hangers

  lithomaker photo.jpg --width 120 --total-thickness 3.2 -o small.3mf
      Smaller, thinner lithophane as 3MF

  lithomaker photo.png --no-stabilizers --no-hangers -f stl_ascii -o plain
      Plain framed panel as ASCII STL

Formats:
  stl        - Binary STL (default)
  stl_ascii  - ASCII STL
  obj        - Wavefront OBJ
  3mf        - 3D Manufacturing Format
        """
    )

    # Input / output
    parser.add_argument(
        "input",
        help="Input image (PNG, JPEG, WEBP, TIFF, BMP)"
    )

    parser.add_argument(
        "-o", "--output",
        help="Output file path (suffix picks the format unless --format is given)"
    )

    parser.add_argument(
        "-f", "--format",
        choices=[f.value for f in ExportFormat],
        help="Output format (default: from output suffix, else stl)"
    )

    # Geometry
    parser.add_argument(
        "--width",
        type=float,
        default=defaults.width,
        help=f"Total width in mm including frame (default: {defaults.width})"
    )

    parser.add_argument(
        "--min-thickness",
        type=float,
        default=defaults.min_thickness,
        help=f"Thickness of the brightest areas in mm (default: {defaults.min_thickness})"
    )

    parser.add_argument(
        "--total-thickness",
        type=float,
        default=defaults.total_thickness,
        help=f"Thickness of the darkest areas in mm (default: {defaults.total_thickness})"
    )

    parser.add_argument(
        "--frame-border",
        type=float,
        default=defaults.frame_border,
        help=f"Frame border width in mm (default: {defaults.frame_border})"
    )

    parser.add_argument(
        "--frame-slope",
        type=float,
        default=defaults.frame_slope_factor,
        help=f"Frame bevel factor, 0-1 (default: {defaults.frame_slope_factor})"
    )

    # Stabilizers
    parser.add_argument(
        "--no-stabilizers",
        action="store_true",
        help="Don't add breakaway support feet"
    )

    parser.add_argument(
        "--permanent-stabilizers",
        action="store_true",
        help="Attach the feet solidly instead of with a breakaway neck"
    )

    parser.add_argument(
        "--stabilizer-threshold",
        type=float,
        default=defaults.stabilizer_threshold,
        help=f"Only add feet above this height in mm (default: {defaults.stabilizer_threshold})"
    )

    parser.add_argument(
        "--stabilizer-height",
        type=float,
        default=defaults.stabilizer_height_factor,
        help=f"Foot height as fraction of model height (default: {defaults.stabilizer_height_factor})"
    )

    # Hangers
    parser.add_argument(
        "--no-hangers",
        action="store_true",
        help="Don't add hanging loops"
    )

    parser.add_argument(
        "--hangers",
        type=int,
        default=defaults.hanger_count,
        help=f"Number of hanging loops (default: {defaults.hanger_count})"
    )

    # Image preprocessing
    parser.add_argument(
        "--max-size",
        type=int,
        default=0,
        help="Shrink the image so its longest side fits this many pixels (default: keep)"
    )

    parser.add_argument(
        "--flip",
        action="store_true",
        help="Mirror the image vertically"
    )

    # Misc
    parser.add_argument(
        "--workers",
        type=int,
        help="Tessellation threads (default: CPU count)"
    )

    parser.add_argument(
        "--log-file",
        help="Also write the log to this file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def config_from_args(args) -> MeshConfig:
    """Build a MeshConfig from parsed arguments."""
    return MeshConfig(
        min_thickness=args.min_thickness,
        total_thickness=args.total_thickness,
        frame_border=args.frame_border,
        width=args.width,
        frame_slope_factor=args.frame_slope,
        enable_stabilizers=not args.no_stabilizers,
        permanent_stabilizers=args.permanent_stabilizers,
        stabilizer_threshold=args.stabilizer_threshold,
        stabilizer_height_factor=args.stabilizer_height,
        enable_hangers=not args.no_hangers,
        hanger_count=args.hangers,
    )


def resolve_output(args) -> tuple:
    """Work out the output path and format."""
    input_path = Path(args.input)

    if args.format:
        fmt = ExportFormat(args.format)
    elif args.output:
        fmt = format_from_path(args.output)
    else:
        fmt = ExportFormat.STL

    if args.output:
        output_path = Path(args.output)
        if not output_path.suffix:
            output_path = output_path.with_suffix(FORMAT_SUFFIXES[fmt])
    else:
        output_path = input_path.with_suffix(FORMAT_SUFFIXES[fmt])

    return output_path, fmt


def process_single(args) -> int:
    """Convert one image."""
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    config = config_from_args(args)
    for problem in config.validate():
        print(f"Warning: {problem}", file=sys.stderr)

    output_path, fmt = resolve_output(args)
    start_time = time.time()

    try:
        loader = ImageLoader(max_size=args.max_size, flip=args.flip)

        if args.verbose:
            print(f"Loading: {input_path}")

        grid = loader.load(input_path)

        if loader.has_quality_warning:
            print(
                "Warning: JPEG compression artifacts detected; "
                "they may show up in the print",
                file=sys.stderr
            )

        generator = LithophaneGenerator(config, workers=args.workers)

        def report(current, total):
            if args.verbose:
                print(f"  {current * 100 // total}%")

        if args.verbose:
            print(f"Generating mesh for {grid.width}x{grid.height} image...")

        generator.generate(grid, report)

        result = generator.export(output_path, fmt)

    except (OSError, ValueError) as e:
        logger.debug("Conversion of %s failed", input_path, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"Error: Export failed: {result.error}", file=sys.stderr)
        return 1

    elapsed = time.time() - start_time
    width, height = generator.dimensions

    if args.verbose:
        print("\nMesh Statistics:")
        print(f"  Image: {grid.width} x {grid.height} pixels")
        print(f"  Size: {width:.1f} x {height:.1f} mm")
        print(f"  Triangles: {generator.triangle_count:,}")
        print(f"  File size: {result.bytes_written // 1024} KB")
        print(f"\nCompleted in {elapsed:.2f}s")

    print(f"Exported: {output_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(
        log_level="INFO" if args.verbose else "WARNING",
        log_file=args.log_file,
    )

    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
