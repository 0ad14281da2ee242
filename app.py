#!/usr/bin/env python3
"""
LithoMaker Web Interface

A simple Gradio-based web UI for turning photographs into lithophanes.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from lithomaker import ImageLoader, LithophaneGenerator, MeshConfig
from lithomaker.exporters import ExportFormat
from lithomaker.logging_utils import setup_logging


FORMAT_CHOICES = {
    "STL (Binary)": (ExportFormat.STL, ".stl"),
    "STL (ASCII)": (ExportFormat.STL_ASCII, ".stl"),
    "OBJ": (ExportFormat.OBJ, ".obj"),
    "3MF": (ExportFormat.THREEMF, ".3mf"),
}


def process_image(
    image,
    width: float,
    min_thickness: float,
    total_thickness: float,
    frame_border: float,
    stabilizers: bool,
    permanent_stabilizers: bool,
    hangers: int,
    max_size: int,
    flip: bool,
    export_format: str
):
    """
    Process an uploaded image and generate the lithophane.

    Returns preview path, stats text, and the download path.
    """
    if image is None:
        return None, "Please upload an image first.", None

    if not isinstance(image, np.ndarray):
        return None, "Invalid image format.", None

    config = MeshConfig(
        width=width,
        min_thickness=min_thickness,
        total_thickness=total_thickness,
        frame_border=frame_border,
        enable_stabilizers=stabilizers,
        permanent_stabilizers=permanent_stabilizers,
        enable_hangers=hangers > 0,
        hanger_count=max(int(hangers), 1),
    )

    problems = config.validate()
    if problems:
        return None, "**Invalid settings:**\n\n" + "\n".join(f"- {p}" for p in problems), None

    loader = ImageLoader(max_size=int(max_size), flip=flip)
    grid = loader.load_from_array(image)

    generator = LithophaneGenerator(config)
    generator.generate(grid)

    size_w, size_h = generator.dimensions

    stats_text = f"""## Lithophane Ready!

| Metric | Value |
|--------|-------|
| Input Size | {image.shape[1]} x {image.shape[0]} pixels |
| Mesh Grid | {grid.width} x {grid.height} samples |
| Model Size | {size_w:.1f} x {size_h:.1f} mm |
| Triangles | {generator.triangle_count:,} |

**Settings:** {min_thickness}-{total_thickness} mm thick, border {frame_border} mm
"""

    # Create temp directory for exports
    export_dir = tempfile.mkdtemp(prefix="lithophane_")

    # OBJ for the preview, Model3D reads it directly
    preview_path = str(Path(export_dir) / "preview.obj")
    preview = generator.export(preview_path, ExportFormat.OBJ)

    if not preview.success:
        stats_text += f"\n**Preview failed:** {preview.error}"
        preview_path = None

    fmt, suffix = FORMAT_CHOICES[export_format]
    download_path = str(Path(export_dir) / f"lithophane{suffix}")
    kwargs = {"archiver": "builtin"} if fmt == ExportFormat.THREEMF else {}
    result = generator.export(download_path, fmt, **kwargs)

    if not result.success:
        stats_text += f"\n**Export failed:** {result.error}"
        download_path = None

    return preview_path, stats_text, download_path


def create_demo_image(style: str):
    """Create a demo image for testing."""
    if not style:
        return None

    size = 128
    y, x = np.mgrid[0:size, 0:size]

    if style == "Gradient":
        image = (x * 255 / (size - 1)).astype(np.uint8)

    elif style == "Rings":
        dist = np.sqrt((x - size / 2) ** 2 + (y - size / 2) ** 2)
        image = ((np.sin(dist / 4.0) * 0.5 + 0.5) * 255).astype(np.uint8)

    else:  # Checker
        image = (((x // 16) + (y // 16)) % 2 * 255).astype(np.uint8)

    return np.stack([image, image, image], axis=-1)


# Build the Gradio interface
with gr.Blocks(title="LithoMaker") as app:

    gr.Markdown("""
    # LithoMaker
    ### Convert Photographs to Printable Lithophanes

    Upload a photo or try a demo, adjust the settings, and download your 3D model!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Image")

            image_input = gr.Image(
                label="Upload Image",
                type="numpy",
                image_mode="RGB"
            )

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=["Gradient", "Rings", "Checker"],
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            gr.Markdown("### Settings")

            width = gr.Slider(
                minimum=40,
                maximum=300,
                value=200,
                step=5,
                label="Width incl. frame (mm)"
            )

            min_thickness = gr.Slider(
                minimum=0.4,
                maximum=3.0,
                value=0.8,
                step=0.1,
                label="Minimum thickness (mm)"
            )

            total_thickness = gr.Slider(
                minimum=1.0,
                maximum=8.0,
                value=4.0,
                step=0.1,
                label="Total thickness (mm)"
            )

            frame_border = gr.Slider(
                minimum=0,
                maximum=15,
                value=3,
                step=0.5,
                label="Frame border (mm)"
            )

            with gr.Row():
                stabilizers = gr.Checkbox(value=True, label="Stabilizer feet")
                permanent = gr.Checkbox(value=False, label="Permanent feet")
                flip = gr.Checkbox(value=False, label="Flip vertically")

            hangers = gr.Slider(
                minimum=0,
                maximum=6,
                value=2,
                step=1,
                label="Hangers (0 = none)"
            )

            max_size = gr.Slider(
                minimum=100,
                maximum=2000,
                value=500,
                step=50,
                label="Max image size (pixels)"
            )

            export_format = gr.Dropdown(
                choices=list(FORMAT_CHOICES),
                value="STL (Binary)",
                label="Export Format"
            )

            generate_btn = gr.Button("Generate Lithophane", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### 3D Preview")
            gr.Markdown("*Click and drag to rotate, scroll to zoom*")

            model_preview = gr.Model3D(
                label="3D Model Preview",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Upload an image and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Download")

            file_output = gr.File(label="Lithophane")

            gr.Markdown("""
            ---
            **Tips:**
            - Print standing up, in white PLA, 100% infill
            - **Stabilizer feet** snap off after printing
            - **Max image size** trades detail for mesh size
            """)

    # Wire up events
    demo_btn.click(
        fn=create_demo_image,
        inputs=[demo_dropdown],
        outputs=[image_input]
    )

    generate_btn.click(
        fn=process_image,
        inputs=[
            image_input,
            width,
            min_thickness,
            total_thickness,
            frame_border,
            stabilizers,
            permanent,
            hangers,
            max_size,
            flip,
            export_format
        ],
        outputs=[model_preview, stats_output, file_output]
    )


if __name__ == "__main__":
    setup_logging(log_level="INFO")

    print("\n" + "="*60)
    print("LithoMaker Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
