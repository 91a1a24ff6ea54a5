"""
run_full_pipeline.py - End-to-end rendering demonstration.

Generates synthetic DICOM data (if data/raw is empty), renders every file
to an 8-bit image, saves a window-preset comparison to reports/, and prints
a final summary.

Usage
-----
    python scripts/run_full_pipeline.py

To use your own data instead of generated samples, copy uncompressed DICOM
files into data/raw/ first.
"""

import logging
import os
import sys

# Ensure repo root is on sys.path regardless of launch directory
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

import matplotlib
matplotlib.use("Agg")  # non-interactive backend, works without a display

from dicom_window.attributes import WindowingOffset
from dicom_window.config import CONFIG
from dicom_window.pipeline import render_file, render_folder
from dicom_window.visualization import plot_display_buffer, plot_window_presets
from dicom_window.windowing import describe_window

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)-8s %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
INPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])
OUTPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["output_folder"])
REPORTS_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["reports_folder"])


def _ensure_sample_data() -> None:
    """Generate synthetic data if data/raw/ has no .dcm files."""
    os.makedirs(INPUT_FOLDER, exist_ok=True)
    dcm_files = [f for f in os.listdir(INPUT_FOLDER) if f.endswith(".dcm")]
    if dcm_files:
        logger.info("Found %d DICOM file(s) in %s, skipping generation.", len(dcm_files), INPUT_FOLDER)
        return

    logger.info("No DICOM files in %s, generating samples...", INPUT_FOLDER)
    from scripts.generate_sample_data import generate  # noqa: E402
    generate(INPUT_FOLDER)


def main() -> None:
    os.makedirs(REPORTS_FOLDER, exist_ok=True)

    # ── Step 1: Ensure sample data exists ──────────────────────────────────
    print("=" * 60)
    print("STEP 1: Prepare input data")
    print("=" * 60)
    _ensure_sample_data()
    dcm_files = sorted(f for f in os.listdir(INPUT_FOLDER) if f.endswith(".dcm"))
    print(f"  Input folder : {INPUT_FOLDER}")
    print(f"  Files found  : {len(dcm_files)}")
    print()

    # ── Step 2: Render the folder ──────────────────────────────────────────
    print("=" * 60)
    print("STEP 2: Decode and window every file")
    print("=" * 60)
    report = render_folder(input_folder=INPUT_FOLDER, output_folder=OUTPUT_FOLDER)
    print(report.summary())
    print()

    # ── Step 3: Simulate a windowing drag on the first grayscale image ─────
    print("=" * 60)
    print("STEP 3: Interactive windowing (offset only, image untouched)")
    print("=" * 60)
    grayscale = None
    for name in dcm_files:
        result = render_file(os.path.join(INPUT_FOLDER, name))
        if result.success and result.image.kind == "grayscale":
            grayscale = (name, result)
            break

    if grayscale is None:
        print("  No renderable grayscale image found.")
    else:
        name, rendered = grayscale
        image = rendered.image
        offset = WindowingOffset.default()
        for _ in range(3):
            offset = offset.add(center_delta=20.0, width_delta=-50.0)
            print(f"  {name}: window {describe_window(image.voi_lut_module, offset)}")
        print()

        # ── Step 4: Save visualisations ────────────────────────────────────
        print("=" * 60)
        print("STEP 4: Saving visualisations to reports/")
        print("=" * 60)
        fig = plot_display_buffer(rendered.buffer, title=name)
        path = os.path.join(REPORTS_FOLDER, "rendered.png")
        fig.savefig(path, dpi=100, bbox_inches="tight")
        print(f"  Saved: {path}")

        fig = plot_window_presets(image)
        path = os.path.join(REPORTS_FOLDER, "window_presets.png")
        fig.savefig(path, dpi=100, bbox_inches="tight")
        print(f"  Saved: {path}")
    print()

    # ── Done ───────────────────────────────────────────────────────────────
    print("=" * 60)
    print("ALL STAGES COMPLETED")
    print("=" * 60)
    print(f"  Rendered images → {OUTPUT_FOLDER}")
    print(f"  Visualisations  → {REPORTS_FOLDER}")
    print()


if __name__ == "__main__":
    main()
