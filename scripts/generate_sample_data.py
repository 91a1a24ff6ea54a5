"""
generate_sample_data.py - Create synthetic DICOM files for an end-to-end demo.

Writes a handful of small grayscale and RGB DICOM files to data/raw/ so the
render pipeline can run without real patient data.  One file deliberately
uses MONOCHROME1 so the report shows a rejected image.

Usage
-----
    python scripts/generate_sample_data.py

After running, try:
    python -c "from dicom_window.pipeline import render_folder; print(render_folder().summary())"
"""

import os
import sys

import numpy as np
import pydicom
from pydicom.dataset import FileDataset
from pydicom.uid import ExplicitVRLittleEndian

# Make sure repo root is on the path when run as a script
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicom_window.config import CONFIG  # noqa: E402, import after path fix

OUTPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["input_folder"])


# ---------------------------------------------------------------------------
# Synthetic scan profiles
# ---------------------------------------------------------------------------
_GRAYSCALE_PROFILES = [
    # (filename_stem, mean_value, std_dev, photometric, note)
    ("ct_01", 1050, 180, "MONOCHROME2", "head CT"),
    ("ct_02", 1020, 175, "MONOCHROME2", "head CT"),
    ("ct_03", 2200, 600, "MONOCHROME2", "high-contrast bone phantom"),
    ("cr_04", 1500, 300, "MONOCHROME1", "inverted radiograph (rejected)"),
]


def _file_meta() -> pydicom.Dataset:
    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.2")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
    return file_meta


def _make_grayscale(
    path: str,
    mean_val: float,
    std_val: float,
    photometric: str,
    size: int = 128,
    seed: int = 42,
) -> None:
    """
    Write one synthetic 16-bit grayscale DICOM file.

    Pixel values are drawn from a Normal distribution with a bright square
    added to simulate bone.  RescaleIntercept=-1024 brings the stored
    integers into HU range; the stored window is a soft-tissue window.
    """
    rng = np.random.default_rng(seed)
    pixels = rng.normal(mean_val, std_val, size=(size, size))
    pixels = pixels.clip(0, 4095).astype(np.uint16)
    sq = size // 4
    pixels[sq : sq * 2, sq : sq * 2] = min(int(mean_val * 1.8), 4095)

    ds = FileDataset(path, {}, file_meta=_file_meta(), preamble=b"\0" * 128)
    ds.Modality = "CT"
    ds.PatientID = "SYNTH"
    ds.RescaleSlope = 1.0
    ds.RescaleIntercept = -1024.0
    ds.WindowCenter = 40.0
    ds.WindowWidth = 400.0
    ds.PixelSpacing = [0.5, 0.5]

    ds.Rows = size
    ds.Columns = size
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = photometric
    ds.PixelRepresentation = 0
    ds.BitsAllocated = 16
    ds.BitsStored = 12
    ds.HighBit = 11
    ds.PixelData = pixels.tobytes()
    ds.save_as(path)


def _make_rgb(path: str, size: int = 96) -> None:
    """Write one synthetic 8-bit interleaved RGB DICOM file (colour gradient)."""
    ramp = np.linspace(0, 255, size, dtype=np.float64)
    rgb = np.zeros((size, size, 3), dtype=np.uint8)
    rgb[..., 0] = ramp[np.newaxis, :]
    rgb[..., 1] = ramp[:, np.newaxis]
    rgb[..., 2] = 128

    ds = FileDataset(path, {}, file_meta=_file_meta(), preamble=b"\0" * 128)
    ds.Modality = "OT"
    ds.Rows = size
    ds.Columns = size
    ds.SamplesPerPixel = 3
    ds.PhotometricInterpretation = "RGB"
    ds.PlanarConfiguration = 0
    ds.PixelRepresentation = 0
    ds.BitsAllocated = 8
    ds.BitsStored = 8
    ds.HighBit = 7
    ds.PixelData = rgb.tobytes()
    ds.save_as(path)


def generate(output_folder: str = OUTPUT_FOLDER) -> None:
    """Generate all synthetic DICOM files into *output_folder*."""
    os.makedirs(output_folder, exist_ok=True)
    total = len(_GRAYSCALE_PROFILES) + 1

    print(f"Writing {total} synthetic DICOM files to: {output_folder}")
    print("-" * 60)

    for i, (stem, mean_val, std_val, photometric, note) in enumerate(_GRAYSCALE_PROFILES, start=1):
        filename = f"{stem}.dcm"
        _make_grayscale(
            os.path.join(output_folder, filename),
            mean_val=mean_val,
            std_val=std_val,
            photometric=photometric,
            seed=42 + i,
        )
        print(f"  [{i:02d}/{total}] {filename}  ({note})")

    _make_rgb(os.path.join(output_folder, "photo_05.dcm"))
    print(f"  [{total:02d}/{total}] photo_05.dcm  (RGB gradient)")

    print("-" * 60)
    print("Done.  Render them with:")
    print("  python scripts/run_full_pipeline.py")


if __name__ == "__main__":
    generate()
