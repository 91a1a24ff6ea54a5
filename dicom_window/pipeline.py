"""
pipeline.py - Render DICOM files to display images, one file or a folder.

This is the caller side of the decode-and-window core: it reads files with
pydicom, runs accessor -> descriptor -> decode -> display buffer, and turns
every DecodeError into a failed result instead of letting it escape.  A bad
file never stops the batch and never affects the other files.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Optional

import matplotlib.pyplot as plt
import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from dicom_window.accessor import DatasetAccessor
from dicom_window.attributes import WindowingOffset
from dicom_window.config import CONFIG
from dicom_window.descriptor import build_descriptor
from dicom_window.display import RgbaBuffer, to_display_buffer
from dicom_window.errors import DecodeError
from dicom_window.image import TypedImage, decode_image

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class RenderResult:
    """Outcome of rendering one dataset: either image + buffer, or an error."""
    success: bool
    image: Optional[TypedImage] = None
    buffer: Optional[RgbaBuffer] = None
    error: Optional[str] = None


@dataclass
class ProcessingResult:
    """Summary of a single file's processing outcome."""
    filename: str
    success: bool
    error: Optional[str] = None
    output_path: Optional[str] = None
    duration_s: float = 0.0


@dataclass
class PipelineReport:
    """Aggregate report produced at the end of a batch run."""
    total_files: int = 0
    rendered: int = 0
    failed: int = 0
    elapsed_s: float = 0.0
    results: list[ProcessingResult] = field(default_factory=list)

    def summary(self) -> str:
        lines = [
            "=" * 50,
            "RENDER SUMMARY",
            "=" * 50,
            f"Total files found : {self.total_files}",
            f"Rendered          : {self.rendered}",
            f"Failed            : {self.failed}",
            f"Total time        : {self.elapsed_s:.2f}s",
        ]
        if self.failed > 0:
            lines.append("\nFailed files:")
            for r in self.results:
                if not r.success:
                    lines.append(f"  - {r.filename}: {r.error}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Single dataset / file
# ---------------------------------------------------------------------------

def render_dataset(ds: Dataset, offset: Optional[WindowingOffset] = None) -> RenderResult:
    """
    Decode and render a parsed dataset.

    Parameters
    ----------
    ds : Dataset
        Parsed pydicom dataset.
    offset : WindowingOffset, optional
        Interactive window adjustment; defaults to none.

    Returns
    -------
    RenderResult
        ``success=False`` with the error text when the dataset cannot be
        decoded or rendered.
    """
    try:
        descriptor = build_descriptor(DatasetAccessor(ds))
        image = decode_image(descriptor)
        buffer = to_display_buffer(image, offset)
    except DecodeError as exc:
        logger.debug("Decode failed: %s", exc)
        return RenderResult(success=False, error=str(exc))
    return RenderResult(success=True, image=image, buffer=buffer)


def render_file(path: str, offset: Optional[WindowingOffset] = None) -> RenderResult:
    """Read *path* with pydicom and render it (see :func:`render_dataset`)."""
    try:
        ds = pydicom.dcmread(path)
    except (InvalidDicomError, OSError) as exc:
        return RenderResult(success=False, error=f"could not read {path}: {exc}")
    return render_dataset(ds, offset)


def save_buffer(buffer: RgbaBuffer, output_path: str) -> None:
    """Write *buffer* as an image file; the format follows the extension."""
    plt.imsave(output_path, buffer.data)


# ---------------------------------------------------------------------------
# Folder
# ---------------------------------------------------------------------------

def render_folder(
    input_folder: Optional[str] = None,
    output_folder: Optional[str] = None,
    max_files: Optional[int] = None,
    offset: Optional[WindowingOffset] = None,
) -> PipelineReport:
    """
    Render every DICOM file in *input_folder* to an image in *output_folder*.

    Parameters
    ----------
    input_folder : str, optional
        Source directory.  Defaults to config value.
    output_folder : str, optional
        Destination directory.  Defaults to config value.
    max_files : int, optional
        Cap on the number of files to process.  None = process all.
    offset : WindowingOffset, optional
        Window adjustment applied to every grayscale image.

    Returns
    -------
    PipelineReport
        Summary of the batch run.
    """
    input_folder = input_folder or CONFIG["paths"]["input_folder"]
    output_folder = output_folder or CONFIG["paths"]["output_folder"]
    max_files = max_files if max_files is not None else CONFIG["pipeline"]["max_files"]
    extension = CONFIG["pipeline"]["output_format"]

    report = PipelineReport()
    batch_start = time.time()

    if not os.path.isdir(input_folder):
        logger.error("Input folder not found: %s", input_folder)
        return report

    os.makedirs(output_folder, exist_ok=True)

    files = sorted(
        f for f in os.listdir(input_folder)
        if not f.startswith(".") and os.path.isfile(os.path.join(input_folder, f))
    )
    if max_files is not None:
        files = files[:max_files]

    report.total_files = len(files)
    logger.info("Starting render: %d files to process.", report.total_files)

    for filename in files:
        file_start = time.time()
        result = ProcessingResult(filename=filename, success=False)

        try:
            rendered = render_file(os.path.join(input_folder, filename), offset)
            if rendered.success:
                stem = os.path.splitext(filename)[0]
                output_path = os.path.join(output_folder, f"{stem}.{extension}")
                save_buffer(rendered.buffer, output_path)
                result.success = True
                result.output_path = output_path
                report.rendered += 1
            else:
                result.error = rendered.error
                report.failed += 1
                logger.warning("Skipping %s: %s", filename, rendered.error)
        except Exception as exc:
            result.error = str(exc)
            report.failed += 1
            logger.exception("Error processing %s: %s", filename, exc)

        result.duration_s = time.time() - file_start
        report.results.append(result)

    report.elapsed_s = time.time() - batch_start
    logger.info(report.summary())
    return report
