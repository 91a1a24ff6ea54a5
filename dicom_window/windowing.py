"""
windowing.py - Rescale and linear VOI LUT (window/level) to 8-bit display.

WHY THIS MATTERS
----------------
Stored pixel values are integers; the Modality rescale turns them into a
meaningful scale (Hounsfield Units for CT):

    value = stored * RescaleSlope + RescaleIntercept

A display has 256 grey levels.  The VOI LUT *window* picks the range of
interest: values below ``center - width/2`` are black, values above
``center + width/2`` are white, and everything in between is spread
linearly across 0-255.  Dragging the window in the viewer only changes a
WindowingOffset that is added to the stored window on every render.

References
----------
- DICOM PS3.3 C.11.2.1.2 Window Center and Window Width
- Radiopaedia HU reference: https://radiopaedia.org/articles/hounsfield-unit
"""

import logging
import math
from typing import Union

import numpy as np

from dicom_window.attributes import (
    Rescale,
    VoiLutFunction,
    VoiLutModule,
    VoiLutWindow,
    WindowingOffset,
)
from dicom_window.config import CONFIG
from dicom_window.errors import InvalidValueError, UnsupportedFeatureError

logger = logging.getLogger(__name__)

ArrayOrScalar = Union[np.ndarray, float, int]

# ---------------------------------------------------------------------------
# Window presets (centre, width) commonly used in radiology
# ---------------------------------------------------------------------------
WINDOW_PRESETS: dict[str, tuple[float, float]] = {
    "brain": (40.0, 80.0),
    "bone": (400.0, 1800.0),
    "lung": (-600.0, 1500.0),
    "soft_tissue": (50.0, 400.0),
}


def apply_rescale(pixel_array: ArrayOrScalar, rescale: Rescale) -> ArrayOrScalar:
    """
    Convert raw stored pixel values to rescaled (e.g. HU) values.

    Parameters
    ----------
    pixel_array : np.ndarray or number
        Raw stored values.
    rescale : Rescale
        Slope and intercept from the Modality LUT module.

    Returns
    -------
    np.ndarray or float
        Float64 values, same shape as *pixel_array*.

    Raises
    ------
    InvalidValueError
        The slope or intercept is NaN or infinite.
    """
    if not (math.isfinite(rescale.slope) and math.isfinite(rescale.intercept)):
        raise InvalidValueError(f"rescale {rescale.slope}, {rescale.intercept} is not finite")
    return np.asarray(pixel_array, dtype=np.float64) * rescale.slope + rescale.intercept


def effective_window(module: VoiLutModule, offset: WindowingOffset) -> VoiLutWindow:
    """The stored window moved by the interactive *offset* (no clamping)."""
    return VoiLutWindow(
        center=module.window.center + offset.center_offset,
        width=module.window.width + offset.width_offset,
    )


class LinearLut:
    """
    Linear VOI LUT mapping rescaled values to uint8 grey levels.

    Called with a scalar it returns an ``int``; called with an array it
    returns a uint8 array of the same shape.
    """

    def __init__(self, center: float, width: float):
        self.center = center
        self.width = width
        self.lower = center - width / 2.0
        self.upper = center + width / 2.0
        self.slope = 255.0 / width
        self.intercept = 127.5 - center * self.slope

    def __call__(self, values: ArrayOrScalar) -> ArrayOrScalar:
        v = np.asarray(values, dtype=np.float64)
        # Round half up, then keep inside the display range
        inside = np.clip(np.floor(self.slope * v + self.intercept + 0.5), 0, 255)
        out = np.where(v < self.lower, 0, np.where(v > self.upper, 255, inside)).astype(np.uint8)
        if out.ndim == 0:
            return int(out)
        return out

    def __repr__(self) -> str:
        return f"LinearLut(center={self.center!r}, width={self.width!r})"


def build_lut(module: VoiLutModule, offset: WindowingOffset) -> LinearLut:
    """
    Build the display LUT for *module* shifted by *offset*.

    The effective width is clamped to ``windowing.min_width`` (1.0 unless
    configured), so a large negative width offset narrows the window to a
    hard threshold instead of dividing by zero.

    Raises
    ------
    UnsupportedFeatureError
        The module's VOI LUT function is not LINEAR.
    InvalidValueError
        The effective center or width is NaN or infinite.
    """
    if module.function is not VoiLutFunction.LINEAR:
        raise UnsupportedFeatureError(f"VOI LUT function {module.function.value}")

    window = effective_window(module, offset)
    if not (math.isfinite(window.center) and math.isfinite(window.width)):
        raise InvalidValueError(f"window [{window.center}, {window.width}] is not finite")
    min_width = float(CONFIG["windowing"]["min_width"])
    width = window.width
    if width < min_width:
        logger.debug("Clamping window width %.3f to %.3f", width, min_width)
        width = min_width

    logger.debug("Applying window: centre=%.1f, width=%.1f", window.center, width)
    return LinearLut(center=window.center, width=width)


def offset_for_preset(module: VoiLutModule, preset: str) -> WindowingOffset:
    """
    Return the offset that moves *module*'s stored window onto a named preset.

    Parameters
    ----------
    module : VoiLutModule
        The image's stored VOI LUT module.
    preset : str
        One of "brain", "bone", "lung", "soft_tissue".

    Returns
    -------
    WindowingOffset
    """
    if preset not in WINDOW_PRESETS:
        raise ValueError(
            f"Unknown preset '{preset}'. "
            f"Choose from: {list(WINDOW_PRESETS.keys())}"
        )
    center, width = WINDOW_PRESETS[preset]
    return WindowingOffset(
        center_offset=center - module.window.center,
        width_offset=width - module.window.width,
    )


def describe_window(module: VoiLutModule, offset: WindowingOffset) -> str:
    """Short "[center, width]" label of the effective window for info panels."""
    window = effective_window(module, offset)
    return f"[{window.center:.0f}, {window.width:.0f}]"
