"""
visualization.py - matplotlib helpers for rendered images.

All plot functions follow a consistent style and return the Figure so
callers can save or display it as needed.
"""

import logging

import matplotlib.pyplot as plt

from dicom_window.display import RgbaBuffer, to_display_buffer
from dicom_window.image import GrayScaleImage
from dicom_window.windowing import WINDOW_PRESETS, offset_for_preset

logger = logging.getLogger(__name__)

# Consistent figure style across all plots
plt.rcParams.update({"figure.dpi": 100, "axes.titlesize": 11})


def plot_display_buffer(buffer: RgbaBuffer, title: str = "Rendered image") -> plt.Figure:
    """
    Show an RGBA display buffer at its native orientation.

    Parameters
    ----------
    buffer : RgbaBuffer
        Output of :func:`dicom_window.display.to_display_buffer`.
    title : str
        Plot title.

    Returns
    -------
    plt.Figure
    """
    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(buffer.data)
    ax.set_title(f"{title}\n({buffer.columns}x{buffer.rows})")
    ax.axis("off")
    return fig


def plot_window_presets(image: GrayScaleImage) -> plt.Figure:
    """
    Show the same grayscale image through each standard window preset.

    Parameters
    ----------
    image : GrayScaleImage
        Decoded grayscale image.

    Returns
    -------
    plt.Figure
    """
    presets = list(WINDOW_PRESETS.keys())
    fig, axes = plt.subplots(1, len(presets), figsize=(4 * len(presets), 4))

    for ax, preset in zip(axes, presets):
        offset = offset_for_preset(image.voi_lut_module, preset)
        buffer = to_display_buffer(image, offset)
        center, width = WINDOW_PRESETS[preset]
        ax.imshow(buffer.data)
        ax.set_title(f"{preset.replace('_', ' ').title()}\n(C={center}, W={width})")
        ax.axis("off")

    fig.suptitle("Windowed Views (same image)", y=1.02)
    fig.tight_layout()
    return fig
