"""
display.py - Turn a decoded image into an RGBA byte buffer for presentation.

Grayscale images go through rescale and the windowing LUT; RGB images are
already packed as RGBA and are only re-viewed as bytes.  Output is row-major,
top row first, 4 bytes per pixel, exactly ``columns x rows`` pixels.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from dicom_window.attributes import WindowingOffset
from dicom_window.image import GrayScaleImage, RgbImage, TypedImage
from dicom_window.windowing import apply_rescale, build_lut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RgbaBuffer:
    rows: int
    columns: int
    data: np.ndarray = field(repr=False, compare=False)  # uint8 (rows, columns, 4)

    def tobytes(self) -> bytes:
        return self.data.tobytes()


def to_display_buffer(
    image: TypedImage,
    offset: Optional[WindowingOffset] = None,
) -> RgbaBuffer:
    """
    Render *image* under the interactive windowing *offset*.

    Parameters
    ----------
    image : GrayScaleImage or RgbImage
        A decoded image.  Never modified.
    offset : WindowingOffset, optional
        Added to the stored window of grayscale images.  Ignored for RGB.
        Defaults to no offset.

    Returns
    -------
    RgbaBuffer
    """
    offset = offset or WindowingOffset.default()
    if image.kind == "grayscale":
        return _grayscale_buffer(image, offset)
    if image.kind == "rgb":
        return _rgb_buffer(image)
    raise TypeError(f"Unknown image kind: {image.kind!r}")


def _grayscale_buffer(image: GrayScaleImage, offset: WindowingOffset) -> RgbaBuffer:
    lut = build_lut(image.voi_lut_module, offset)
    gray = lut(apply_rescale(image.pixel_data, image.rescale))

    rgba = np.empty((image.rows, image.columns, 4), dtype=np.uint8)
    rgba[..., 0] = gray
    rgba[..., 1] = gray
    rgba[..., 2] = gray
    rgba[..., 3] = 255
    return RgbaBuffer(rows=image.rows, columns=image.columns, data=rgba)


def _rgb_buffer(image: RgbImage) -> RgbaBuffer:
    # Packed little endian: byte 0 is R, byte 3 is alpha
    packed = np.ascontiguousarray(image.pixel_data, dtype="<u4")
    rgba = packed.view(np.uint8).reshape(image.rows, image.columns, 4)
    return RgbaBuffer(rows=image.rows, columns=image.columns, data=rgba)
