"""
image.py - Decode an ImageDescriptor into a render-ready typed image.

A decoded image is exactly one of two shapes:

    GrayScaleImage   one sample per pixel, MONOCHROME2, integer pixel array
                     plus the VOI LUT window and rescale needed to display it
    RgbImage         three interleaved 8-bit samples per pixel, packed into
                     one little-endian uint32 per pixel (R in the low byte,
                     alpha forced to 0xFF)

Callers branch on ``image.kind`` and must handle both.

Only uncompressed transfer syntaxes are decoded; the pixel bytes are
reinterpreted in place as a numpy array (no per-pixel conversion) using the
byte order declared by the transfer syntax.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

import numpy as np

from dicom_window.attributes import (
    Compression,
    Endianness,
    PhotometricInterpretation,
    PixelDataStorage,
    PixelRepresentation,
    PixelSpacing,
    PlanarConfiguration,
    Rescale,
    VoiLutFunction,
    VoiLutModule,
    VoiLutWindow,
)
from dicom_window.config import CONFIG
from dicom_window.descriptor import ImageDescriptor
from dicom_window.errors import (
    InvalidValueError,
    UnsupportedBitDepthError,
    UnsupportedCompressionError,
    UnsupportedFeatureError,
    UnsupportedPixelFormatError,
)

logger = logging.getLogger(__name__)

# (pixel representation, bits allocated) -> numpy dtype
_GRAYSCALE_DTYPES: dict[tuple[PixelRepresentation, int], str] = {
    (PixelRepresentation.UNSIGNED, 8): "u1",
    (PixelRepresentation.UNSIGNED, 16): "u2",
    (PixelRepresentation.UNSIGNED, 32): "u4",
    (PixelRepresentation.SIGNED, 8): "i1",
    (PixelRepresentation.SIGNED, 16): "i2",
    (PixelRepresentation.SIGNED, 32): "i4",
}


@dataclass(frozen=True)
class GrayScaleImage:
    rows: int
    columns: int
    voi_lut_module: VoiLutModule
    rescale: Rescale
    pixel_data: np.ndarray = field(repr=False, compare=False)  # (rows, columns) int
    pixel_spacing: Optional[PixelSpacing] = None
    photometric_interpretation: PhotometricInterpretation = PhotometricInterpretation.MONOCHROME2
    kind: Literal["grayscale"] = "grayscale"


@dataclass(frozen=True)
class RgbImage:
    rows: int
    columns: int
    pixel_data: np.ndarray = field(repr=False, compare=False)  # (rows, columns) uint32 RGBA
    pixel_spacing: Optional[PixelSpacing] = None
    kind: Literal["rgb"] = "rgb"


TypedImage = Union[GrayScaleImage, RgbImage]


def decode_image(descriptor: ImageDescriptor) -> TypedImage:
    """
    Classify *descriptor* and reinterpret its pixel bytes.

    Parameters
    ----------
    descriptor : ImageDescriptor
        Output of :func:`dicom_window.descriptor.build_descriptor`.

    Returns
    -------
    GrayScaleImage or RgbImage

    Raises
    ------
    UnsupportedCompressionError
        The transfer syntax implies compressed pixel data.
    UnsupportedPixelFormatError
        Neither (1 sample, MONOCHROME1/2) nor (3 samples, RGB).
    UnsupportedBitDepthError, UnsupportedFeatureError, InvalidValueError
        The bit layout or a module attribute cannot be rendered.
    """
    syntax = descriptor.effective_transfer_syntax
    if syntax.compression is not Compression.NONE:
        raise UnsupportedCompressionError(syntax.compression.value)

    photometric = descriptor.photometric_interpretation
    if descriptor.samples_per_pixel == 1 and photometric in (
        PhotometricInterpretation.MONOCHROME1,
        PhotometricInterpretation.MONOCHROME2,
    ):
        return _decode_grayscale(descriptor)
    if descriptor.samples_per_pixel == 3 and photometric is PhotometricInterpretation.RGB:
        return _decode_rgb(descriptor)

    raise UnsupportedPixelFormatError(
        f"{descriptor.samples_per_pixel} sample(s) per pixel with {photometric.value}"
    )


def _parse_spacing(raw: Optional[str]) -> Optional[PixelSpacing]:
    return PixelSpacing.from_string(raw) if raw is not None else None


def _decode_grayscale(descriptor: ImageDescriptor) -> GrayScaleImage:
    if descriptor.high_bit + 1 != descriptor.bits_stored:
        raise UnsupportedBitDepthError(
            f"high bit {descriptor.high_bit} with {descriptor.bits_stored} bits stored"
        )
    if descriptor.pixel_data_storage is PixelDataStorage.OW and descriptor.bits_allocated != 16:
        raise InvalidValueError(
            f"OW pixel data with {descriptor.bits_allocated} bits allocated"
        )
    if descriptor.photometric_interpretation is PhotometricInterpretation.MONOCHROME1:
        # Inverted grayscale is rejected rather than guessed at
        raise UnsupportedFeatureError("MONOCHROME1")

    cfg = CONFIG["windowing"]
    window = VoiLutWindow(
        center=descriptor.window_center if descriptor.window_center is not None else cfg["default_center"],
        width=descriptor.window_width if descriptor.window_width is not None else cfg["default_width"],
    )
    function = descriptor.voi_lut_function or VoiLutFunction.default()
    if function is not VoiLutFunction.LINEAR:
        raise UnsupportedFeatureError(f"VOI LUT function {function.value}")

    rescale = Rescale(
        slope=descriptor.rescale_slope if descriptor.rescale_slope is not None else 1.0,
        intercept=descriptor.rescale_intercept if descriptor.rescale_intercept is not None else 0.0,
    )
    for name, value in (
        ("window center", window.center),
        ("window width", window.width),
        ("rescale slope", rescale.slope),
        ("rescale intercept", rescale.intercept),
    ):
        if not math.isfinite(value):
            raise InvalidValueError(f"{name} is not finite: {value!r}")
    spacing = _parse_spacing(descriptor.pixel_spacing)

    key = (descriptor.pixel_representation, descriptor.bits_allocated)
    if key not in _GRAYSCALE_DTYPES:
        raise UnsupportedBitDepthError(
            f"{descriptor.bits_allocated} bits allocated, "
            f"{descriptor.pixel_representation.name.lower()}"
        )
    dtype = np.dtype(_GRAYSCALE_DTYPES[key])
    if descriptor.effective_transfer_syntax.endianness is Endianness.BIG:
        dtype = dtype.newbyteorder(">")
    else:
        dtype = dtype.newbyteorder("<")

    pixels = _reinterpret(descriptor.pixel_data, dtype, descriptor.rows, descriptor.columns)
    logger.debug(
        "Decoded grayscale %dx%d as %s, window=(%s, %s)",
        descriptor.rows, descriptor.columns, dtype, window.center, window.width,
    )
    return GrayScaleImage(
        rows=descriptor.rows,
        columns=descriptor.columns,
        voi_lut_module=VoiLutModule(window=window, function=function),
        rescale=rescale,
        pixel_data=pixels,
        pixel_spacing=spacing,
        photometric_interpretation=descriptor.photometric_interpretation,
    )


def _decode_rgb(descriptor: ImageDescriptor) -> RgbImage:
    layout = (descriptor.bits_allocated, descriptor.bits_stored, descriptor.high_bit)
    if layout != (8, 8, 7):
        raise UnsupportedBitDepthError(
            "RGB needs 8 bits allocated/stored with high bit 7, got %d/%d/%d" % layout
        )
    if descriptor.planar_configuration is PlanarConfiguration.SEPARATED:
        raise UnsupportedFeatureError("separated (planar) RGB")
    if descriptor.pixel_representation is PixelRepresentation.SIGNED:
        raise UnsupportedFeatureError("signed RGB samples")

    spacing = _parse_spacing(descriptor.pixel_spacing)

    samples = _reinterpret(descriptor.pixel_data, np.dtype("u1"), descriptor.rows, descriptor.columns * 3)
    samples = samples.reshape(descriptor.rows, descriptor.columns, 3).astype(np.uint32)
    packed = (
        np.uint32(0xFF000000)
        | (samples[..., 2] << np.uint32(16))
        | (samples[..., 1] << np.uint32(8))
        | samples[..., 0]
    )
    logger.debug("Decoded RGB %dx%d", descriptor.rows, descriptor.columns)
    return RgbImage(
        rows=descriptor.rows,
        columns=descriptor.columns,
        pixel_data=packed.astype(np.uint32),
        pixel_spacing=spacing,
    )


def _reinterpret(data: bytes, dtype: np.dtype, rows: int, width: int) -> np.ndarray:
    """
    View the first ``rows * width`` elements of *data* as a (rows, width) array.

    Trailing bytes (odd-length padding, further frames) are ignored; too few
    bytes is an error.
    """
    count = rows * width
    needed = count * dtype.itemsize
    if len(data) < needed:
        raise InvalidValueError(
            f"pixel data holds {len(data)} bytes, {needed} needed for {count} samples"
        )
    return np.frombuffer(data, dtype=dtype, count=count).reshape(rows, width)
