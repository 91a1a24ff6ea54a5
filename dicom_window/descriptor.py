"""
descriptor.py - Build a validated ImageDescriptor from a DICOM accessor.

This is the boundary where "maybe absent, maybe malformed" header values
become one flat, typed record.  Required Image Pixel module attributes must
be present; genuinely optional ones (window, rescale, spacing) pass through
as ``None`` and are defaulted later by the decoder.

The Pixel Data bytes are copied out of the source buffer here, so the
descriptor (and every image decoded from it) no longer depends on the
dataset it was read from.

References
----------
- DICOM PS3.3 C.7.6.3 Image Pixel Module
- DICOM PS3.3 C.11.1 Modality LUT Module (Rescale Slope / Intercept)
- DICOM PS3.3 C.11.2 VOI LUT Module
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from pydicom.tag import Tag

from dicom_window.attributes import (
    PhotometricInterpretation,
    PixelDataStorage,
    PixelRepresentation,
    PlanarConfiguration,
    TransferSyntax,
    VoiLutFunction,
)
from dicom_window.errors import (
    InvalidValueError,
    MissingAttributeError,
    UnsupportedFeatureError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tags read by the builder
# ---------------------------------------------------------------------------
TRANSFER_SYNTAX_UID = Tag(0x0002, 0x0010)

MODALITY = Tag(0x0008, 0x0060)
STUDY_DATE = Tag(0x0008, 0x0020)
SERIES_DATE = Tag(0x0008, 0x0021)
SERIES_DESCRIPTION = Tag(0x0008, 0x103E)
PATIENT_NAME = Tag(0x0010, 0x0010)
PATIENT_ID = Tag(0x0010, 0x0020)
PATIENT_AGE = Tag(0x0010, 0x1010)
STUDY_INSTANCE_UID = Tag(0x0020, 0x000D)
SERIES_INSTANCE_UID = Tag(0x0020, 0x000E)
STUDY_ID = Tag(0x0020, 0x0010)
SERIES_NUMBER = Tag(0x0020, 0x0011)
ACQUISITION_NUMBER = Tag(0x0020, 0x0012)
INSTANCE_NUMBER = Tag(0x0020, 0x0013)

SAMPLES_PER_PIXEL = Tag(0x0028, 0x0002)
PHOTOMETRIC_INTERPRETATION = Tag(0x0028, 0x0004)
PLANAR_CONFIGURATION = Tag(0x0028, 0x0006)
ROWS = Tag(0x0028, 0x0010)
COLUMNS = Tag(0x0028, 0x0011)
PIXEL_SPACING = Tag(0x0028, 0x0030)
BITS_ALLOCATED = Tag(0x0028, 0x0100)
BITS_STORED = Tag(0x0028, 0x0101)
HIGH_BIT = Tag(0x0028, 0x0102)
PIXEL_REPRESENTATION = Tag(0x0028, 0x0103)
WINDOW_CENTER = Tag(0x0028, 0x1050)
WINDOW_WIDTH = Tag(0x0028, 0x1051)
RESCALE_INTERCEPT = Tag(0x0028, 0x1052)
RESCALE_SLOPE = Tag(0x0028, 0x1053)
VOI_LUT_FUNCTION = Tag(0x0028, 0x1056)
VOI_LUT_SEQUENCE = Tag(0x0028, 0x3010)
PIXEL_DATA = Tag(0x7FE0, 0x0010)

# (descriptor field, tag) for the free-text identifying attributes
_METADATA_TAGS: list[tuple[str, Any]] = [
    ("modality", MODALITY),
    ("patient_id", PATIENT_ID),
    ("patient_name", PATIENT_NAME),
    ("patient_age", PATIENT_AGE),
    ("study_instance_uid", STUDY_INSTANCE_UID),
    ("study_id", STUDY_ID),
    ("study_date", STUDY_DATE),
    ("series_instance_uid", SERIES_INSTANCE_UID),
    ("series_description", SERIES_DESCRIPTION),
    ("series_date", SERIES_DATE),
    ("series_number", SERIES_NUMBER),
    ("acquisition_number", ACQUISITION_NUMBER),
    ("instance_number", INSTANCE_NUMBER),
]


@dataclass(frozen=True)
class ImageDescriptor:
    """Validated, flat metadata plus an owned copy of one frame's pixel bytes."""

    rows: int
    columns: int
    samples_per_pixel: int
    photometric_interpretation: PhotometricInterpretation
    bits_allocated: int
    bits_stored: int
    high_bit: int
    pixel_representation: PixelRepresentation
    pixel_data: bytes = field(repr=False)
    pixel_data_storage: PixelDataStorage = PixelDataStorage.OB
    transfer_syntax: Optional[TransferSyntax] = None
    planar_configuration: PlanarConfiguration = PlanarConfiguration.INTERLACED

    window_center: Optional[float] = None
    window_width: Optional[float] = None
    voi_lut_function: Optional[VoiLutFunction] = None
    rescale_intercept: Optional[float] = None
    rescale_slope: Optional[float] = None
    pixel_spacing: Optional[str] = None

    modality: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_age: Optional[str] = None
    study_instance_uid: Optional[str] = None
    study_id: Optional[str] = None
    study_date: Optional[str] = None
    series_instance_uid: Optional[str] = None
    series_description: Optional[str] = None
    series_date: Optional[str] = None
    series_number: Optional[str] = None
    acquisition_number: Optional[str] = None
    instance_number: Optional[str] = None

    @property
    def effective_transfer_syntax(self) -> TransferSyntax:
        """The declared transfer syntax, or uncompressed little endian."""
        return self.transfer_syntax or TransferSyntax.default()


def _require(value: Optional[Any], name: str) -> Any:
    if value is None:
        raise MissingAttributeError(name)
    return value


def build_descriptor(accessor) -> ImageDescriptor:
    """
    Extract and validate the imaging attributes exposed by *accessor*.

    Parameters
    ----------
    accessor : DatasetAccessor
        Or any object with the same typed getters.

    Returns
    -------
    ImageDescriptor

    Raises
    ------
    MissingAttributeError
        A required Image Pixel module attribute (or Pixel Data) is absent.
    InvalidValueError
        A present attribute holds an unrecognised code or malformed value.
    UnsupportedTransferSyntaxError
        The Transfer Syntax UID is not in the known table.
    UnsupportedFeatureError
        The dataset carries a VOI LUT Sequence.
    """
    raw_syntax = accessor.string(TRANSFER_SYNTAX_UID)
    transfer_syntax = TransferSyntax.from_uid(raw_syntax) if raw_syntax else None

    rows = _require(accessor.uint16(ROWS), "Rows")
    columns = _require(accessor.uint16(COLUMNS), "Columns")
    if rows == 0 or columns == 0:
        raise InvalidValueError(f"image size {rows}x{columns}")

    samples_per_pixel = _require(accessor.uint16(SAMPLES_PER_PIXEL), "SamplesPerPixel")
    photometric = PhotometricInterpretation.parse(
        _require(accessor.string(PHOTOMETRIC_INTERPRETATION), "PhotometricInterpretation")
    )

    raw_planar = accessor.uint16(PLANAR_CONFIGURATION)
    planar_configuration = PlanarConfiguration.parse(0 if raw_planar is None else raw_planar)

    bits_allocated = _require(accessor.uint16(BITS_ALLOCATED), "BitsAllocated")
    bits_stored = _require(accessor.uint16(BITS_STORED), "BitsStored")
    high_bit = _require(accessor.uint16(HIGH_BIT), "HighBit")
    pixel_representation = PixelRepresentation.parse(
        _require(accessor.uint16(PIXEL_REPRESENTATION), "PixelRepresentation")
    )

    pixel_data_storage = PixelDataStorage.parse(accessor.element_vr(PIXEL_DATA))
    pixel_data = _copy_pixel_data(accessor)

    raw_function = accessor.string(VOI_LUT_FUNCTION)
    voi_lut_function = VoiLutFunction.parse(raw_function) if raw_function else None

    if accessor.has(VOI_LUT_SEQUENCE):
        raise UnsupportedFeatureError("VOI LUT sequence")

    metadata = {name: accessor.string(tag) for name, tag in _METADATA_TAGS}

    descriptor = ImageDescriptor(
        rows=rows,
        columns=columns,
        samples_per_pixel=samples_per_pixel,
        photometric_interpretation=photometric,
        bits_allocated=bits_allocated,
        bits_stored=bits_stored,
        high_bit=high_bit,
        pixel_representation=pixel_representation,
        pixel_data=pixel_data,
        pixel_data_storage=pixel_data_storage,
        transfer_syntax=transfer_syntax,
        planar_configuration=planar_configuration,
        window_center=accessor.float_string(WINDOW_CENTER),
        window_width=accessor.float_string(WINDOW_WIDTH),
        voi_lut_function=voi_lut_function,
        rescale_intercept=accessor.float_string(RESCALE_INTERCEPT),
        rescale_slope=accessor.float_string(RESCALE_SLOPE),
        pixel_spacing=accessor.string(PIXEL_SPACING),
        **metadata,
    )
    logger.debug(
        "Built descriptor: %dx%d, spp=%d, %s, bits=%d/%d/%d, %s, %d pixel bytes",
        rows, columns, samples_per_pixel, photometric.value,
        bits_allocated, bits_stored, high_bit,
        pixel_representation.name, len(pixel_data),
    )
    return descriptor


def _copy_pixel_data(accessor) -> bytes:
    """Copy exactly the declared Pixel Data bytes out of the source buffer."""
    located = accessor.element_bytes(PIXEL_DATA)
    if located is None:
        raise MissingAttributeError("PixelData")
    buffer, offset, length = located
    if offset < 0 or length < 0 or offset + length > len(buffer):
        raise InvalidValueError(
            f"pixel data range {offset}+{length} exceeds buffer of {len(buffer)} bytes"
        )
    return bytes(buffer[offset:offset + length])


def metadata_summary(descriptor: ImageDescriptor) -> dict[str, Any]:
    """
    Return the present header fields of *descriptor* for a details panel.

    Pixel bytes are left out; enum values are shown by their DICOM code.
    """
    summary: dict[str, Any] = {}
    for f in fields(descriptor):
        if f.name == "pixel_data":
            continue
        value = getattr(descriptor, f.name)
        if value is None:
            continue
        summary[f.name] = getattr(value, "value", value)
    return summary
