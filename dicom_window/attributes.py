"""
attributes.py - Enumerations and small value types shared by the decoder.

These are the "vocabulary" of the Image Pixel and VOI LUT modules that the
rest of the package speaks: transfer syntaxes, photometric interpretations,
pixel representation, planar configuration, VOI LUT functions, windows,
rescale parameters and pixel spacing.

References
----------
- DICOM PS3.3 C.7.6.3 Image Pixel Module
- DICOM PS3.3 C.11.2 VOI LUT Module
- DICOM PS3.5 Annex A (transfer syntax UIDs)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dicom_window.errors import InvalidValueError, UnsupportedTransferSyntaxError


# ---------------------------------------------------------------------------
# Transfer syntax
# ---------------------------------------------------------------------------

class Compression(Enum):
    NONE = "NONE"
    JPEG_LOSSLESS = "JPEG_LOSSLESS"
    JPEG_BASELINE = "JPEG_BASELINE"
    JPEG_2000 = "JPEG_2000"
    RLE = "RLE"


class Endianness(Enum):
    LITTLE = "LittleEndian"
    BIG = "BigEndian"


class TransferSyntax(Enum):
    UNCOMPRESSED_LE = "UncompressedLE"
    UNCOMPRESSED_BE = "UncompressedBE"
    JPEG2000 = "JPEG2000"
    RLE = "DecodeRLE"
    JPEG_LOSSLESS = "JPEGLossless"
    JPEG_BASELINE = "JPEGBaseline"

    @classmethod
    def default(cls) -> "TransferSyntax":
        return cls.UNCOMPRESSED_LE

    @classmethod
    def from_uid(cls, uid: str) -> "TransferSyntax":
        """Map a Transfer Syntax UID onto the closed table of known syntaxes."""
        # UI values are NUL padded to even length on disk
        key = uid.strip().rstrip("\x00")
        try:
            return _TRANSFER_SYNTAX_UIDS[key]
        except KeyError:
            raise UnsupportedTransferSyntaxError(key) from None

    @property
    def compression(self) -> Compression:
        return _SYNTAX_LAYOUT[self][0]

    @property
    def endianness(self) -> Endianness:
        return _SYNTAX_LAYOUT[self][1]


_TRANSFER_SYNTAX_UIDS: dict[str, TransferSyntax] = {
    "1.2.840.10008.1.2": TransferSyntax.UNCOMPRESSED_LE,
    "1.2.840.10008.1.2.1": TransferSyntax.UNCOMPRESSED_LE,
    "1.2.840.10008.1.2.2": TransferSyntax.UNCOMPRESSED_BE,
    "1.2.840.10008.1.2.4.90": TransferSyntax.JPEG2000,
    "1.2.840.10008.1.2.4.91": TransferSyntax.JPEG2000,
    "1.2.840.10008.1.2.5": TransferSyntax.RLE,
    "1.2.840.10008.1.2.4.57": TransferSyntax.JPEG_LOSSLESS,
    "1.2.840.10008.1.2.4.70": TransferSyntax.JPEG_LOSSLESS,
    "1.2.840.10008.1.2.4.50": TransferSyntax.JPEG_BASELINE,
    "1.2.840.10008.1.2.4.51": TransferSyntax.JPEG_BASELINE,
}

_SYNTAX_LAYOUT: dict[TransferSyntax, tuple[Compression, Endianness]] = {
    TransferSyntax.UNCOMPRESSED_LE: (Compression.NONE, Endianness.LITTLE),
    TransferSyntax.UNCOMPRESSED_BE: (Compression.NONE, Endianness.BIG),
    TransferSyntax.RLE: (Compression.RLE, Endianness.LITTLE),
    TransferSyntax.JPEG_LOSSLESS: (Compression.JPEG_LOSSLESS, Endianness.LITTLE),
    TransferSyntax.JPEG2000: (Compression.JPEG_2000, Endianness.LITTLE),
    TransferSyntax.JPEG_BASELINE: (Compression.JPEG_BASELINE, Endianness.LITTLE),
}


# ---------------------------------------------------------------------------
# Image Pixel module enumerations
# ---------------------------------------------------------------------------

class PhotometricInterpretation(Enum):
    MONOCHROME1 = "MONOCHROME1"
    MONOCHROME2 = "MONOCHROME2"
    PALETTE = "PALETTE COLOR"
    RGB = "RGB"
    HSV = "HSV"
    ARGB = "ARGB"
    CMYK = "CMYK"
    YBR_FULL = "YBR_FULL"
    YBR_FULL_422 = "YBR_FULL_422"
    YBR_PARTIAL_422 = "YBR_PARTIAL_422"
    YBR_PARTIAL_420 = "YBR_PARTIAL_420"
    YBR_ICT = "YBR_ICT"
    YBR_RCT = "YBR_RCT"
    # Anything else: accepted here, rejected by the decoder
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: str) -> "PhotometricInterpretation":
        key = value.strip().upper()
        for member in cls:
            if member.value == key:
                return member
        return cls.OTHER


class PixelRepresentation(Enum):
    UNSIGNED = 0
    SIGNED = 1

    @classmethod
    def parse(cls, raw: int) -> "PixelRepresentation":
        try:
            return cls(raw)
        except ValueError:
            raise InvalidValueError(f"pixel representation {raw!r}") from None


class PlanarConfiguration(Enum):
    INTERLACED = 0
    SEPARATED = 1

    @classmethod
    def parse(cls, raw: int) -> "PlanarConfiguration":
        try:
            return cls(raw)
        except ValueError:
            raise InvalidValueError(f"planar configuration {raw!r}") from None


class PixelDataStorage(Enum):
    """Nominal element width of the Pixel Data element (its VR)."""

    OB = "OB"
    OW = "OW"

    @classmethod
    def parse(cls, vr: Optional[str]) -> "PixelDataStorage":
        if vr is None:
            return cls.OB
        try:
            return cls(vr)
        except ValueError:
            raise InvalidValueError(f"pixel data VR {vr!r}") from None


class VoiLutFunction(Enum):
    LINEAR = "LINEAR"
    LINEAR_EXACT = "LINEAR_EXACT"
    SIGMOID = "SIGMOID"

    @classmethod
    def default(cls) -> "VoiLutFunction":
        return cls.LINEAR

    @classmethod
    def parse(cls, value: str) -> "VoiLutFunction":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise InvalidValueError(f"VOI LUT function {value!r}") from None


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VoiLutWindow:
    center: float
    width: float


@dataclass(frozen=True)
class VoiLutModule:
    window: VoiLutWindow
    function: VoiLutFunction = VoiLutFunction.LINEAR


@dataclass(frozen=True)
class Rescale:
    """Modality rescale: ``value = stored * slope + intercept``."""

    slope: float = 1.0
    intercept: float = 0.0


@dataclass(frozen=True)
class WindowingOffset:
    """
    Interactive adjustment added to the stored window at render time.

    Owned by the viewer; a fresh default is created whenever a new image is
    loaded or the view is reset.  Never written back into an image.
    """

    center_offset: float = 0.0
    width_offset: float = 0.0

    @classmethod
    def default(cls) -> "WindowingOffset":
        return cls(0.0, 0.0)

    def add(self, center_delta: float, width_delta: float) -> "WindowingOffset":
        return WindowingOffset(
            self.center_offset + center_delta,
            self.width_offset + width_delta,
        )


@dataclass(frozen=True)
class PixelSpacing:
    """Physical distance between pixel centres in mm: (row, column)."""

    row: float
    column: float

    @classmethod
    def from_string(cls, raw: str) -> "PixelSpacing":
        """
        Parse a raw Pixel Spacing value such as ``"0.5\\0.6"``.

        Exactly two backslash-separated decimal tokens are required.
        """
        tokens = raw.split("\\")
        if len(tokens) != 2:
            raise InvalidValueError("pixel spacing")
        try:
            row, column = (float(token) for token in tokens)
        except ValueError:
            raise InvalidValueError("pixel spacing") from None
        return cls(row=row, column=column)
