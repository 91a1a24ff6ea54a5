"""
errors.py - Decode failure taxonomy.

Every step of the decode-and-window chain either returns its value or raises
one of these.  Callers that need a success/failure value catch DecodeError
once at their boundary (see pipeline.render_dataset).
"""


class DecodeError(ValueError):
    """Base class for every failure raised while decoding or rendering."""

    kind = "decode error"

    def __init__(self, detail: str):
        super().__init__(f"{self.kind}: {detail}")
        self.detail = detail


class MissingAttributeError(DecodeError):
    """A required attribute is absent from the source dataset."""

    kind = "missing attribute"


class InvalidValueError(DecodeError):
    """A present attribute holds a value outside its recognised range."""

    kind = "invalid value"


class UnsupportedTransferSyntaxError(DecodeError):
    kind = "unsupported transfer syntax"


class UnsupportedCompressionError(DecodeError):
    kind = "unsupported compression"


class UnsupportedPixelFormatError(DecodeError):
    """Samples per pixel / photometric interpretation is neither grayscale nor RGB."""

    kind = "unsupported pixel format"


class UnsupportedBitDepthError(DecodeError):
    kind = "unsupported bit depth"


class UnsupportedFeatureError(DecodeError):
    """A recognised but unimplemented feature (Monochrome1, sigmoid VOI, ...)."""

    kind = "unsupported feature"
