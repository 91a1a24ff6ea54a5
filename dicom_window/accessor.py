"""
accessor.py - Typed, tag-keyed read access to a parsed DICOM dataset.

The decoder never touches pydicom directly; it talks to an *accessor* that
answers "what is the value of tag X as a uint16 / decimal string / raw
bytes?" with ``None`` when the element is absent or empty.  DatasetAccessor
is the pydicom-backed implementation.  Any object with the same methods
(e.g. a dict-backed fake in the tests) can stand in for it.
"""

import logging
import math
from typing import Any, Optional, Union

import pydicom
from pydicom.datadict import keyword_for_tag
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue
from pydicom.tag import Tag

from dicom_window.errors import InvalidValueError

logger = logging.getLogger(__name__)

TagLike = Union[int, tuple[int, int]]

PIXEL_DATA = Tag(0x7FE0, 0x0010)
BITS_ALLOCATED = Tag(0x0028, 0x0100)


def _describe(tag: TagLike) -> str:
    tag = Tag(tag)
    return keyword_for_tag(tag) or str(tag)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, MultiValue, list)) and len(value) == 0:
        return True
    return False


class DatasetAccessor:
    """
    Wrap a pydicom Dataset (and its File Meta group) behind typed getters.

    Parameters
    ----------
    ds : Dataset
        Parsed dataset.  Group 0x0002 elements are looked up in
        ``ds.file_meta`` when the dataset has one.
    """

    def __init__(self, ds: Dataset):
        self._ds = ds

    @classmethod
    def from_file(cls, path: str) -> "DatasetAccessor":
        """Read *path* with pydicom and wrap the result."""
        return cls(pydicom.dcmread(path))

    # ------------------------------------------------------------------
    # Element lookup
    # ------------------------------------------------------------------

    def _element(self, tag: TagLike):
        tag = Tag(tag)
        source = self._ds
        if tag.group == 0x0002:
            source = getattr(self._ds, "file_meta", None)
            if source is None:
                return None
        try:
            return source[tag]
        except KeyError:
            return None

    def _value(self, tag: TagLike) -> Any:
        elem = self._element(tag)
        if elem is None or _is_empty(elem.value):
            return None
        return elem.value

    def has(self, tag: TagLike) -> bool:
        return self._element(tag) is not None

    # ------------------------------------------------------------------
    # Typed getters
    # ------------------------------------------------------------------

    def _integer(self, tag: TagLike, low: int, high: int) -> Optional[int]:
        value = self._value(tag)
        if value is None:
            return None
        if isinstance(value, (MultiValue, list)):
            value = value[0]
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError):
            raise InvalidValueError(f"{_describe(tag)} is not an integer: {value!r}") from None
        if isinstance(value, float) and number != value:
            raise InvalidValueError(f"{_describe(tag)} is not an integer: {value!r}")
        if not low <= number <= high:
            raise InvalidValueError(f"{_describe(tag)} out of range: {number}")
        return number

    def uint16(self, tag: TagLike) -> Optional[int]:
        return self._integer(tag, 0, 0xFFFF)

    def uint32(self, tag: TagLike) -> Optional[int]:
        return self._integer(tag, 0, 0xFFFFFFFF)

    def int32(self, tag: TagLike) -> Optional[int]:
        return self._integer(tag, -(2 ** 31), 2 ** 31 - 1)

    def string(self, tag: TagLike) -> Optional[str]:
        """Return the raw string value; multiple values are re-joined with ``\\``."""
        value = self._value(tag)
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="replace")
        if isinstance(value, (MultiValue, list)):
            return "\\".join(str(v) for v in value)
        text = str(value).strip()
        return text or None

    def float_string(self, tag: TagLike) -> Optional[float]:
        """Decimal String (DS) as a finite float; the first value when multi-valued."""
        value = self._value(tag)
        if value is None:
            return None
        if isinstance(value, (MultiValue, list)):
            value = value[0]
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="replace")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidValueError(f"{_describe(tag)} is not a decimal: {value!r}") from None
        if not math.isfinite(number):
            raise InvalidValueError(f"{_describe(tag)} is not finite: {value!r}")
        return number

    def int_string(self, tag: TagLike) -> Optional[int]:
        """Integer String (IS) as an int; the first value when multi-valued."""
        value = self._value(tag)
        if value is None:
            return None
        if isinstance(value, (MultiValue, list)):
            value = value[0]
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="replace")
        try:
            return int(str(value).strip())
        except ValueError:
            raise InvalidValueError(f"{_describe(tag)} is not an integer: {value!r}") from None

    # ------------------------------------------------------------------
    # Raw element access
    # ------------------------------------------------------------------

    def element_vr(self, tag: TagLike) -> Optional[str]:
        """
        Return the VR of the element, if known.

        pydicom leaves the Pixel Data VR as "OB or OW" for elements created
        in memory; resolve it the way the writer does: OW when Bits
        Allocated > 8, otherwise OB.
        """
        elem = self._element(tag)
        if elem is None or not elem.VR:
            return None
        vr = elem.VR
        if vr in ("OB or OW", "OB/OW", "ob_or_ow"):
            bits_allocated = self.uint16(BITS_ALLOCATED)
            vr = "OW" if bits_allocated is not None and bits_allocated > 8 else "OB"
            logger.debug("Resolved ambiguous VR of %s to %s", _describe(tag), vr)
        return vr

    def element_bytes(self, tag: TagLike) -> Optional[tuple[memoryview, int, int]]:
        """
        Locate the raw bytes of an element.

        Returns
        -------
        tuple or None
            ``(buffer, offset, length)``: the element's value occupies
            ``buffer[offset:offset + length]``.  ``None`` when absent.
        """
        elem = self._element(tag)
        if elem is None or not isinstance(elem.value, (bytes, bytearray)):
            return None
        view = memoryview(elem.value)
        return view, 0, len(view)
