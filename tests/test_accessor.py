"""Tests for dicom_window/accessor.py."""

import numpy as np
import pydicom
import pytest
from pydicom.dataset import Dataset, FileDataset
from pydicom.uid import ExplicitVRLittleEndian

from dicom_window.accessor import DatasetAccessor
from dicom_window.descriptor import (
    BITS_ALLOCATED,
    PATIENT_NAME,
    PIXEL_DATA,
    PIXEL_SPACING,
    ROWS,
    TRANSFER_SYNTAX_UID,
    WINDOW_CENTER,
    WINDOW_WIDTH,
)
from dicom_window.errors import InvalidValueError


def _make_ds(bits_allocated: int = 16) -> FileDataset:
    """Build a minimal in-memory dataset with a File Meta group."""
    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.2")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(filename_or_obj=None, dataset={}, file_meta=file_meta, preamble=b"\0" * 128)
    ds.Rows = 2
    ds.Columns = 3
    ds.BitsAllocated = bits_allocated
    ds.PatientName = "Doe^Jane"
    dtype = np.uint16 if bits_allocated == 16 else np.uint8
    ds.PixelData = np.arange(6, dtype=dtype).tobytes()
    return ds


class TestGetters:
    def test_uint16(self):
        accessor = DatasetAccessor(_make_ds())
        assert accessor.uint16(ROWS) == 2

    def test_absent_element_is_none(self):
        accessor = DatasetAccessor(_make_ds())
        assert accessor.uint16(0x00280006) is None
        assert accessor.string(0x00080060) is None
        assert accessor.float_string(WINDOW_CENTER) is None
        assert not accessor.has(WINDOW_CENTER)

    def test_transfer_syntax_read_from_file_meta(self):
        accessor = DatasetAccessor(_make_ds())
        assert accessor.string(TRANSFER_SYNTAX_UID) == ExplicitVRLittleEndian

    def test_transfer_syntax_absent_without_file_meta(self):
        accessor = DatasetAccessor(Dataset())
        assert accessor.string(TRANSFER_SYNTAX_UID) is None

    def test_person_name_as_string(self):
        accessor = DatasetAccessor(_make_ds())
        assert accessor.string(PATIENT_NAME) == "Doe^Jane"

    def test_multi_valued_string_rejoined(self):
        ds = _make_ds()
        ds.PixelSpacing = "0.5\\0.6"
        assert DatasetAccessor(ds).string(PIXEL_SPACING) == "0.5\\0.6"

    def test_float_string_takes_first_value(self):
        ds = _make_ds()
        ds.WindowCenter = [40.0, 400.0]
        ds.WindowWidth = "350"
        accessor = DatasetAccessor(ds)
        assert accessor.float_string(WINDOW_CENTER) == pytest.approx(40.0)
        assert accessor.float_string(WINDOW_WIDTH) == pytest.approx(350.0)

    def test_empty_element_is_none(self):
        ds = _make_ds()
        ds.WindowCenter = None
        assert DatasetAccessor(ds).float_string(WINDOW_CENTER) is None

    def test_int_string(self):
        ds = _make_ds()
        ds.InstanceNumber = 7
        assert DatasetAccessor(ds).int_string(0x00200013) == 7

    def test_non_integer_value_raises(self):
        ds = _make_ds()
        ds.add_new(0x00280010, "LO", "many")
        with pytest.raises(InvalidValueError, match="Rows"):
            DatasetAccessor(ds).uint16(ROWS)

    def test_uint32_accepts_values_past_uint16(self):
        ds = _make_ds()
        ds.add_new(0x00280010, "UL", 70000)
        accessor = DatasetAccessor(ds)
        assert accessor.uint32(ROWS) == 70000
        with pytest.raises(InvalidValueError, match="out of range"):
            accessor.uint16(ROWS)

    def test_int32_accepts_negative_values(self):
        ds = _make_ds()
        ds.add_new(0x00280010, "SL", -5)
        accessor = DatasetAccessor(ds)
        assert accessor.int32(ROWS) == -5
        with pytest.raises(InvalidValueError, match="out of range"):
            accessor.uint32(ROWS)

    def test_fractional_value_is_not_truncated(self):
        ds = _make_ds()
        ds.add_new(0x00280010, "FD", 1.5)
        with pytest.raises(InvalidValueError, match="not an integer"):
            DatasetAccessor(ds).uint16(ROWS)

    def test_integral_float_is_accepted(self):
        ds = _make_ds()
        ds.add_new(0x00280010, "FD", 2.0)
        assert DatasetAccessor(ds).uint16(ROWS) == 2

    @pytest.mark.parametrize("raw", ["nan ", "inf", "-Infinity"])
    def test_non_finite_decimal_raises(self, raw):
        ds = _make_ds()
        ds.add_new(WINDOW_WIDTH, "LO", raw)
        with pytest.raises(InvalidValueError, match="not finite"):
            DatasetAccessor(ds).float_string(WINDOW_WIDTH)


class TestPixelElement:
    def test_ambiguous_vr_resolves_to_ow_for_16_bit(self):
        assert DatasetAccessor(_make_ds(16)).element_vr(PIXEL_DATA) == "OW"

    def test_ambiguous_vr_resolves_to_ob_for_8_bit(self):
        assert DatasetAccessor(_make_ds(8)).element_vr(PIXEL_DATA) == "OB"

    def test_explicit_vr_is_kept(self):
        ds = _make_ds(16)
        del ds.PixelData
        ds.add_new(PIXEL_DATA, "OB", bytes(12))
        assert DatasetAccessor(ds).element_vr(PIXEL_DATA) == "OB"

    def test_element_bytes(self):
        ds = _make_ds(16)
        buffer, offset, length = DatasetAccessor(ds).element_bytes(PIXEL_DATA)
        assert (offset, length) == (0, 12)
        assert bytes(buffer[offset:offset + length]) == ds.PixelData

    def test_missing_pixel_data(self):
        ds = _make_ds()
        del ds.PixelData
        assert DatasetAccessor(ds).element_bytes(PIXEL_DATA) is None
        assert DatasetAccessor(ds).element_vr(PIXEL_DATA) is None


class TestFromFile:
    def test_round_trip_through_disk(self, tmp_path):
        path = str(tmp_path / "scan.dcm")
        ds = _make_ds()
        ds.SOPClassUID = ds.file_meta.MediaStorageSOPClassUID
        ds.SOPInstanceUID = ds.file_meta.MediaStorageSOPInstanceUID
        ds.save_as(path)

        accessor = DatasetAccessor.from_file(path)
        assert accessor.uint16(ROWS) == 2
        assert accessor.uint16(BITS_ALLOCATED) == 16
        assert accessor.element_vr(PIXEL_DATA) == "OW"
