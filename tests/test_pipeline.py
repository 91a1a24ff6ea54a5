"""Smoke tests for dicom_window/pipeline.py."""

from unittest.mock import patch

import numpy as np
import pydicom
from pydicom.dataset import FileDataset
from pydicom.uid import ExplicitVRLittleEndian

from dicom_window.attributes import WindowingOffset
from dicom_window.errors import UnsupportedCompressionError
from dicom_window.pipeline import (
    PipelineReport,
    RenderResult,
    render_dataset,
    render_file,
    render_folder,
)


def _make_ds(path: str = None, photometric: str = "MONOCHROME2") -> FileDataset:
    """Build a minimal 4x4 16-bit grayscale dataset."""
    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.2")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(path, {}, file_meta=file_meta, preamble=b"\0" * 128)
    ds.SOPClassUID = file_meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = file_meta.MediaStorageSOPInstanceUID
    ds.PatientID = "99999"
    ds.Modality = "CT"
    ds.Rows = 4
    ds.Columns = 4
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = photometric
    ds.PixelRepresentation = 0
    ds.BitsAllocated = 16
    ds.BitsStored = 12
    ds.HighBit = 11
    ds.WindowCenter = 40
    ds.WindowWidth = 400
    ds.RescaleSlope = 1
    ds.RescaleIntercept = -1024
    ds.PixelData = (np.arange(16, dtype=np.uint16).reshape(4, 4) * 100).tobytes()
    return ds


def _write_dicom(path: str, photometric: str = "MONOCHROME2") -> None:
    _make_ds(path, photometric).save_as(path)


class TestRenderDataset:
    def test_success(self):
        result = render_dataset(_make_ds())
        assert isinstance(result, RenderResult)
        assert result.success
        assert result.error is None
        assert result.image.kind == "grayscale"
        assert result.buffer.data.shape == (4, 4, 4)

    def test_offset_reaches_the_buffer(self):
        plain = render_dataset(_make_ds())
        shifted = render_dataset(_make_ds(), WindowingOffset(center_offset=300))
        assert plain.buffer.tobytes() != shifted.buffer.tobytes()

    def test_decode_error_becomes_failed_result(self):
        result = render_dataset(_make_ds(photometric="MONOCHROME1"))
        assert not result.success
        assert result.image is None
        assert result.buffer is None
        assert "MONOCHROME1" in result.error

    def test_missing_attribute_becomes_failed_result(self):
        ds = _make_ds()
        del ds.Rows
        result = render_dataset(ds)
        assert not result.success
        assert "Rows" in result.error

    def test_nan_window_width_becomes_failed_result(self):
        ds = _make_ds()
        del ds.WindowWidth
        ds.add_new(0x00281051, "LO", "nan ")
        result = render_dataset(ds)
        assert not result.success
        assert "not finite" in result.error

    def test_errors_from_rendering_are_caught(self):
        with patch(
            "dicom_window.pipeline.to_display_buffer",
            side_effect=UnsupportedCompressionError("JPEG_2000"),
        ):
            result = render_dataset(_make_ds())
        assert not result.success
        assert "JPEG_2000" in result.error


class TestRenderFile:
    def test_reads_and_renders(self, tmp_path):
        path = str(tmp_path / "scan.dcm")
        _write_dicom(path)
        result = render_file(path)
        assert result.success
        assert (result.image.rows, result.image.columns) == (4, 4)

    def test_non_dicom_file_fails_cleanly(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not a DICOM file")
        result = render_file(str(path))
        assert not result.success
        assert "could not read" in result.error

    def test_missing_file_fails_cleanly(self, tmp_path):
        result = render_file(str(tmp_path / "absent.dcm"))
        assert not result.success


class TestRenderFolder:
    def test_missing_folder_returns_empty_report(self, tmp_path):
        report = render_folder(input_folder="/nonexistent/path", output_folder=str(tmp_path / "out"))
        assert isinstance(report, PipelineReport)
        assert report.total_files == 0

    def test_renders_every_file(self, tmp_path):
        input_dir = tmp_path / "input"
        output_dir = tmp_path / "output"
        input_dir.mkdir()
        _write_dicom(str(input_dir / "scan1.dcm"))
        _write_dicom(str(input_dir / "scan2.dcm"))

        report = render_folder(input_folder=str(input_dir), output_folder=str(output_dir))

        assert report.total_files == 2
        assert report.rendered == 2
        assert report.failed == 0
        assert sorted(p.name for p in output_dir.iterdir()) == ["scan1.png", "scan2.png"]
        assert all(r.output_path for r in report.results)

    def test_bad_files_do_not_stop_the_batch(self, tmp_path):
        input_dir = tmp_path / "input"
        input_dir.mkdir()
        _write_dicom(str(input_dir / "a_good.dcm"))
        _write_dicom(str(input_dir / "b_inverted.dcm"), photometric="MONOCHROME1")
        (input_dir / "c_junk.dcm").write_bytes(b"junk")

        report = render_folder(input_folder=str(input_dir), output_folder=str(tmp_path / "out"))

        assert report.total_files == 3
        assert report.rendered == 1
        assert report.failed == 2
        assert [r.success for r in report.results] == [True, False, False]
        assert "Failed files" in report.summary()

    def test_hidden_files_skipped(self, tmp_path):
        input_dir = tmp_path / "input"
        input_dir.mkdir()
        _write_dicom(str(input_dir / "scan.dcm"))
        (input_dir / ".DS_Store").write_bytes(b"\0")

        report = render_folder(input_folder=str(input_dir), output_folder=str(tmp_path / "out"))
        assert report.total_files == 1

    def test_max_files_cap(self, tmp_path):
        input_dir = tmp_path / "input"
        input_dir.mkdir()
        for i in range(3):
            _write_dicom(str(input_dir / f"scan{i}.dcm"))

        report = render_folder(
            input_folder=str(input_dir),
            output_folder=str(tmp_path / "out"),
            max_files=2,
        )
        assert report.total_files == 2
        assert [r.filename for r in report.results] == ["scan0.dcm", "scan1.dcm"]

    def test_unexpected_error_is_recorded(self, tmp_path):
        input_dir = tmp_path / "input"
        input_dir.mkdir()
        _write_dicom(str(input_dir / "scan.dcm"))

        with patch("dicom_window.pipeline.save_buffer", side_effect=RuntimeError("disk full")):
            report = render_folder(input_folder=str(input_dir), output_folder=str(tmp_path / "out"))

        assert report.failed == 1
        assert report.results[0].error == "disk full"


class TestPipelineReport:
    def test_summary_lists_counts(self):
        report = PipelineReport(total_files=2, rendered=2, elapsed_s=0.5)
        text = report.summary()
        assert "RENDER SUMMARY" in text
        assert "Rendered          : 2" in text
        assert "Failed files" not in text
