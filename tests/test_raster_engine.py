"""
Unit tests for the pdf2image adapter.

convert_from_path and shutil.which are mocked; the mocked converter writes
files the way pdf2image leaves them (``{output_file}0001-{NN}.png``) and
returns their paths, as it does with paths_only=True.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from core.exceptions import EngineNotFoundError, RasterizationError
from core.raster_engine import RasterEngine

from conftest import write_png


BASENAME = "1733221530123-deck"


# Fixtures

@pytest.fixture
def engine():
    with patch("core.raster_engine.shutil.which", side_effect=lambda name, path=None: f"/usr/bin/{name}"):
        engine = RasterEngine(dpi=72, timeout=30)
        engine.initialize()
    return engine


def _fake_convert(page_count):
    """side_effect for convert_from_path that writes zero-padded page images."""

    def convert(pdf_path, output_folder=None, output_file=None, **kwargs):
        folder = Path(output_folder)
        return [
            write_png(folder / f"{output_file}0001-{index:02d}.png", (4, 4))
            for index in range(1, page_count + 1)
        ]

    return convert


class TestInitialize:

    def test_missing_pdftoppm_fails_fast(self):
        engine = RasterEngine()
        found = {"pdfinfo": "/usr/bin/pdfinfo"}
        with patch("core.raster_engine.shutil.which", side_effect=lambda name, path=None: found.get(name)):
            with pytest.raises(EngineNotFoundError) as exc_info:
                engine.initialize()

        assert exc_info.value.binary == "pdftoppm"
        assert engine.is_initialized is False

    def test_missing_pdfinfo_fails_fast(self):
        engine = RasterEngine()
        with patch("core.raster_engine.shutil.which", return_value=None):
            with pytest.raises(EngineNotFoundError) as exc_info:
                engine.initialize()

        assert exc_info.value.binary == "pdfinfo"

    def test_lookup_uses_poppler_path(self):
        engine = RasterEngine(poppler_path="/opt/poppler/bin")
        with patch("core.raster_engine.shutil.which", return_value="/opt/poppler/bin/x") as which:
            engine.initialize()

        assert {call.kwargs["path"] for call in which.call_args_list} == {"/opt/poppler/bin"}

    def test_executable_requires_initialize(self):
        with pytest.raises(RuntimeError):
            RasterEngine().executable

    def test_initialize_resolves_path(self, engine):
        assert engine.is_initialized is True
        assert engine.executable == "/usr/bin/pdftoppm"


class TestRasterize:

    def test_converter_arguments(self, engine, tmp_path):
        with patch("core.raster_engine.convert_from_path", side_effect=_fake_convert(1)) as convert:
            engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

        kwargs = convert.call_args.kwargs
        assert convert.call_args.args[0] == str((tmp_path / "in.pdf").resolve())
        assert kwargs["dpi"] == 72
        assert kwargs["fmt"] == "png"
        assert kwargs["output_file"] == BASENAME
        assert kwargs["paths_only"] is True
        assert kwargs["timeout"] == 30
        assert kwargs["poppler_path"] is None

    def test_outputs_are_renamed_without_padding(self, engine, tmp_path):
        """Test {basename}0001-01.png .. -11.png become {basename}_1.png .. _11.png."""
        with patch("core.raster_engine.convert_from_path", side_effect=_fake_convert(11)):
            pages = engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

        assert [p.name for p in pages] == [f"{BASENAME}_{n}.png" for n in range(1, 12)]
        assert all(p.exists() for p in pages)
        assert list((tmp_path / "out").glob(f"{BASENAME}0001-*.png")) == []

    def test_missing_pdfinfo_at_render_time(self, engine, tmp_path):
        error = PDFInfoNotInstalledError("Unable to get page count. Is poppler installed and in PATH?")
        with patch("core.raster_engine.convert_from_path", side_effect=error):
            with pytest.raises(EngineNotFoundError):
                engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

    @pytest.mark.parametrize(
        "error",
        [
            PDFPageCountError("Unable to get page count.\nSyntax Error: Couldn't read xref table"),
            PDFSyntaxError("Syntax Error: Couldn't read xref table"),
        ],
    )
    def test_unreadable_pdf(self, engine, tmp_path, error):
        with patch("core.raster_engine.convert_from_path", side_effect=error):
            with pytest.raises(RasterizationError) as exc_info:
                engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

        assert "Rasterization failed" in exc_info.value.message
        assert "xref" in exc_info.value.stderr

    def test_no_outputs_is_an_error(self, engine, tmp_path):
        """Test a clean run with no page images is still a failure."""
        with patch("core.raster_engine.convert_from_path", side_effect=_fake_convert(0)):
            with pytest.raises(RasterizationError, match="no page images"):
                engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

    def test_timeout(self, engine, tmp_path):
        with patch("core.raster_engine.convert_from_path", side_effect=PDFPopplerTimeoutError("Run poppler timeout.")):
            with pytest.raises(RasterizationError, match="timed out"):
                engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)

    def test_spawn_failure(self, engine, tmp_path):
        with patch("core.raster_engine.convert_from_path", side_effect=FileNotFoundError("pdftoppm")):
            with pytest.raises(RasterizationError, match="Could not start"):
                engine.rasterize(tmp_path / "in.pdf", tmp_path / "out", BASENAME)
