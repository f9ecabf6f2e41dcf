"""Tests for the batch redaction API."""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF
import pytest

from pdf_blackout.errors import InvalidInput
from pdf_blackout.export import ExportMode
from pdf_blackout.redactor import RedactionResult, parse_terms, redact_pdf, write_output


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _create_test_pdf(path: Path, pages: list[str]) -> Path:
    """Create a minimal PDF with the given text on each page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=612, height=792)
        page.insert_text((72, 72), text, fontsize=12)
    doc.save(str(path))
    doc.close()
    return path


def _read_text(path: Path) -> str:
    doc = fitz.open(str(path))
    try:
        return "".join(page.get_text() for page in doc)
    finally:
        doc.close()


# ------------------------------------------------------------------
# parse_terms
# ------------------------------------------------------------------


class TestParseTerms:
    def test_comma_separated(self) -> None:
        assert parse_terms("foo, bar, baz") == ["foo", "bar", "baz"]

    def test_newline_separated(self) -> None:
        assert parse_terms("foo\nbar\nbaz") == ["foo", "bar", "baz"]

    def test_mixed_separators(self) -> None:
        assert parse_terms("foo, bar\nbaz, qux") == ["foo", "bar", "baz", "qux"]

    def test_keeps_inner_spaces(self) -> None:
        assert parse_terms("  Jane Smith  ,  bar  ") == ["Jane Smith", "bar"]

    def test_removes_empty_terms(self) -> None:
        assert parse_terms("foo,,, ,bar") == ["foo", "bar"]

    def test_deduplicates(self) -> None:
        assert parse_terms("foo, bar, foo, bar") == ["foo", "bar"]

    def test_empty_input(self) -> None:
        assert parse_terms("") == []

    def test_whitespace_only(self) -> None:
        assert parse_terms("   \n  \n  ") == []


# ------------------------------------------------------------------
# redact_pdf
# ------------------------------------------------------------------


class TestRedactPdf:
    def test_basic_redaction(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello secret world"])
        result = redact_pdf(pdf_path, ["secret"])

        assert isinstance(result, RedactionResult)
        assert result.mode is ExportMode.SECURE
        assert result.total_matches == 1
        assert result.matches_per_term == {"secret": 1}
        assert result.pages_modified == 1
        assert result.pages_total == 1
        assert result.output_path.exists()
        assert result.terms_not_found == []

    def test_phrase_across_words(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Dear Jane Smith, hello"])
        result = redact_pdf(pdf_path, ["jane smith,"])

        assert result.total_matches == 1

    def test_multiple_terms(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello secret world confidential data"])
        result = redact_pdf(pdf_path, ["secret", "confidential"])

        assert result.total_matches == 2
        assert result.matches_per_term["secret"] == 1
        assert result.matches_per_term["confidential"] == 1
        assert result.pages_modified == 1

    def test_no_matches(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello world"])
        result = redact_pdf(pdf_path, ["missing"])

        assert result.total_matches == 0
        assert result.pages_modified == 0
        assert result.terms_not_found == ["missing"]

    def test_multiple_pages(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(
            tmp_path / "test.pdf",
            ["Page one secret", "Page two clean", "Page three secret"],
        )
        result = redact_pdf(pdf_path, ["secret"])

        assert result.total_matches == 2
        assert result.pages_modified == 2
        assert result.pages_total == 3

    def test_custom_output_path(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello secret"])
        output = tmp_path / "custom_output.pdf"
        result = redact_pdf(pdf_path, ["secret"], output_path=output)

        assert result.output_path == output
        assert output.exists()

    def test_default_output_path(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "report.pdf", ["data"])

        assert redact_pdf(pdf_path, ["data"]).output_path == tmp_path / "report_redacted_secure.pdf"
        assert (
            redact_pdf(pdf_path, ["data"], mode=ExportMode.RECOVERABLE).output_path
            == tmp_path / "report_redacted_recoverable.pdf"
        )

    def test_progress_callback(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["p1", "p2", "p3"])

        calls: list[tuple[int, int]] = []
        result = redact_pdf(
            pdf_path, ["p1"], progress_callback=lambda cur, tot: calls.append((cur, tot))
        )

        assert calls == [(1, 3), (2, 3), (3, 3)]
        assert result.pages_total == 3

    def test_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            redact_pdf(tmp_path / "nonexistent.pdf", ["term"])

    def test_empty_terms_raises(self, tmp_path: Path) -> None:
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello"])
        with pytest.raises(ValueError, match="(?i)at least one"):
            redact_pdf(pdf_path, [])

    def test_non_pdf_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("secret")
        with pytest.raises(InvalidInput):
            redact_pdf(path, ["secret"])

    def test_secure_removes_all_text(self, tmp_path: Path) -> None:
        """Secure mode leaves no extractable text at all."""
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello secret world"])
        result = redact_pdf(pdf_path, ["secret"])

        assert _read_text(result.output_path).strip() == ""

    def test_recoverable_keeps_text(self, tmp_path: Path) -> None:
        """Recoverable mode only covers the text; it is still extractable."""
        pdf_path = _create_test_pdf(tmp_path / "test.pdf", ["Hello secret world"])
        result = redact_pdf(pdf_path, ["secret"], mode=ExportMode.RECOVERABLE)

        page_text = _read_text(result.output_path)
        assert "Hello" in page_text
        assert "secret" in page_text


class TestWriteOutput:
    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out.pdf"
        target.write_bytes(b"old")
        write_output(target, b"new")

        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["out.pdf"]
