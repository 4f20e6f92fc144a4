"""
Unit tests for PDF text-layout reconstruction.
"""

import pytest

from spendscope.core.exceptions import DocumentUnreadableError, PasswordProtectedError
from spendscope.parsers.bank.pdf_lines import (
    _is_password_error,
    extract_pdf_lines,
    flatten_lines,
    page_to_lines,
)


class FakePage:
    """Stand-in for a pdfplumber page."""

    def __init__(self, words, height=800):
        self._words = words
        self.height = height

    def extract_words(self, **kwargs):
        return list(self._words)


def _word(text, x0, bottom):
    return {"text": text, "x0": x0, "bottom": bottom}


class TestPageToLines:
    """Tests for page_to_lines."""

    def test_groups_by_baseline(self):
        """Words on the same baseline form one line, ordered left to right."""
        page = FakePage([
            _word("5,200.00", 500, 100.2),
            _word("01-03-2024", 30, 100.0),
            _word("300.00", 300, 99.8),
            _word("UPI/SWIGGY/xyz@bank", 80, 85.0),
        ])
        assert page_to_lines(page) == [
            "UPI/SWIGGY/xyz@bank",
            "01-03-2024 300.00 5,200.00",
        ]

    def test_top_down_order(self):
        """Rows higher on the page (smaller bottom) come first."""
        page = FakePage([
            _word("third", 10, 300),
            _word("first", 10, 50),
            _word("second", 10, 120),
        ])
        assert page_to_lines(page) == ["first", "second", "third"]

    def test_empty_page(self):
        assert page_to_lines(FakePage([])) == []


class TestExtractPdfLines:
    """Tests for extract_pdf_lines on generated PDFs."""

    def test_reads_lines(self, pdf_builder):
        """Drawn lines come back in order, one list per page."""
        data = pdf_builder([["HEADER LINE", "01-03-2024 300.00 5,200.00"], ["second page"]])
        pages = extract_pdf_lines(data)

        assert len(pages) == 2
        assert pages[0] == ["HEADER LINE", "01-03-2024 300.00 5,200.00"]
        assert pages[1] == ["second page"]
        assert flatten_lines(pages)[-1] == "second page"

    def test_max_pages(self, pdf_builder):
        """Only the first N pages are read."""
        data = pdf_builder([["one"], ["two"], ["three"]])
        assert extract_pdf_lines(data, max_pages=2) == [["one"], ["two"]]

    def test_password_required(self, pdf_builder):
        """An encrypted PDF without the password raises PasswordProtectedError."""
        data = pdf_builder([["secret line"]], password="secret")
        with pytest.raises(PasswordProtectedError):
            extract_pdf_lines(data)

    def test_wrong_password(self, pdf_builder):
        """A wrong password is reported the same way."""
        data = pdf_builder([["secret line"]], password="secret")
        with pytest.raises(PasswordProtectedError):
            extract_pdf_lines(data, password="wrong")

    def test_correct_password(self, pdf_builder):
        """The right password opens the document."""
        data = pdf_builder([["secret line"]], password="secret")
        assert extract_pdf_lines(data, password="secret") == [["secret line"]]

    def test_corrupt_pdf(self):
        """Malformed PDF bytes raise DocumentUnreadableError."""
        with pytest.raises(DocumentUnreadableError):
            extract_pdf_lines(b"%PDF-1.4\nthis is not a pdf body\n%%EOF")


class TestIsPasswordError:
    """Tests for _is_password_error."""

    def test_wrapped_cause(self):
        """Encryption errors are found through the cause chain."""
        outer = RuntimeError("wrapper")
        outer.__cause__ = ValueError("Incorrect password")
        assert _is_password_error(outer) is True

    def test_wrapped_in_args(self):
        """Exceptions carried as arguments are inspected."""
        assert _is_password_error(RuntimeError(KeyError("encrypted document"))) is True

    def test_unrelated(self):
        assert _is_password_error(ValueError("No /Root object!")) is False
