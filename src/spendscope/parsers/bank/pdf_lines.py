"""
PDF text-layout reconstruction.

Statement PDFs place each table cell as a separately positioned text run.
This module rebuilds visual text lines from those runs using pdfplumber:

1. Collect words on a page with their coordinates.
2. Group words sharing the same rounded baseline into a visual row.
3. Sort each row left-to-right and join with single spaces.
4. Order rows top-to-bottom (descending y in PDF space).
"""

import io
import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect, PDFEncryptionError

from spendscope.core.exceptions import PasswordProtectedError, DocumentUnreadableError

logger = logging.getLogger(__name__)


def extract_pdf_lines(
    data: bytes,
    max_pages: Optional[int] = None,
    password: Optional[str] = None,
) -> List[List[str]]:
    """
    Extract reconstructed text lines from PDF bytes.

    Args:
        data: PDF file bytes
        max_pages: Only read the first N pages (None for all)
        password: PDF password, if the statement is encrypted

    Returns:
        One list of text lines per page, in page order

    Raises:
        PasswordProtectedError: If the PDF needs a (different) password
        DocumentUnreadableError: If the PDF is malformed or corrupt
    """
    pages: List[List[str]] = []

    try:
        with pdfplumber.open(io.BytesIO(data), password=password or "") as pdf:
            page_list = pdf.pages if max_pages is None else pdf.pages[:max_pages]
            for page in page_list:
                pages.append(page_to_lines(page))
    except Exception as e:
        if _is_password_error(e):
            raise PasswordProtectedError("Statement PDF") from e
        raise DocumentUnreadableError(f"Could not read PDF statement: {_describe(e)}") from e

    logger.debug(f"Reconstructed {sum(len(p) for p in pages)} lines from {len(pages)} page(s)")
    return pages


def page_to_lines(page) -> List[str]:
    """
    Rebuild the visual text lines of one pdfplumber page.

    Words are bucketed by their rounded baseline expressed in PDF space
    (origin bottom-left), so higher rows have larger y and come first.
    """
    words = page.extract_words(keep_blank_chars=False, use_text_flow=False)
    page_height = float(page.height)

    rows: Dict[int, List[dict]] = defaultdict(list)
    for word in words:
        y = round(page_height - float(word["bottom"]))
        rows[y].append(word)

    lines = []
    for y in sorted(rows, reverse=True):
        row_words = sorted(rows[y], key=lambda w: float(w["x0"]))
        line = " ".join(w["text"] for w in row_words)
        line = re.sub(r"\s+", " ", line).strip()
        if line:
            lines.append(line)

    return lines


def flatten_lines(pages: List[List[str]]) -> List[str]:
    """Concatenate per-page lines into a single line list."""
    return [line for page in pages for line in page]


def _is_password_error(exc: BaseException) -> bool:
    """
    Check whether an open/extract failure is caused by encryption.

    pdfplumber wraps pdfminer errors, so walk the cause/context chain and the
    wrapped exception arguments.
    """
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, (PDFPasswordIncorrect, PDFEncryptionError)):
            return True
        name = type(current).__name__.lower()
        message = str(current).lower()
        if "password" in name or "password" in message or "encrypt" in message:
            return True

        stack.append(current.__cause__)
        stack.append(current.__context__)
        stack.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))

    return False


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__
