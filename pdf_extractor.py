"""
Positioned text extraction from PDF pages.
"""
import logging
from typing import Callable, Iterator, Optional

import fitz  # PyMuPDF
from models import PageFragments, PositionedFragment

log = logging.getLogger("screenplay.extract")

ProgressCallback = Callable[[int, int], None]


def page_fragments(page: "fitz.Page", page_num: int) -> PageFragments:
    """
    Collect the text spans of one page as positioned fragments.

    PyMuPDF measures y downward from the top of the page; fragments use PDF
    user space (y upward) so the top line has the largest y, and each span is
    placed at its baseline origin.

    Args:
        page: PyMuPDF page
        page_num: 1-indexed page number

    Returns:
        PageFragments with the page width and unordered fragments
    """
    rect = page.rect
    fragments: list[PositionedFragment] = []

    for block in page.get_text("dict")["blocks"]:
        if block.get("type") != 0:  # image block
            continue
        for line in block["lines"]:
            for span in line["spans"]:
                text = span["text"]
                if not text.strip():
                    continue
                x, y = span["origin"]
                fragments.append(PositionedFragment(text=text, x=x, y=rect.height - y))

    return PageFragments(page_num=page_num, page_width=rect.width, fragments=fragments)


def iter_pdf_pages(
    pdf_path: str,
    page_start: int = 1,
    page_end: Optional[int] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> Iterator[PageFragments]:
    """
    Yield positioned fragments page by page, in page order.

    Args:
        pdf_path: Path to the PDF file
        page_start: First page to read (1-indexed)
        page_end: Last page to read (inclusive, default all pages)
        progress_callback: Called with (page_number, last_page) after each page

    Yields:
        PageFragments for each page in range
    """
    doc = fitz.open(pdf_path)
    try:
        total = len(doc)
        last = total if page_end is None else min(page_end, total)
        first = max(1, page_start)

        for page_num in range(first, last + 1):
            fragments = page_fragments(doc[page_num - 1], page_num)
            log.debug("Page %d: %d fragments", page_num, len(fragments.fragments))
            yield fragments
            if progress_callback:
                progress_callback(page_num, last)
    finally:
        doc.close()


def get_total_pages(pdf_path: str) -> int:
    """Get total page count of a PDF."""
    doc = fitz.open(pdf_path)
    count = len(doc)
    doc.close()
    return count
