"""
Groups positioned text fragments of a page into classified lines.
"""
import logging
from typing import Iterable, Optional

from line_classifier import DEFAULT_THRESHOLDS, ClassifierThresholds, classify
from models import Line, LinePart, PositionedFragment

log = logging.getLogger("screenplay.assemble")


def _group_rows(ordered: list[PositionedFragment], tolerance: float) -> list[list[PositionedFragment]]:
    """Split top-down fragments wherever the y gap to the previous one exceeds the tolerance."""
    rows: list[list[PositionedFragment]] = []
    for fragment in ordered:
        if rows and abs(fragment.y - rows[-1][-1].y) <= tolerance:
            rows[-1].append(fragment)
        else:
            rows.append([fragment])
    return rows


def assemble_lines(
    fragments: Iterable[PositionedFragment],
    page_width: float,
    thresholds: Optional[ClassifierThresholds] = None
) -> list[Line]:
    """
    Group fragments into lines by vertical position and classify each line.

    Args:
        fragments: Fragments of one page, in any order
        page_width: Page width in fragment coordinate units
        thresholds: Classifier thresholds (y_tolerance sets the line band)

    Returns:
        Lines in reading order
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    # Total order, so the grouping below never depends on input order
    ordered = sorted(fragments, key=lambda f: (-f.y, f.x, f.text))

    lines: list[Line] = []
    for row in _group_rows(ordered, thresholds.y_tolerance):
        row.sort(key=lambda f: (f.x, -f.y, f.text))
        parts = [LinePart(text=f.text, x=f.x) for f in row]
        lines.append(classify(parts, page_width, thresholds))

    log.debug("Assembled %d fragments into %d lines", len(ordered), len(lines))
    return lines
