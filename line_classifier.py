"""
Infers the screenplay line type from a line's position and shape.

The page layout carries no semantic tags, so every line is typed from its
horizontal indentation, its approximate width and the shape of its text.
Rules are evaluated in a fixed priority order and the first match wins.
The default thresholds are tuned for US-letter screenplays in the standard
Courier layout; other layouts may need their own ClassifierThresholds.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from models import Line, LinePart, LineType

log = logging.getLogger("screenplay.classify")

# Standard prefixes win over every positional rule
SCENE_PREFIX_OVERRIDE = re.compile(r'^(?:INT\.?/EXT|INT/EXT|I/E|INT|EXT)[.\s]')

SCENE_PREFIX_PATTERN = re.compile(r'^(?:INT\.|EXT\.|INT/EXT\.|I/E\.)', re.IGNORECASE)
SLUG_LIKE_PATTERN = re.compile(r'^[A-Z0-9\s.\-]+$')
TRANSITION_PATTERN = re.compile(r'^[A-Z\s]+TO:$')


@dataclass(frozen=True)
class ClassifierThresholds:
    """Layout thresholds, in percent of page width unless noted."""
    character_indent: tuple[float, float] = (35.0, 45.0)
    character_max_width: float = 30.0
    dialogue_indent: tuple[float, float] = (15.0, 35.0)
    dialogue_max_width: float = 60.0
    transition_min_indent: float = 55.0
    scene_heading_max_indent: float = 15.0
    scene_heading_max_length: int = 60   # characters
    glyph_width: float = 5.0             # page units per character
    y_tolerance: float = 2.0             # page units, used by the line assembler


DEFAULT_THRESHOLDS = ClassifierThresholds()


@dataclass(frozen=True)
class LineShape:
    """Measurements a rule looks at."""
    text: str
    indent_percent: float
    width_percent: float


Predicate = Callable[[LineShape, ClassifierThresholds], bool]


def _is_scene_override(shape: LineShape, t: ClassifierThresholds) -> bool:
    return bool(SCENE_PREFIX_OVERRIDE.match(shape.text))


def _is_character(shape: LineShape, t: ClassifierThresholds) -> bool:
    low, high = t.character_indent
    return (
        low < shape.indent_percent < high
        and shape.width_percent < t.character_max_width
        and shape.text.isupper()
        and not shape.text.endswith(':')
    )


def _is_dialogue(shape: LineShape, t: ClassifierThresholds) -> bool:
    low, high = t.dialogue_indent
    return low < shape.indent_percent < high and shape.width_percent < t.dialogue_max_width


def _is_transition(shape: LineShape, t: ClassifierThresholds) -> bool:
    if shape.indent_percent <= t.transition_min_indent:
        return False
    text = shape.text
    return bool(TRANSITION_PATTERN.match(text)) or 'FADE' in text or 'CUT' in text


def _is_scene_heading(shape: LineShape, t: ClassifierThresholds) -> bool:
    if shape.indent_percent >= t.scene_heading_max_indent:
        return False
    text = shape.text
    if SCENE_PREFIX_PATTERN.match(text):
        return True
    return bool(SLUG_LIKE_PATTERN.match(text)) and len(text) < t.scene_heading_max_length


# First match wins. The prefix override stays ahead of the positional rules.
RULES: tuple[tuple[str, Predicate, LineType], ...] = (
    ("scene_prefix", _is_scene_override, LineType.SCENE_HEADING),
    ("character", _is_character, LineType.CHARACTER),
    ("dialogue", _is_dialogue, LineType.DIALOGUE),
    ("transition", _is_transition, LineType.TRANSITION),
    ("scene_heading", _is_scene_heading, LineType.SCENE_HEADING),
)


def measure(
    line_parts: Sequence[LinePart],
    page_width: float,
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS
) -> LineShape:
    """
    Compute text, indentation and approximate width of a line.

    Width is estimated from the last part's start plus an average glyph
    width per character, since fragments carry no extent of their own.
    """
    text = ' '.join(part.text for part in line_parts).strip()
    if not line_parts or page_width <= 0:
        return LineShape(text=text, indent_percent=0.0, width_percent=0.0)

    first_x = line_parts[0].x
    last = line_parts[-1]
    last_x = last.x + len(last.text) * thresholds.glyph_width
    return LineShape(
        text=text,
        indent_percent=first_x / page_width * 100,
        width_percent=(last_x - first_x) / page_width * 100
    )


def classify(
    line_parts: Sequence[LinePart],
    page_width: float,
    thresholds: Optional[ClassifierThresholds] = None
) -> Line:
    """
    Classify one assembled line.

    Args:
        line_parts: Fragments of the line, left to right
        page_width: Page width in the same units as the fragment x values
        thresholds: Layout thresholds (default: DEFAULT_THRESHOLDS)

    Returns:
        Line with text, type and indentation
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    shape = measure(line_parts, page_width, thresholds)

    if not line_parts or page_width <= 0:
        log.debug("Degenerate geometry (width=%s), defaulting to action: %r", page_width, shape.text)
        return Line(text=shape.text, type=LineType.ACTION, indent_percent=shape.indent_percent)

    line_type = LineType.ACTION
    for name, predicate, rule_type in RULES:
        if predicate(shape, thresholds):
            line_type = rule_type
            log.debug("%-13s indent=%5.1f width=%5.1f %r", name, shape.indent_percent,
                      shape.width_percent, shape.text)
            break

    return Line(text=shape.text, type=line_type, indent_percent=shape.indent_percent)
