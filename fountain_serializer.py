"""
Serializes classified screenplay lines into Fountain markup.

Blank lines depend only on the type of the previously emitted line, so the
output round-trips through the tokenizer by type and text, not by spacing.
"""
import logging
import re
from typing import Any, Iterable, Mapping, Optional, Union

from fountain_tokenizer import FILM_CLIP_MARKER, TITLE_KEY_PATTERN, read_body_line
from models import Line, LineType, PageLines, TokenType

log = logging.getLogger("screenplay.serialize")

SCENE_PREFIX_PATTERN = re.compile(r'^(?:INT\.|EXT\.|INT/EXT\.|I/E\.)', re.IGNORECASE)

SCENE_MARKER = '.'
TRANSITION_MARKER = '>'
ACTION_MARKER = '!'

PageInput = Union[PageLines, Mapping[str, Any]]


def _coerce_line(line: Union[Line, Mapping[str, Any]]) -> Line:
    if isinstance(line, Line):
        return line
    return Line(
        text=line.get("text", ""),
        type=LineType(line.get("type", LineType.ACTION.value)),
        indent_percent=line.get("indent", line.get("indent_percent", 0.0))
    )


def _iter_lines(pages: Iterable[PageInput]) -> Iterable[Line]:
    for page in pages:
        lines = page.lines if isinstance(page, PageLines) else page.get("lines", [])
        for line in lines:
            yield _coerce_line(line)


def _needs_blank(line_type: LineType, previous: Optional[LineType]) -> bool:
    """Whether a blank line separates this line from the previous one."""
    if previous is None:
        return False
    if line_type is LineType.SCENE_HEADING:
        return True
    if line_type is LineType.CHARACTER:
        return previous is not LineType.SCENE_HEADING
    if line_type in (LineType.DIALOGUE, LineType.PARENTHETICAL):
        return False
    if line_type is LineType.TRANSITION:
        return True
    if line_type is LineType.ACTION:
        return previous is not LineType.CHARACTER
    raise ValueError(f"Unhandled line type: {line_type}")


def _needs_action_marker(text: str, previous: Optional[LineType], in_title_block: bool) -> bool:
    """Whether plain action text would be read back as something else."""
    if FILM_CLIP_MARKER in text:
        return False
    if in_title_block and TITLE_KEY_PATTERN.match(text):
        return True
    token = read_body_line(text, after_cue=previous is LineType.CHARACTER)
    return token.type is not TokenType.ACTION or token.text != text


def _format_text(line: Line, previous: Optional[LineType], in_title_block: bool) -> str:
    text = line.text.strip()
    if line.type is LineType.SCENE_HEADING and not SCENE_PREFIX_PATTERN.match(text):
        # '..' opens ellipsis action, so dotted headings get a space after the marker
        if text.startswith(SCENE_MARKER):
            return f"{SCENE_MARKER} {text}"
        return SCENE_MARKER + text
    if line.type is LineType.TRANSITION:
        return TRANSITION_MARKER + text
    if line.type is LineType.ACTION and _needs_action_marker(text, previous, in_title_block):
        return ACTION_MARKER + text
    return text


def serialize(pages: Iterable[PageInput]) -> str:
    """
    Convert classified pages to Fountain text.

    Args:
        pages: PageLines (or {"page_num", "lines"} mappings) in page order

    Returns:
        Fountain formatted text, one line per classified line
    """
    out: list[str] = []
    previous: Optional[LineType] = None
    # Lines ahead of the first blank line are read as a possible title page
    in_title_block = True

    for line in _iter_lines(pages):
        if not line.text.strip():
            continue

        if _needs_blank(line.type, previous):
            out.append('')
            in_title_block = False
        out.append(_format_text(line, previous, in_title_block))
        previous = line.type

    log.debug("Serialized %d output lines", len(out))
    return ''.join(f"{text}\n" for text in out)
