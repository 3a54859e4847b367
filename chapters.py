"""
Chapter index over film clip markers in script text.
"""
from dataclasses import dataclass
from typing import Literal, Optional, Union

CHAPTER_MARKER = "FILM CLIP"


@dataclass
class Chapter:
    """A film clip line and its character span in the script."""
    script_id: Optional[Union[int, str]]
    title: str
    start_position: int       # Character offset of the line start
    end_position: int         # Offset just past the line's last character


@dataclass
class HighlightedLine:
    type: Literal["film-clip", "text"]
    content: str
    index: int


def parse_chapters(content: str, script_id: Optional[Union[int, str]] = None) -> list[Chapter]:
    """
    Find every line containing a film clip marker.

    Args:
        content: Script text
        script_id: Identifier copied onto each chapter

    Returns:
        Chapters in document order
    """
    chapters = []
    position = 0

    for line in content.split('\n'):
        stripped = line.strip()
        if CHAPTER_MARKER in stripped:
            chapters.append(Chapter(
                script_id=script_id,
                title=stripped,
                start_position=position,
                end_position=position + len(line)
            ))
        position += len(line) + 1  # +1 for newline

    return chapters


def highlight_film_clips(content: str) -> list[HighlightedLine]:
    """Label each line of the script as a film clip line or plain text."""
    if not content:
        return []
    return [
        HighlightedLine(
            type="film-clip" if CHAPTER_MARKER in line else "text",
            content=line,
            index=index
        )
        for index, line in enumerate(content.split('\n'))
    ]
