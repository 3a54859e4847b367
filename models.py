"""
Data models for PDF screenplay conversion.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

DEFAULT_TITLE = "Untitled Script"
DEFAULT_AUTHOR = "Unknown Author"


class LineType(str, Enum):
    """Structural type recovered for a line of a PDF page."""
    SCENE_HEADING = "scene_heading"
    CHARACTER = "character"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"
    TRANSITION = "transition"
    ACTION = "action"


class TokenType(str, Enum):
    """Token types produced by parsing Fountain markup."""
    SCENE_HEADING = "scene_heading"
    ACTION = "action"
    CHARACTER = "character"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"
    TRANSITION = "transition"
    CENTERED = "centered"
    PAGE_BREAK = "page_break"
    FILM_CLIP = "film_clip"


@dataclass(frozen=True)
class PositionedFragment:
    """A run of text placed on a page."""
    text: str
    x: float
    y: float                  # PDF user space: larger y is higher on the page


@dataclass(frozen=True)
class LinePart:
    """One fragment of an assembled line, as seen by the classifier."""
    text: str
    x: float


@dataclass(frozen=True)
class Line:
    """A classified row of screenplay text."""
    text: str
    type: LineType
    indent_percent: float = 0.0


@dataclass
class PageLines:
    """Classified lines of a single page."""
    page_num: int             # 1-indexed
    lines: list[Line]


@dataclass
class PageFragments:
    """Raw positioned text of a single page."""
    page_num: int             # 1-indexed
    page_width: float
    fragments: list[PositionedFragment]


@dataclass(frozen=True)
class Token:
    """A typed unit of parsed Fountain markup."""
    type: TokenType
    text: str


@dataclass(frozen=True)
class DocumentMetadata:
    """Title page information with display defaults."""
    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR


@dataclass
class ParsedScript:
    """Result of tokenizing Fountain markup."""
    title: Optional[str]
    author: Optional[str]
    tokens: list[Token]
    extras: dict[str, str] = field(default_factory=dict)

    @property
    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(
            title=self.title or DEFAULT_TITLE,
            author=self.author or DEFAULT_AUTHOR
        )


@dataclass
class ConversionResult:
    """Result of converting a PDF screenplay to Fountain."""
    fountain: str
    pages: list[PageLines]
    total_pages: int
    scene_headings: int
    warnings: list[str] = field(default_factory=list)
    used_llm_fallback: bool = False
    confidence: Literal["high", "medium", "low"] = "high"
