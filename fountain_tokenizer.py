"""
Tokenizes Fountain screenplay markup.

Covers the subset of Fountain written by the serializer plus the common
hand-authored forms: title page keys, scene headings, character cues,
parentheticals, dialogue, transitions, centered text, page breaks and the
film clip marker used by the teleprompter.

Parsing is a fold over the lines with an explicit ParseState value. A token
type depends only on the current line and the state left by the previous
non-blank line.
"""
import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from models import ParsedScript, Token, TokenType

log = logging.getLogger("screenplay.tokenize")

FILM_CLIP_MARKER = "[[FILM CLIP]]"

SCENE_HEADING_PATTERN = re.compile(r'^(?:INT|EXT|INT\./EXT|INT/EXT|I/E)[.\s]', re.IGNORECASE)
TITLE_KEY_PATTERN = re.compile(
    r'^(Title|Credit|Author|Authors|Source|Draft date|Date|Contact|Copyright):\s*(.*)$'
)
PAGE_BREAK_PATTERN = re.compile(r'^={3,}$')

TERMINAL_TRANSITIONS = frozenset({
    "FADE OUT",
    "FADE OUT.",
    "FADE TO BLACK.",
    "CUT TO BLACK",
    "CUT TO BLACK.",
})

# Non-key lines scanned before the title page is given up on
TITLE_SCAN_LIMIT = 5


class Phase(str, Enum):
    TITLE_BLOCK = "title_block"
    BODY = "body"


@dataclass(frozen=True)
class ParseState:
    """Parser state carried from one line to the next."""
    phase: Phase = Phase.TITLE_BLOCK
    lines_scanned: int = 0
    in_character: bool = False
    in_parenthetical: bool = False
    in_dialogue: bool = False
    in_transition: bool = False

    @property
    def in_speech(self) -> bool:
        return self.in_character or self.in_parenthetical

    @property
    def in_context(self) -> bool:
        return self.in_speech or self.in_dialogue or self.in_transition

    def cleared(self) -> "ParseState":
        return replace(
            self,
            in_character=False,
            in_parenthetical=False,
            in_dialogue=False,
            in_transition=False
        )


def _is_transition(line: str) -> bool:
    return line.isupper() and (line.endswith('TO:') or line in TERMINAL_TRANSITIONS)


def _is_forced_scene_heading(line: str) -> bool:
    return line.startswith('.') and not line.startswith('..') and len(line) > 1


def _scan_title_line(state: ParseState, line: str) -> ParseState:
    """Count a non-key line and leave the title block when it is over."""
    scanned = state.lines_scanned + 1
    if SCENE_HEADING_PATTERN.match(line) or _is_forced_scene_heading(line):
        return replace(state, phase=Phase.BODY, lines_scanned=scanned)
    if state.lines_scanned >= TITLE_SCAN_LIMIT and ':' not in line:
        return replace(state, phase=Phase.BODY, lines_scanned=scanned)
    return replace(state, lines_scanned=scanned)


def _body_token(state: ParseState, line: str) -> tuple[ParseState, Token]:
    """Type a non-blank line; the first matching rule wins."""
    # The film clip marker is honoured whatever the surrounding context
    if FILM_CLIP_MARKER in line:
        return state, Token(TokenType.FILM_CLIP, line.replace(FILM_CLIP_MARKER, '').strip())

    if PAGE_BREAK_PATTERN.match(line):
        return state.cleared(), Token(TokenType.PAGE_BREAK, '')

    if line.startswith('>') and line.endswith('<') and len(line) > 1:
        return state.cleared(), Token(TokenType.CENTERED, line[1:-1].strip())

    if line.startswith('>'):
        return replace(state.cleared(), in_transition=True), Token(TokenType.TRANSITION, line[1:].strip())

    if _is_forced_scene_heading(line):
        return state.cleared(), Token(TokenType.SCENE_HEADING, line[1:].strip())

    if SCENE_HEADING_PATTERN.match(line):
        return state.cleared(), Token(TokenType.SCENE_HEADING, line)

    if line.startswith('!'):
        return state.cleared(), Token(TokenType.ACTION, line[1:].strip())

    if not state.in_speech and _is_transition(line):
        return replace(state.cleared(), in_transition=True), Token(TokenType.TRANSITION, line)

    # Any context blocks a cue, so a serialized all-caps dialogue line stays dialogue
    if line.isupper() and not state.in_context:
        return replace(state, in_character=True), Token(TokenType.CHARACTER, line)

    if line.startswith('(') and line.endswith(')') and state.in_character:
        return replace(state, in_parenthetical=True), Token(TokenType.PARENTHETICAL, line)

    if state.in_speech:
        return replace(state, in_dialogue=True), Token(TokenType.DIALOGUE, line)

    return state, Token(TokenType.ACTION, line)


def read_body_line(line: str, after_cue: bool = False) -> Token:
    """Type a single body line as it reads after a blank line, or right after a cue."""
    state = ParseState(phase=Phase.BODY, in_character=after_cue)
    return _body_token(state, line.strip())[1]


def tokenize(markup: str) -> ParsedScript:
    """
    Parse Fountain markup into title page metadata and tokens.

    Args:
        markup: Fountain text (serializer output or hand-authored)

    Returns:
        ParsedScript; title and author are None when the markup has none
    """
    state = ParseState()
    tokens: list[Token] = []
    entries: dict[str, str] = {}

    for raw_line in (markup or '').split('\n'):
        line = raw_line.strip()

        if not line:
            if state.phase is Phase.TITLE_BLOCK and state.lines_scanned > 0:
                state = replace(state, phase=Phase.BODY)
            state = state.cleared()
            continue

        if state.phase is Phase.TITLE_BLOCK:
            # Key syntax inside a dialogue block is speech, not title page metadata
            match = None if state.in_speech else TITLE_KEY_PATTERN.match(line)
            if match:
                key, value = match.group(1).lower(), match.group(2).strip()
                if value:
                    entries[key] = value
                state = replace(state, lines_scanned=state.lines_scanned + 1)
                continue
            state = _scan_title_line(state, line)

        state, token = _body_token(state, line)
        tokens.append(token)

    title = entries.pop('title', None)
    author = entries.pop('author', None) or entries.pop('authors', None)
    log.debug("Tokenized %d tokens (title=%r, author=%r)", len(tokens), title, author)
    return ParsedScript(title=title, author=author, tokens=tokens, extras=entries)
