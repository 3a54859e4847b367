"""
Projects a token stream into styled HTML.

The same fragments feed the static script page and the teleprompter page.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from jinja2 import Environment
from markupsafe import Markup

from models import ParsedScript, Token, TokenType

FILM_CLIP_LABEL = "FILM CLIP"

CSS_CLASSES: dict[TokenType, str] = {
    TokenType.SCENE_HEADING: "scene-heading",
    TokenType.ACTION: "action",
    TokenType.CHARACTER: "character",
    TokenType.DIALOGUE: "dialogue",
    TokenType.PARENTHETICAL: "parenthetical",
    TokenType.TRANSITION: "transition",
    TokenType.CENTERED: "centered",
    TokenType.PAGE_BREAK: "page-break",
    TokenType.FILM_CLIP: "film-clip",
}


@dataclass(frozen=True)
class Fragment:
    """One styled output block. css_class is None for unrecognised tokens."""
    css_class: Optional[str]
    text: str

    def to_html(self) -> Markup:
        if self.css_class is None:
            return Markup('<div>{}</div>').format(self.text)
        return Markup('<div class="{}">{}</div>').format(self.css_class, self.text)


def _fragment(token: Token) -> Fragment:
    try:
        token_type = TokenType(token.type)
    except ValueError:
        return Fragment(css_class=None, text=token.text)

    text = token.text
    if token_type is TokenType.PAGE_BREAK:
        text = ''
    elif token_type is TokenType.FILM_CLIP:
        text = f"{FILM_CLIP_LABEL}: {token.text}" if token.text else FILM_CLIP_LABEL
    return Fragment(css_class=CSS_CLASSES.get(token_type), text=text)


def project_fragments(tokens: Iterable[Token]) -> list[Fragment]:
    """Map each token to a fragment, keeping token order."""
    return [_fragment(token) for token in tokens]


def project(tokens: Iterable[Token]) -> str:
    """Render tokens as a sequence of HTML div blocks."""
    return ''.join(fragment.to_html() for fragment in project_fragments(tokens))


SCRIPT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{{ meta.title }}</title>
  <style>
    body { font-family: Courier, monospace; max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.5; }
    .title-page { text-align: center; margin-bottom: 50px; }
    .title { font-size: 24px; font-weight: bold; margin-bottom: 20px; }
    .author { font-size: 18px; margin-bottom: 10px; }
    .scene-heading { font-weight: bold; margin-top: 30px; margin-bottom: 10px; }
    .action { margin-bottom: 10px; }
    .character { margin-left: 200px; margin-top: 20px; font-weight: bold; }
    .dialogue { margin-left: 100px; margin-right: 100px; margin-bottom: 20px; }
    .parenthetical { margin-left: 150px; font-style: italic; }
    .transition { text-align: right; font-weight: bold; margin: 20px 0; }
    .centered { text-align: center; margin: 20px 0; }
    .page-break { page-break-after: always; margin: 30px 0; border-bottom: 1px dashed #999; }
    .film-clip { color: #b00; font-weight: bold; margin: 20px 0; }
  </style>
</head>
<body>
  <div class="title-page">
    <div class="title">{{ meta.title }}</div>
    <div class="author">by {{ meta.author }}</div>
  </div>
  <div class="script">
{% for fragment in fragments %}    {{ fragment.to_html() }}
{% endfor %}  </div>
</body>
</html>
"""

TELEPROMPTER_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ meta.title }} - Teleprompter</title>
  <style>
    body, html { margin: 0; padding: 0; background-color: black; color: white; font-family: 'Courier New', monospace; }
    .content-wrapper { padding: 20px; max-width: 800px; margin: 0 auto; font-size: {{ font_size }}px; }
    .content-wrapper * { color: white; background-color: transparent; }
    .scene-heading { font-weight: bold; margin-top: 1.5em; }
    .character { text-align: center; margin-top: 1em; font-weight: bold; }
    .dialogue { margin: 0 10%; }
    .parenthetical { text-align: center; font-style: italic; }
    .transition { text-align: right; }
    .centered { text-align: center; }
    .page-break { margin: 2em 0; }
    .film-clip { color: #ff0 !important; font-weight: bold; margin: 1em 0; }
  </style>
</head>
<body>
  <div class="content-wrapper">
{% for fragment in fragments %}    {{ fragment.to_html() }}
{% endfor %}  </div>
</body>
</html>
"""

_env = Environment(autoescape=True)


def render_document(script: ParsedScript) -> str:
    """Static HTML page with a title page and the styled script."""
    template = _env.from_string(SCRIPT_TEMPLATE)
    return template.render(meta=script.metadata, fragments=project_fragments(script.tokens))


def render_teleprompter(script: ParsedScript, font_size: int = 48) -> str:
    """White on black page for the teleprompter display."""
    template = _env.from_string(TELEPROMPTER_TEMPLATE)
    return template.render(
        meta=script.metadata,
        fragments=project_fragments(script.tokens),
        font_size=font_size
    )
