import sys

import pytest

import main
from fountain_serializer import serialize
from fountain_tokenizer import tokenize
from models import Line, LineType, PageLines, TokenType
from render_projector import project

SCENE = [
    ("EXT. PARK - NIGHT", LineType.SCENE_HEADING),
    ("Rain falls.", LineType.ACTION),
    ("MARY", LineType.CHARACTER),
    ("(whispering)", LineType.PARENTHETICAL),
    ("Over here.", LineType.DIALOGUE),
    ("Quick!", LineType.DIALOGUE),
    ("JOHN", LineType.CHARACTER),
    ("Coming.", LineType.DIALOGUE),
    ("CUT TO:", LineType.TRANSITION),
    ("LATER", LineType.SCENE_HEADING),
    ("They run.", LineType.ACTION),
]


def test_round_trip_preserves_types_and_text():
    pages = [
        PageLines(page_num=1, lines=[Line(text, kind) for text, kind in SCENE[:6]]),
        PageLines(page_num=2, lines=[Line(text, kind) for text, kind in SCENE[6:]]),
    ]
    tokens = tokenize(serialize(pages)).tokens

    assert [t.type.value for t in tokens] == [kind.value for _, kind in SCENE]
    assert [t.text for t in tokens] == [text for text, _ in SCENE]


def test_living_room_end_to_end():
    lines = [
        Line("INT. LIVING ROOM - DAY", LineType.SCENE_HEADING),
        Line("John sits on the couch.", LineType.ACTION),
        Line("JOHN", LineType.CHARACTER),
        Line("Hello, world.", LineType.DIALOGUE),
        Line("CUT TO:", LineType.TRANSITION),
    ]
    script = tokenize(serialize([PageLines(page_num=1, lines=lines)]))

    assert [t.type for t in script.tokens] == [
        TokenType.SCENE_HEADING,
        TokenType.ACTION,
        TokenType.CHARACTER,
        TokenType.DIALOGUE,
        TokenType.TRANSITION,
    ]
    assert project(script.tokens).endswith('<div class="transition">CUT TO:</div>')


def test_cli_renders_fountain_file(tmp_path, monkeypatch):
    source = tmp_path / "pilot.fountain"
    source.write_text("Title: Pilot\n\nINT. HOUSE - DAY\n\nJOHN\nHello.\n", encoding="utf-8")
    out_dir = tmp_path / "out"
    monkeypatch.setattr(sys, "argv", ["main.py", str(source), "-o", str(out_dir)])

    main.main()

    html = (out_dir / "pilot.html").read_text(encoding="utf-8")
    assert '<div class="title">Pilot</div>' in html
    assert (out_dir / "pilot_teleprompter.html").exists()
    assert not (out_dir / "pilot.fountain").exists()


def test_cli_missing_file(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["main.py", str(tmp_path / "missing.pdf")])

    with pytest.raises(SystemExit) as exc:
        main.main()

    assert exc.value.code == 1
    assert "File not found" in capsys.readouterr().out


def test_cli_reports_unreadable_pdf(tmp_path, monkeypatch, mocker, capsys):
    source = tmp_path / "broken.pdf"
    source.write_bytes(b"not a pdf")
    mocker.patch("pdf_extractor.fitz.open", side_effect=RuntimeError("cannot open broken document"))
    monkeypatch.setattr(sys, "argv", ["main.py", str(source)])

    with pytest.raises(SystemExit) as exc:
        main.main()

    assert exc.value.code == 1
    assert "cannot open broken document" in capsys.readouterr().out
