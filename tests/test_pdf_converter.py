from unittest.mock import MagicMock

import pytest

import pdf_converter
from fountain_tokenizer import tokenize
from models import Line, LineType, PageFragments, PageLines, PositionedFragment, TokenType
from pdf_converter import apply_scene_headings, convert_pages, convert_pdf
from pdf_extractor import iter_pdf_pages


def frag(text, x, y):
    return PositionedFragment(text=text, x=x, y=y)


@pytest.fixture
def living_room_page():
    return PageFragments(page_num=1, page_width=500, fragments=[
        # Scene heading
        frag("INT", 10, 500), frag(". LIVING", 25, 500), frag("ROOM", 70, 500), frag("- DAY", 110, 500),
        # Action
        frag("A", 10, 480), frag("person", 20, 480), frag("walks", 60, 480), frag("in.", 95, 480),
        # Character
        frag("JOHN", 200, 460),
        # Dialogue
        frag("Hello", 100, 440), frag("there.", 135, 440),
        # Action
        frag("He", 10, 420), frag("sits", 30, 420), frag("down.", 55, 420),
        # Transition
        frag("CUT", 350, 400), frag("TO:", 380, 400),
    ])


def _pdf_page(width, height, spans):
    page = MagicMock()
    page.rect.width = width
    page.rect.height = height
    page.get_text.return_value = {"blocks": [
        {"type": 1},
        {"type": 0, "lines": [{"spans": [
            {"text": text, "origin": origin} for text, origin in spans
        ]}]},
    ]}
    return page


@pytest.fixture
def fake_pdf(mocker):
    pages = [
        _pdf_page(612, 792, [("INT. HOUSE - DAY", (20.0, 92.0)), ("   ", (300.0, 92.0))]),
        _pdf_page(612, 792, [("JOHN", (250.0, 120.0))]),
    ]
    doc = MagicMock()
    doc.__len__.return_value = len(pages)
    doc.__getitem__.side_effect = lambda i: pages[i]
    mocker.patch("pdf_extractor.fitz.open", return_value=doc)
    return doc


def test_iter_pdf_pages_flips_y_and_skips_whitespace(fake_pdf):
    progress = []
    pages = list(iter_pdf_pages("script.pdf", progress_callback=lambda n, last: progress.append((n, last))))

    assert [p.page_num for p in pages] == [1, 2]
    assert pages[0].page_width == 612
    assert pages[0].fragments == [frag("INT. HOUSE - DAY", 20.0, 700.0)]
    assert pages[1].fragments == [frag("JOHN", 250.0, 672.0)]
    assert progress == [(1, 2), (2, 2)]
    fake_pdf.close.assert_called_once()


def test_iter_pdf_pages_range(fake_pdf):
    pages = list(iter_pdf_pages("script.pdf", page_start=2, page_end=10))
    assert [p.page_num for p in pages] == [2]


def test_convert_pages_keeps_page_order(living_room_page):
    second = PageFragments(page_num=2, page_width=500, fragments=[frag("JOHN", 200, 700)])
    pages = convert_pages([living_room_page, second])

    assert [p.page_num for p in pages] == [1, 2]
    assert [line.type for line in pages[0].lines] == [
        LineType.SCENE_HEADING,
        LineType.ACTION,
        LineType.CHARACTER,
        LineType.DIALOGUE,
        LineType.ACTION,
        LineType.TRANSITION,
    ]
    assert pages[1].lines[0].type is LineType.CHARACTER


def test_convert_pdf(mocker, living_room_page):
    mocker.patch("pdf_converter.iter_pdf_pages", return_value=[living_room_page])
    result = convert_pdf("script.pdf", use_llm_fallback=False)

    assert result.fountain == (
        ".INT . LIVING ROOM - DAY\n"
        "\n"
        "A person walks in.\n"
        "\n"
        "JOHN\n"
        "Hello there.\n"
        "\n"
        "He sits down.\n"
        "\n"
        ">CUT TO:\n"
    )
    assert result.total_pages == 1
    assert result.scene_headings == 1
    assert result.confidence == "low"
    assert not result.used_llm_fallback

    tokens = tokenize(result.fountain).tokens
    assert [t.type for t in tokens] == [
        TokenType.SCENE_HEADING,
        TokenType.ACTION,
        TokenType.CHARACTER,
        TokenType.DIALOGUE,
        TokenType.ACTION,
        TokenType.TRANSITION,
    ]


def test_convert_pdf_no_pages(mocker):
    mocker.patch("pdf_converter.iter_pdf_pages", return_value=[])
    result = convert_pdf("script.pdf", use_llm_fallback=False)

    assert result.fountain == ""
    assert result.confidence == "low"
    assert result.warnings == ["No pages in specified range"]


def test_convert_pdf_image_only(mocker):
    mocker.patch("pdf_converter.iter_pdf_pages",
                 return_value=[PageFragments(page_num=1, page_width=612, fragments=[])])
    result = convert_pdf("script.pdf", openai_api_key="sk-test")

    assert result.fountain == ""
    assert "PDF appears to be empty or image-only" in result.warnings
    assert not result.used_llm_fallback


def test_convert_pdf_propagates_reader_errors(mocker):
    mocker.patch("pdf_extractor.fitz.open", side_effect=RuntimeError("cannot open broken document"))
    with pytest.raises(RuntimeError, match="cannot open"):
        convert_pdf("broken.pdf", use_llm_fallback=False)


def test_convert_pdf_llm_review(mocker, living_room_page):
    mocker.patch("pdf_converter.iter_pdf_pages", return_value=[living_room_page])
    review = mocker.patch("pdf_converter._llm_find_scene_headings", return_value=["He sits down."])

    result = convert_pdf("script.pdf", openai_api_key="sk-test")

    review.assert_called_once()
    assert result.used_llm_fallback
    assert result.scene_headings == 2
    assert result.confidence == "medium"
    assert ".He sits down.\n" in result.fountain


def test_convert_pdf_without_key_skips_llm(mocker, monkeypatch, living_room_page):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    mocker.patch("pdf_converter.iter_pdf_pages", return_value=[living_room_page])
    review = mocker.patch("pdf_converter._llm_find_scene_headings")

    convert_pdf("script.pdf")

    review.assert_not_called()


def test_apply_scene_headings_does_not_mutate():
    pages = [PageLines(page_num=1, lines=[Line("later that night", LineType.ACTION)])]
    updated = apply_scene_headings(pages, ["LATER THAT NIGHT"])

    assert updated[0].lines[0].type is LineType.SCENE_HEADING
    assert pages[0].lines[0].type is LineType.ACTION


def _openai_reply(mocker, content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    client.chat.completions.create.return_value.choices = [MagicMock(message=message)]
    mocker.patch("openai.OpenAI", return_value=client)
    return client


def test_llm_find_scene_headings_strips_code_fence(mocker):
    _openai_reply(mocker, '```json\n["INT. HOUSE - DAY", 3]\n```')
    pages = [PageLines(page_num=1, lines=[Line("INT. HOUSE - DAY", LineType.ACTION)])]

    assert pdf_converter._llm_find_scene_headings(pages, "sk-test") == ["INT. HOUSE - DAY"]


def test_llm_find_scene_headings_invalid_json(mocker):
    _openai_reply(mocker, "not json")
    pages = [PageLines(page_num=1, lines=[Line("Something", LineType.ACTION)])]

    assert pdf_converter._llm_find_scene_headings(pages, "sk-test") == []


def test_output_writers(tmp_path, mocker, living_room_page):
    mocker.patch("pdf_converter.iter_pdf_pages", return_value=[living_room_page])
    result = convert_pdf("script.pdf", use_llm_fallback=False)
    script = tokenize(result.fountain)
    out_dir = tmp_path / "out"

    fountain_path = pdf_converter.write_fountain_file(result.fountain, str(out_dir / "script.fountain"))
    html_paths = pdf_converter.write_html_files(script, str(out_dir), "script")
    summary_path = pdf_converter.write_summary(result, script, str(out_dir), "script.pdf")

    assert (out_dir / "script.fountain").read_text(encoding="utf-8") == result.fountain
    assert fountain_path == str(out_dir / "script.fountain")
    assert [p.rsplit("/", 1)[-1] for p in html_paths] == ["script.html", "script_teleprompter.html"]
    summary = (out_dir / "conversion_summary.txt").read_text(encoding="utf-8")
    assert summary_path.endswith("conversion_summary.txt")
    assert "Scene headings: 1" in summary
    assert "character       1" in summary
