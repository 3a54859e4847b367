"""
PDF Converter - screenplay PDF to Fountain and HTML.

Follows heuristics-first, LLM-fallback pattern.
"""
import json
import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Literal, Optional

from fountain_serializer import serialize
from line_assembler import assemble_lines
from line_classifier import ClassifierThresholds
from models import ConversionResult, LineType, PageFragments, PageLines, ParsedScript
from pdf_extractor import ProgressCallback, iter_pdf_pages
from render_projector import render_document, render_teleprompter

log = logging.getLogger("screenplay.convert")

# LLM prompt for scene heading review when the layout heuristics find too few
SCENE_DETECTION_PROMPT = """Analyze these screenplay lines and identify ALL scene headings.

Scene headings typically look like:
- INT. LOCATION - TIME
- EXT. LOCATION - TIME
- INT/EXT. LOCATION - TIME
- I/E. LOCATION - TIME

Sometimes scene headings may be non-standard or missing the INT/EXT prefix.

Return ONLY a JSON array of the scene heading lines, copied exactly, in order:
["INT. KITCHEN - DAY", "EXT. PARK - NIGHT", ...]

If no scene headings are found, return: []

Lines to analyze:
"""

CODE_FENCE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)


def convert_pages(
    pages: Iterable[PageFragments],
    thresholds: Optional[ClassifierThresholds] = None
) -> list[PageLines]:
    """
    Assemble and classify the lines of each page, preserving page order.

    Args:
        pages: Extracted pages in page order
        thresholds: Classifier thresholds (default layout if None)

    Returns:
        PageLines for every page
    """
    return [
        PageLines(
            page_num=page.page_num,
            lines=assemble_lines(page.fragments, page.page_width, thresholds)
        )
        for page in pages
    ]


def count_scene_headings(pages: list[PageLines]) -> int:
    return sum(
        1 for page in pages for line in page.lines
        if line.type is LineType.SCENE_HEADING
    )


def convert_pdf(
    pdf_path: str,
    *,
    use_llm_fallback: bool = True,
    openai_api_key: Optional[str] = None,
    page_start: int = 1,
    page_end: Optional[int] = None,
    thresholds: Optional[ClassifierThresholds] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> ConversionResult:
    """
    Convert a screenplay PDF to Fountain markup.

    PDF reading errors propagate to the caller unchanged.

    Args:
        pdf_path: Path to the PDF file
        use_llm_fallback: Whether to ask an LLM for scene headings when few are found
        openai_api_key: OpenAI API key (or uses OPENAI_API_KEY env var)
        page_start: First page to process (1-indexed, default 1)
        page_end: Last page to process (inclusive, default all pages)
        thresholds: Classifier thresholds for non-standard layouts
        progress_callback: Called with (page_number, last_page) per page

    Returns:
        ConversionResult with Fountain text, classified pages and metadata
    """
    warnings: list[str] = []
    used_llm = False

    # Step 1: Extract and classify, one page at a time in page order
    pages = convert_pages(
        iter_pdf_pages(pdf_path, page_start, page_end, progress_callback),
        thresholds
    )
    total_pages = len(pages)

    if total_pages == 0:
        return ConversionResult(
            fountain="",
            pages=[],
            total_pages=0,
            scene_headings=0,
            warnings=["No pages in specified range"],
            confidence="low"
        )

    if not any(page.lines for page in pages):
        warnings.append("PDF appears to be empty or image-only")

    # Step 2: Ask the LLM when the layout yields too few scene headings
    scene_headings = count_scene_headings(pages)
    api_key = openai_api_key or os.environ.get("OPENAI_API_KEY")

    if scene_headings < 2 and api_key and use_llm_fallback and any(page.lines for page in pages):
        warnings.append(f"Layout heuristics found {scene_headings} scene heading(s), asking LLM")
        headings = _llm_find_scene_headings(pages, api_key)
        if headings:
            pages = apply_scene_headings(pages, headings)
            used_llm = True
            scene_headings = count_scene_headings(pages)
            log.info("LLM review raised scene headings to %d", scene_headings)

    # Step 3: Evaluate confidence
    confidence: Literal["high", "medium", "low"]
    if scene_headings >= 5:
        confidence = "high"
    elif scene_headings >= 2:
        confidence = "medium"
    else:
        confidence = "low"
        warnings.append("Fewer than 2 scene headings recovered; check the page layout")

    return ConversionResult(
        fountain=serialize(pages),
        pages=pages,
        total_pages=total_pages,
        scene_headings=scene_headings,
        warnings=warnings,
        used_llm_fallback=used_llm,
        confidence=confidence
    )


def apply_scene_headings(pages: list[PageLines], headings: list[str]) -> list[PageLines]:
    """
    Retype lines whose text matches one of the given headings.

    Args:
        pages: Classified pages
        headings: Scene heading strings (compared case-insensitively)

    Returns:
        New PageLines; matching lines become scene headings
    """
    wanted = {h.strip().lower() for h in headings if h.strip()}
    return [
        PageLines(
            page_num=page.page_num,
            lines=[
                replace(line, type=LineType.SCENE_HEADING)
                if line.text.strip().lower() in wanted else line
                for line in page.lines
            ]
        )
        for page in pages
    ]


def _llm_find_scene_headings(
    pages: list[PageLines],
    api_key: str,
    max_chars: int = 30000
) -> list[str]:
    """
    Use OpenAI GPT-4o-mini to find scene headings among classified lines.

    Args:
        pages: Classified pages
        api_key: OpenAI API key
        max_chars: Maximum characters to send (default 30000)

    Returns:
        List of scene heading strings
    """
    try:
        from openai import OpenAI
        client = OpenAI(api_key=api_key)

        text = '\n'.join(line.text for page in pages for line in page.lines)
        sample = text[:max_chars]

        response = client.chat.completions.create(
            model="gpt-4o-mini",
            messages=[
                {"role": "system", "content": "You are a screenplay analyst. Return only valid JSON arrays."},
                {"role": "user", "content": f"{SCENE_DETECTION_PROMPT}\n\n{sample}"}
            ],
            temperature=0
        )

        result = response.choices[0].message.content.strip()

        # Model output may come wrapped in a markdown code block
        fenced = CODE_FENCE.match(result)
        if fenced:
            result = fenced.group(1)

        headings = json.loads(result)
        return [h for h in headings if isinstance(h, str)]

    except json.JSONDecodeError as e:
        log.warning("LLM returned invalid JSON: %s", e)
        return []
    except Exception as e:
        log.warning("LLM scene detection failed: %s", e)
        return []


def write_fountain_file(fountain: str, output_path: str) -> str:
    """Write Fountain text to disk, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(fountain)
    return str(path)


def write_html_files(
    script: ParsedScript,
    output_dir: str,
    stem: str,
    font_size: int = 48
) -> list[str]:
    """
    Write the static HTML view and the teleprompter view of a script.

    Args:
        script: Tokenized script
        output_dir: Directory for output files
        stem: Base file name without extension
        font_size: Teleprompter font size in pixels

    Returns:
        List of created file paths
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    outputs = {
        Path(output_dir) / f"{stem}.html": render_document(script),
        Path(output_dir) / f"{stem}_teleprompter.html": render_teleprompter(script, font_size),
    }

    for path, html in outputs.items():
        with open(path, 'w', encoding='utf-8') as f:
            f.write(html)

    return [str(path) for path in outputs]


def write_summary(
    result: ConversionResult,
    script: ParsedScript,
    output_dir: str,
    source_pdf: str
) -> str:
    """
    Write a human-readable summary file.

    Args:
        result: ConversionResult from convert_pdf()
        script: Tokenized Fountain output
        output_dir: Directory for output
        source_pdf: Original PDF path

    Returns:
        Path to summary file
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    summary_path = Path(output_dir) / "conversion_summary.txt"

    counts: dict[str, int] = {}
    for token in script.tokens:
        counts[token.type.value] = counts.get(token.type.value, 0) + 1

    lines = [
        "PDF Conversion Summary",
        "=" * 50,
        f"Source: {source_pdf}",
        f"Total pages: {result.total_pages}",
        f"Scene headings: {result.scene_headings}",
        f"Confidence: {result.confidence}",
        f"Used LLM fallback: {result.used_llm_fallback}",
        "",
    ]

    if result.warnings:
        lines.append("Warnings:")
        for w in result.warnings:
            lines.append(f"  - {w}")
        lines.append("")

    lines.append("Tokens:")
    lines.append("-" * 50)
    for name, count in sorted(counts.items()):
        lines.append(f"  {name:<15} {count}")

    with open(summary_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))

    return str(summary_path)
