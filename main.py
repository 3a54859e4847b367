"""
PDF Screenplay Converter - CLI Interface

Convert screenplay PDFs (or Fountain files) to Fountain markup plus a static
HTML view and a teleprompter view.

Usage:
    python main.py input.pdf [--pages N] [--preview] [--no-llm] [-o OUTPUT_DIR]
    python main.py input.fountain [-o OUTPUT_DIR]
"""
import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from chapters import parse_chapters
from fountain_tokenizer import tokenize
from models import ConversionResult
from pdf_converter import convert_pdf, write_fountain_file, write_html_files, write_summary
from pdf_extractor import get_total_pages

SUPPORTED_SUFFIXES = ('.pdf', '.fountain', '.txt')


def parse_page_range(value: str) -> tuple[int, int]:
    """'20' means the first 20 pages, '10-30' means pages 10 through 30."""
    try:
        if '-' in value:
            start, end = value.split('-', 1)
            return int(start), int(end)
        return 1, int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid page range: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert screenplay PDFs to Fountain and HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py script.pdf                    # Convert with defaults
    python main.py script.pdf --preview          # Show tokens without writing files
    python main.py script.pdf --pages 10-30      # Convert pages 10-30 only
    python main.py script.fountain -o out/       # Render an existing Fountain file
        """
    )
    parser.add_argument(
        "input",
        help="Input PDF or Fountain file"
    )
    parser.add_argument(
        "-o", "--output-dir",
        help="Output directory (default: <input>_fountain/)"
    )
    parser.add_argument(
        "--pages",
        type=parse_page_range,
        help="Page range: '20' for first 20 pages, '10-30' for pages 10-30"
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the recovered token sequence without creating files"
    )
    parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Disable LLM fallback for scene heading detection"
    )
    parser.add_argument(
        "--font-size",
        type=int,
        default=48,
        help="Teleprompter font size in pixels (default: 48)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output"
    )
    return parser


def _convert_pdf_with_progress(input_path: Path, args) -> ConversionResult:
    total_pages = get_total_pages(str(input_path))
    page_start, page_end = args.pages or (1, total_pages)
    page_start = max(1, page_start)
    page_end = min(page_end, total_pages)

    if args.pages:
        print(f"\nProcessing: {input_path.name} (pages {page_start}-{page_end} of {total_pages})")
    else:
        print(f"\nProcessing: {input_path.name} ({total_pages} pages)")

    with tqdm(total=max(page_end - page_start + 1, 0), desc="Reading pages",
              disable=not sys.stdout.isatty()) as pbar:
        return convert_pdf(
            str(input_path),
            use_llm_fallback=not args.no_llm,
            page_start=page_start,
            page_end=page_end,
            progress_callback=lambda page, last: pbar.update(1)
        )


def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # Validate input file
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: File not found: {args.input}")
        sys.exit(1)
    suffix = input_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        print(f"Error: Not a PDF or Fountain file: {args.input}")
        sys.exit(1)

    # Determine output directory
    if args.output_dir:
        output_dir = args.output_dir
    else:
        output_dir = str(input_path.parent / f"{input_path.stem}_fountain")

    result = None
    try:
        if suffix == '.pdf':
            result = _convert_pdf_with_progress(input_path, args)
            fountain = result.fountain
        else:
            fountain = input_path.read_text(encoding='utf-8')
    except (RuntimeError, OSError, ValueError) as e:
        print(f"Error: Could not read {args.input}: {e}")
        sys.exit(1)

    script = tokenize(fountain)

    # Summary
    print(f"\n{'='*50}")
    print(f"Title: {script.metadata.title}")
    print(f"Author: {script.metadata.author}")
    print(f"Tokens: {len(script.tokens)}")
    print(f"Film clips: {len(parse_chapters(fountain))}")
    if result is not None:
        print(f"Total pages: {result.total_pages}")
        print(f"Scene headings: {result.scene_headings}")
        print(f"Confidence: {result.confidence}")
        if result.used_llm_fallback:
            print("(Used LLM fallback for scene headings)")
    print(f"{'='*50}")

    # Show warnings
    if result is not None and result.warnings and args.verbose:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    # Preview mode
    if args.preview:
        print("\nPreview - Tokens:")
        for token in script.tokens[:40]:
            text_preview = token.text[:55] + "..." if len(token.text) > 55 else token.text
            print(f"  {token.type.value:<14} {text_preview}")
        if len(script.tokens) > 40:
            print(f"  ... and {len(script.tokens) - 40} more tokens")
        print(f"\nTo create files, run without --preview flag")
        return

    print(f"\nCreating files in: {output_dir}")
    created = []
    if result is not None:
        created.append(write_fountain_file(fountain, str(Path(output_dir) / f"{input_path.stem}.fountain")))
    created.extend(write_html_files(script, output_dir, input_path.stem, args.font_size))
    if result is not None:
        created.append(write_summary(result, script, output_dir, str(input_path)))

    for f in created:
        print(f"  - {Path(f).name}")

    print("\nDone!")


if __name__ == "__main__":
    main()
