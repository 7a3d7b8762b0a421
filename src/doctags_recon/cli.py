#!/usr/bin/env python
"""
Command-line interface for the DocTags Reconstruction Pipeline.

Usage:
    doctags-recon --input <page files or folders> --output <output_dir> [options]

Examples:
    # Render a converted page to Markdown and JSON
    doctags-recon --input page_001.txt --output ./output

    # Render a folder of pages to every format
    doctags-recon --input ./pages --output ./output --format all

    # Render OTSL table output
    doctags-recon --input table.txt --output ./output --prompt "Extract Table" --format html
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import logging
import time
from typing import List, Optional

from doctags_recon import __version__

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("doctags_recon")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="DocTags Reconstruction Pipeline - Convert tagged model output to structured formats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Render a page to Markdown and JSON:
    python -m doctags_recon.cli --input page.txt --output ./output

  Render a folder of pages to all formats:
    python -m doctags_recon.cli --input ./pages --output ./output --format all

  Render a chart extracted as OTSL:
    python -m doctags_recon.cli --input chart.txt --output ./output --prompt "Extract Chart" --format html
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        nargs="+",
        help="Raw model output files (one per page) or folders of them"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["markdown", "json"],
        choices=["markdown", "json", "html", "raw", "all"],
        help="Output format(s) (default: markdown json)"
    )

    parser.add_argument(
        "--prompt", "-p",
        default=None,
        help="Prompt (or its catalog label) the pages were generated with "
             "(default: full page conversion)"
    )

    parser.add_argument(
        "--name", "-n",
        default=None,
        help="Base name of the output files (default: first input's name)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to render, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (re-raises errors)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def parse_page_range(page_str: str, max_pages: int) -> List[int]:
    """Parse page range string to list of page numbers."""
    pages = []

    for part in page_str.split(","):
        part = part.strip()
        if "-" in part:
            start, end = part.split("-")
            start = max(int(start), 1)
            end = min(int(end), max_pages)
            pages.extend(range(start, end + 1))
        else:
            page = int(part)
            if 1 <= page <= max_pages:
                pages.append(page)

    return sorted(set(pages))


def resolve_prompt(prompt: Optional[str]) -> str:
    """Map a catalog label or free-form prompt to the prompt value."""
    from doctags_recon.config import find_prompt, FULL_PAGE_PROMPT

    if not prompt:
        return FULL_PAGE_PROMPT
    return find_prompt(prompt) or prompt


def run_pipeline(args) -> int:
    """Render the input pages and write the requested formats."""
    from doctags_recon.config import get_config
    from doctags_recon.utils.io import load_pages, ensure_dir
    from doctags_recon.utils.export import DocumentExporter

    start_time = time.time()
    config = get_config()

    try:
        pages = load_pages(args.input)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    if not pages:
        logger.error("No pages to render")
        return 1

    output_dir = ensure_dir(args.output)

    logger.info(f"Loaded {len(pages)} page(s)")

    if args.pages:
        page_numbers = parse_page_range(args.pages, len(pages))
        pages = [pages[i - 1] for i in page_numbers]
        logger.info(f"Rendering pages: {page_numbers}")

    prompt = resolve_prompt(args.prompt)
    logger.info(f"Prompt: {prompt}")

    base_name = args.name or Path(args.input[0]).stem
    exporter = DocumentExporter(output_dir, base_name, config=config)
    results = exporter.export(pages, args.format, prompts=[prompt] * len(pages))

    elapsed = time.time() - start_time

    if not args.quiet:
        print("\n" + "=" * 60)
        print("DOCTAGS RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Output: {output_dir}")
        print(f"Pages rendered: {len(pages)}")
        print(f"Processing time: {elapsed:.2f}s")
        for fmt, path in results.items():
            print(f"  {fmt}: {path}")
        print("=" * 60)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    from doctags_recon.config import get_config

    parser = setup_argparser()
    args = parser.parse_args(argv)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        return run_pipeline(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug or get_config().debug_mode:
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
