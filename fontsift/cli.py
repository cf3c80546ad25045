#!/usr/bin/env python3
"""
fontsift command line: find the glyphs a site uses and subset fonts to them.
"""

import argparse
import asyncio
import logging
import sys
from glob import glob
from pathlib import Path
from typing import List, Optional

from .glyph_sets import UNIVERSAL_FAMILY, GlyphSets
from .report import build_report, read_text, write_json
from .scanner import DEFAULT_NAVIGATION_TIMEOUT_MS, ScanError, ScanOptions, ScanResult, ScanSession
from .static_analysis import analyze_static, extract_css_from_html
from .subset import SubsetError, subset_font_file
from .unicode_range import encode_unicode_range, parse_unicode_range

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.WARNING)
    logging.getLogger("fontTools").setLevel(logging.WARNING)


def expand_globs(patterns: List[str]) -> List[str]:
    files: List[str] = []
    for pattern in patterns:
        matches = sorted(glob(pattern))
        if not matches:
            logger.warning(f"No font files match {pattern!r}")
        for match in matches:
            if match not in files:
                files.append(match)
    return files


def analyze_html_files(html_files: List[str], css_files: List[str], glyph_sets: GlyphSets) -> list:
    extra_css = "\n".join(read_text(Path(p)) for p in css_files)
    font_faces = []
    for html_file in html_files:
        html = read_text(Path(html_file))
        css = extract_css_from_html(html) + "\n" + extra_css
        analysis = analyze_static(html, css)
        logger.info(f"Found {len(analysis.chars_per_family)} font families with glyphs in {html_file}")
        glyph_sets.merge(analysis.chars_per_family)
        # keep "*" the union of every family, as the in-page script does
        used = set().union(*analysis.chars_per_family.values())
        if used:
            glyph_sets.merge({UNIVERSAL_FAMILY: used})
        font_faces.extend(analysis.font_faces)
    return font_faces


def subset_fonts(font_files: List[str], codepoints: set, output_dir: Optional[str]) -> int:
    failed = 0
    for font_file in font_files:
        logger.info(f"Subsetting font: {font_file}")
        try:
            output = subset_font_file(font_file, codepoints, output_dir)
        except (SubsetError, OSError) as exc:
            logger.error(f"{exc}")
            failed += 1
            continue
        print(f"Created: {output}")
    return failed


async def main_async(args: argparse.Namespace) -> int:
    glyph_sets = GlyphSets()
    scan: Optional[ScanResult] = None
    font_faces = None

    if args.html:
        font_faces = analyze_html_files(args.html, args.css or [], glyph_sets)

    if args.urls:
        options = ScanOptions(
            spider_limit=args.spider_limit,
            navigation_timeout_ms=args.timeout,
            settle_ms=args.settle,
        )
        session = ScanSession(args.urls, options)
        try:
            scan = await session.run()
        except ScanError as exc:
            logger.error(f"Scan failed: {exc}")
            return 1
        glyph_sets.merge(scan.glyph_sets)

    if args.whitelist:
        glyph_sets.add_whitelist(args.whitelist)
    if args.unicodes:
        glyph_sets.merge({"*": parse_unicode_range(args.unicodes)})

    codepoints = glyph_sets.select(args.family)
    unicode_range = encode_unicode_range(codepoints)
    logger.info(f"Total unique characters: {len(codepoints)}, Unicode range: {unicode_range}")

    if args.report:
        write_json(Path(args.report), build_report(glyph_sets, codepoints, args.family, scan, font_faces))
        logger.info(f"Report: {args.report}")

    if not args.subset:
        print(unicode_range)
        return 0

    font_files = expand_globs(args.subset)
    failed = subset_fonts(font_files, codepoints, args.output)
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fontsift",
        description="Subset fonts based on actual glyph usage from web pages",
    )
    parser.add_argument("urls", nargs="*", help="URLs to scan for glyph usage")
    parser.add_argument("--html", action="append", help="Static HTML file to analyze without a browser (repeatable)")
    parser.add_argument("--css", action="append", help="Extra stylesheet applied to every --html file (repeatable)")
    parser.add_argument("--subset", "-s", action="append", help="Font files to subset (glob patterns supported)")
    parser.add_argument("--family", "-f", help="Only include glyphs used by these font families (comma-separated)")
    parser.add_argument(
        "--spider-limit",
        type=int,
        default=0,
        help="Maximum number of pages to visit while following same-origin links (0 = do not follow links)",
    )
    parser.add_argument("--whitelist", "-w", help="Additional characters to always include")
    parser.add_argument("--unicodes", help="Additional unicode-range to always include, e.g. U+20-7E")
    parser.add_argument("--output", "-o", help="Output directory for subset fonts (default: beside each font)")
    parser.add_argument("--report", help="Write a JSON report of families, ranges and pages to this path")
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_NAVIGATION_TIMEOUT_MS,
        help="Navigation timeout per page in milliseconds",
    )
    parser.add_argument("--settle", type=int, default=0, help="Extra wait after load in milliseconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.urls and not args.html:
        parser.error("at least one URL or --html file is required")
    if args.spider_limit < 0:
        parser.error("--spider-limit must be >= 0")

    configure_logging(args.verbose)
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
