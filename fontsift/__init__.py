"""
fontsift: find the codepoints each font-family actually renders, on live
pages or in static HTML/CSS, and subset fonts down to them.
"""

__version__ = "0.1.0"

from .css import FontFace, FontFamilyRule, parse_stylesheet, resolve_variables
from .frontier import CrawlFrontier, filter_links, normalize_url
from .glyph_sets import UNIVERSAL_FAMILY, GlyphSets, add_whitelist, select
from .scanner import (
    NavigationError,
    ScanError,
    ScanOptions,
    ScanResult,
    ScanSession,
    ScriptEvaluationError,
    scan_site,
)
from .static_analysis import StaticAnalysis, analyze_static, extract_css_from_html
from .subset import SubsetError, subset_font_file, subset_font_to_woff2
from .unicode_range import encode_unicode_range, parse_unicode_range

__all__ = [
    "CrawlFrontier",
    "FontFace",
    "FontFamilyRule",
    "GlyphSets",
    "NavigationError",
    "ScanError",
    "ScanOptions",
    "ScanResult",
    "ScanSession",
    "ScriptEvaluationError",
    "StaticAnalysis",
    "SubsetError",
    "UNIVERSAL_FAMILY",
    "add_whitelist",
    "analyze_static",
    "encode_unicode_range",
    "extract_css_from_html",
    "filter_links",
    "normalize_url",
    "parse_stylesheet",
    "parse_unicode_range",
    "resolve_variables",
    "scan_site",
    "select",
    "subset_font_file",
    "subset_font_to_woff2",
]
