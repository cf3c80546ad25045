"""
Static HTML/CSS analysis: which characters are set in which font-family,
without a browser.

The cascade here is an ordered rule scan, not a style engine. For every
element the last rule whose selector matches wins; when nothing matches the
ancestors are tried from the nearest outward and the first one with a match
decides. Source order stands in for specificity, and there is no support for
``!important`` or media queries.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import soupsieve as sv
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .css import FontFace, FontFamilyRule, parse_stylesheet

logger = logging.getLogger(__name__)

DEFAULT_FAMILY = "sans-serif"

SKIPPED_TAGS = {"script", "style", "noscript", "template"}

HTML_PARSER = "lxml"

_CompiledRule = Tuple[Optional[sv.SoupSieve], str]


@dataclass
class StaticAnalysis:
    chars_per_family: Dict[str, Set[int]] = field(default_factory=dict)
    font_faces: List[FontFace] = field(default_factory=list)


def _compile_rules(rules: List[FontFamilyRule]) -> List[_CompiledRule]:
    compiled: List[_CompiledRule] = []
    for rule in rules:
        try:
            compiled.append((sv.compile(rule.selector), rule.family))
        except Exception as exc:
            # pseudo-elements, unknown pseudo-classes and plain garbage
            logger.debug(f"Unusable selector {rule.selector!r}: {exc}")
            compiled.append((None, rule.family))
    return compiled


def _last_match(element: Tag, rules: List[_CompiledRule]) -> Optional[str]:
    matched = None
    for selector, family in rules:
        if selector is None:
            continue
        try:
            if selector.match(element):
                matched = family
        except Exception as exc:
            logger.debug(f"Selector match failed on <{element.name}>: {exc}")
    return matched


def find_family_for_element(element: Tag, rules: List[_CompiledRule]) -> Optional[str]:
    family = _last_match(element, rules)
    if family is not None:
        return family
    for ancestor in element.parents:
        if isinstance(ancestor, BeautifulSoup):
            break
        family = _last_match(ancestor, rules)
        if family is not None:
            return family
    return None


def own_text(element: Tag) -> str:
    """Text of the element's direct text children, descendants excluded."""
    return "".join(
        str(child)
        for child in element.children
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
    )


def _inside_skipped(element: Tag) -> bool:
    if element.name in SKIPPED_TAGS:
        return True
    return any(parent.name in SKIPPED_TAGS for parent in element.parents)


def collect_chars_per_family(html: str, rules: List[FontFamilyRule]) -> Dict[str, Set[int]]:
    document = BeautifulSoup(html or "", HTML_PARSER)
    compiled = _compile_rules(rules)
    result: Dict[str, Set[int]] = {}

    for element in document.find_all(True):
        if _inside_skipped(element):
            continue
        text = own_text(element)
        if not text.strip():
            continue
        family = find_family_for_element(element, compiled) or DEFAULT_FAMILY
        result.setdefault(family, set()).update(ord(c) for c in text)
    return result


def analyze_static(html: str, css: str) -> StaticAnalysis:
    sheet = parse_stylesheet(css)
    logger.debug(
        f"Parsed {len(sheet.rules)} font-family rules, {len(sheet.font_faces)} @font-face blocks, "
        f"{len(sheet.variables)} custom properties"
    )
    return StaticAnalysis(
        chars_per_family=collect_chars_per_family(html, sheet.rules),
        font_faces=sheet.font_faces,
    )


def extract_css_from_html(html: str) -> str:
    """Concatenate the contents of every <style> element."""
    document = BeautifulSoup(html or "", HTML_PARSER)
    chunks = []
    for style in document.find_all("style"):
        chunks.append(style.get_text())
        chunks.append("\n")
    return "".join(chunks)
