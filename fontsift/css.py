"""
Stylesheet parsing for static font analysis.

Only the parts of CSS that decide which font-family an element's text is set
in are understood: custom properties, ``var()`` substitution, ``font-family``
declarations and ``@font-face`` blocks. Anything tinycss2 cannot make sense of
is skipped rather than reported.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import tinycss2

logger = logging.getLogger(__name__)

MAX_VAR_PASSES = 10

# At-rules whose body is a list of rules rather than declarations. Rules inside
# them are conditional and never take part in the family cascade.
GROUPING_AT_RULES = {"media", "supports", "layer", "container", "document", "scope", "starting-style"}

_VAR_OPEN = re.compile(r"(?<![\w-])var\(", re.IGNORECASE)


@dataclass
class FontFamilyRule:
    selector: str
    family: str


@dataclass
class FontFace:
    family: str
    src: str
    weight: Optional[str] = None
    style: Optional[str] = None


@dataclass
class _Block:
    prelude: str
    at_keyword: Optional[str]
    declarations: List[Tuple[str, list]]
    nested: bool = False


@dataclass
class StyleSheet:
    rules: List[FontFamilyRule] = field(default_factory=list)
    font_faces: List[FontFace] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on ``sep`` outside of parentheses and quoted strings."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    for idx, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == sep and depth == 0:
            parts.append(text[start:idx])
            start = idx + 1
    parts.append(text[start:])
    return parts


def _closing_paren(text: str, start: int) -> int:
    depth = 1
    quote: Optional[str] = None
    for idx in range(start, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _next_var(value: str, pos: int) -> Optional[re.Match]:
    """Next ``var(`` at or after ``pos`` that is not part of a quoted string."""
    quote: Optional[str] = None
    for idx in range(pos, len(value)):
        ch = value[idx]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        else:
            match = _VAR_OPEN.match(value, idx)
            if match:
                return match
    return None


def _substitute_once(value: str, variables: Dict[str, str]) -> str:
    out: List[str] = []
    pos = 0
    while True:
        match = _next_var(value, pos)
        if not match:
            out.append(value[pos:])
            break
        out.append(value[pos:match.start()])
        close = _closing_paren(value, match.end())
        if close < 0:
            # unterminated var(): nothing usable after it
            logger.debug(f"Unterminated var() in {value!r}")
            break
        name, _, fallback = value[match.end():close].partition(",")
        name = name.strip()
        if name in variables:
            out.append(variables[name])
        elif fallback:
            out.append(fallback.strip())
        pos = close + 1
    return "".join(out)


def resolve_variables(value: str, variables: Dict[str, str], max_passes: int = MAX_VAR_PASSES) -> str:
    """
    Substitute ``var(--name[, fallback])`` references.

    Each pass replaces every outermost reference with the table value, then the
    fallback, then the empty string. Values and fallbacks may contain further
    references, which later passes pick up. Circular definitions stop after
    ``max_passes`` with whatever text is left.
    """
    for _ in range(max_passes):
        if _next_var(value, 0) is None:
            break
        value = _substitute_once(value, variables)
    return value


def strip_quotes(value: str) -> str:
    return value.strip().strip('"').strip("'").strip()


def first_family(value: str) -> str:
    """Primary entry of a font-family list, unquoted."""
    return strip_quotes(split_top_level(value, ",")[0])


def _declarations(content: list) -> List[Tuple[str, list]]:
    result = []
    for node in tinycss2.parse_blocks_contents(content or [], skip_comments=True, skip_whitespace=True):
        if node.type == "declaration":
            result.append((node.name, node.value))
    return result


def _iter_blocks(nodes: list, nested: bool = False) -> Iterator[_Block]:
    for node in nodes:
        if node.type == "qualified-rule":
            yield _Block(
                prelude=tinycss2.serialize(node.prelude).strip(),
                at_keyword=None,
                declarations=_declarations(node.content),
                nested=nested,
            )
        elif node.type == "at-rule":
            if node.content is None:
                continue
            if node.lower_at_keyword in GROUPING_AT_RULES:
                inner = tinycss2.parse_rule_list(node.content, skip_comments=True, skip_whitespace=True)
                yield from _iter_blocks(inner, nested=True)
            else:
                yield _Block(
                    prelude="@" + node.lower_at_keyword,
                    at_keyword=node.lower_at_keyword,
                    declarations=_declarations(node.content),
                    nested=nested,
                )
        elif node.type == "error":
            logger.debug(f"Skipping malformed CSS at {node.source_line}:{node.source_column}: {node.message}")


def _value_text(tokens: list) -> str:
    return tinycss2.serialize(tokens).strip()


def _first_url(tokens: list) -> Optional[str]:
    for token in tokens:
        if token.type == "url":
            return strip_quotes(token.value)
        if token.type == "function" and token.lower_name == "url":
            for arg in token.arguments:
                if arg.type == "string":
                    return arg.value
    return None


def parse_custom_properties(blocks: List[_Block]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for block in blocks:
        for name, value in block.declarations:
            if name.startswith("--"):
                variables[name] = _value_text(value)
    return variables


def _font_face(block: _Block, variables: Dict[str, str]) -> Optional[FontFace]:
    family = src = weight = style = None
    for name, value in block.declarations:
        lower = name.lower()
        if lower == "font-family":
            family = first_family(resolve_variables(_value_text(value), variables)) or None
        elif lower == "src":
            src = _first_url(value) or src
        elif lower == "font-weight":
            weight = _value_text(value)
        elif lower == "font-style":
            style = _value_text(value)
    if not family or not src:
        return None
    return FontFace(family=family, src=src, weight=weight, style=style)


def parse_stylesheet(css: str) -> StyleSheet:
    """Parse ``css`` once into family rules, font faces and the variable table."""
    nodes = tinycss2.parse_stylesheet(css or "", skip_comments=True, skip_whitespace=True)
    blocks = list(_iter_blocks(nodes))
    sheet = StyleSheet(variables=parse_custom_properties(blocks))

    for block in blocks:
        if block.at_keyword == "font-face":
            face = _font_face(block, sheet.variables)
            if face:
                sheet.font_faces.append(face)
            else:
                logger.debug("Dropping @font-face without family or src")
            continue
        if block.at_keyword or block.nested or not block.prelude or block.prelude.startswith("@"):
            continue
        for name, value in block.declarations:
            # the font shorthand is deliberately not interpreted
            if name.lower() != "font-family":
                continue
            family = first_family(resolve_variables(_value_text(value), sheet.variables))
            if family:
                sheet.rules.append(FontFamilyRule(selector=block.prelude, family=family))
            break
    return sheet


def parse_font_family_rules(css: str) -> List[FontFamilyRule]:
    return parse_stylesheet(css).rules


def parse_font_faces(css: str) -> List[FontFace]:
    return parse_stylesheet(css).font_faces
