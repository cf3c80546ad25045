"""
Font subsetting to a codepoint set, with WOFF2 output.

Parsing, glyph-table subsetting and compression are all done by fontTools;
WOFF2 needs the brotli package.
"""

import enum
import logging
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Union

from fontTools import subset as ft_subset
from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

SUBSET_SUFFIX = "-subset.woff2"


class FontFormat(enum.Enum):
    TTF = "ttf"
    OTF = "otf"
    WOFF = "woff"
    WOFF2 = "woff2"
    UNKNOWN = "unknown"


_MAGIC = {
    b"wOF2": FontFormat.WOFF2,
    b"wOFF": FontFormat.WOFF,
    b"\x00\x01\x00\x00": FontFormat.TTF,
    b"OTTO": FontFormat.OTF,
    b"ttcf": FontFormat.TTF,
    b"true": FontFormat.TTF,
}


def detect_font_format(data: bytes) -> FontFormat:
    if len(data) < 4:
        return FontFormat.UNKNOWN
    return _MAGIC.get(bytes(data[:4]), FontFormat.UNKNOWN)


class SubsetError(Exception):
    """A font could not be parsed, subsetted or compressed."""

    KINDS = ("parse", "subset", "compress")

    def __init__(self, kind: str, message: str, path: Optional[Union[str, Path]] = None):
        self.kind = kind
        self.message = message
        self.path = str(path) if path is not None else None
        super().__init__(str(self))

    def __str__(self) -> str:
        verb = {
            "parse": "failed to parse font",
            "subset": "failed to subset font",
            "compress": "failed to compress to WOFF2",
        }.get(self.kind, "font error")
        if self.path:
            return f"{self.path}: {verb}: {self.message}"
        return f"{verb}: {self.message}"


def _subset_options() -> ft_subset.Options:
    options = ft_subset.Options()
    # keep layout features and names the way pyftsubset --layout-features='*' would
    options.layout_features = ["*"]
    options.name_IDs = ["*"]
    options.name_languages = ["*"]
    options.notdef_outline = True
    options.recalc_bounds = True
    return options


def _load(data: bytes) -> TTFont:
    if detect_font_format(data) is FontFormat.UNKNOWN:
        raise SubsetError("parse", "unrecognized font header")
    try:
        font = TTFont(BytesIO(data), fontNumber=0, lazy=False)
    except Exception as exc:
        raise SubsetError("parse", str(exc)) from exc
    font.flavor = None
    return font


def _subset(font: TTFont, codepoints: Iterable[int]) -> None:
    try:
        subsetter = ft_subset.Subsetter(options=_subset_options())
        subsetter.populate(unicodes=sorted(set(codepoints)))
        subsetter.subset(font)
    except Exception as exc:
        raise SubsetError("subset", str(exc)) from exc


def subset_font(data: bytes, codepoints: Iterable[int]) -> bytes:
    """Subset raw font bytes (TTF/OTF/WOFF/WOFF2) and return sfnt bytes."""
    font = _load(data)
    _subset(font, codepoints)
    buffer = BytesIO()
    try:
        font.save(buffer)
    except Exception as exc:
        raise SubsetError("subset", str(exc)) from exc
    return buffer.getvalue()


def subset_font_to_woff2(data: bytes, codepoints: Iterable[int]) -> bytes:
    font = _load(data)
    _subset(font, codepoints)
    font.flavor = "woff2"
    buffer = BytesIO()
    try:
        font.save(buffer)
    except Exception as exc:
        raise SubsetError("compress", str(exc)) from exc
    return buffer.getvalue()


def subset_output_path(font_path: Union[str, Path], output_dir: Optional[Union[str, Path]] = None) -> Path:
    path = Path(font_path)
    name = f"{path.stem}{SUBSET_SUFFIX}"
    if output_dir is not None:
        return Path(output_dir) / name
    return path.with_name(name)


def subset_font_file(
    font_path: Union[str, Path],
    codepoints: Iterable[int],
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Write ``<stem>-subset.woff2`` for ``font_path`` and return its path."""
    output_path = subset_output_path(font_path, output_dir)
    data = Path(font_path).read_bytes()
    logger.debug(f"Subsetting {font_path} ({detect_font_format(data).value}, {len(data)} bytes)")
    try:
        woff2 = subset_font_to_woff2(data, codepoints)
    except SubsetError as exc:
        raise SubsetError(exc.kind, exc.message, path=font_path) from exc
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(woff2)
    logger.info(f"Created {output_path} ({len(data)} -> {len(woff2)} bytes)")
    return output_path
