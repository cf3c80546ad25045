from io import BytesIO

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

TEST_FONT_CHARS = "ABCabc"


def _box():
    pen = TTGlyphPen(None)
    pen.moveTo((50, 0))
    pen.lineTo((50, 700))
    pen.lineTo((450, 700))
    pen.lineTo((450, 0))
    pen.closePath()
    return pen.glyph()


def build_font() -> bytes:
    """A TrueType font with a box glyph for each of TEST_FONT_CHARS."""
    glyph_order = [".notdef"] + list(TEST_FONT_CHARS)
    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_order)
    fb.setupCharacterMap({ord(c): c for c in TEST_FONT_CHARS})
    fb.setupGlyf({name: _box() for name in glyph_order})
    fb.setupHorizontalMetrics({name: (500, 50) for name in glyph_order})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": "Sift Test", "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    buffer = BytesIO()
    fb.save(buffer)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def font_bytes():
    return build_font()
