"""
File helpers and the JSON scan report.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .css import FontFace
from .glyph_sets import GlyphSets
from .scanner import ScanResult
from .unicode_range import encode_unicode_range


def now_iso() -> str:
    return datetime.now().isoformat()


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_text(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_json(path: Path, data: Any) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def family_summary(glyph_sets: GlyphSets) -> List[Dict[str, Any]]:
    summary = []
    for family in sorted(glyph_sets.families()):
        codepoints = glyph_sets[family]
        summary.append({
            "family": family,
            "count": len(codepoints),
            "unicode_range": encode_unicode_range(codepoints),
        })
    return summary


def build_report(
    glyph_sets: GlyphSets,
    selected: set,
    family_filter: Optional[str] = None,
    scan: Optional[ScanResult] = None,
    font_faces: Optional[List[FontFace]] = None,
) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "generated_at": now_iso(),
        "family_filter": family_filter,
        "selected": {
            "count": len(selected),
            "unicode_range": encode_unicode_range(selected),
        },
        "families": family_summary(glyph_sets),
    }
    if scan is not None:
        report["pages"] = {"count": len(scan.visited), "items": scan.visited}
        report["failures"] = [f.__dict__ for f in scan.failures]
        report["font_requests"] = {
            "count": len(scan.font_requests),
            "items": [r.__dict__ for r in scan.font_requests],
        }
    if font_faces is not None:
        report["font_faces"] = {"count": len(font_faces), "items": [f.__dict__ for f in font_faces]}
    return report
