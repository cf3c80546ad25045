"""
Session-wide aggregation of codepoints per font-family.
"""

from typing import Dict, Iterable, Mapping, Optional, Set

UNIVERSAL_FAMILY = "*"


class GlyphSets:
    """Codepoint sets keyed by font-family, plus the universal ``"*"`` set."""

    def __init__(self, sets: Optional[Mapping[str, Iterable[int]]] = None):
        self.sets: Dict[str, Set[int]] = {}
        if sets:
            self.merge(sets)

    def __len__(self) -> int:
        return len(self.sets)

    def __contains__(self, family: str) -> bool:
        return family in self.sets

    def __getitem__(self, family: str) -> Set[int]:
        return self.sets[family]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GlyphSets):
            return NotImplemented
        return self.sets == other.sets

    def __repr__(self) -> str:
        counts = {family: len(cps) for family, cps in self.sets.items()}
        return f"GlyphSets({counts})"

    def families(self):
        return list(self.sets)

    def merge(self, new_sets: "Mapping[str, Iterable[int]] | GlyphSets") -> None:
        if isinstance(new_sets, GlyphSets):
            new_sets = new_sets.sets
        for family, codepoints in new_sets.items():
            self.sets.setdefault(family, set()).update(codepoints)

    def add_whitelist(self, text: str) -> None:
        if not text:
            return
        self.sets.setdefault(UNIVERSAL_FAMILY, set()).update(ord(c) for c in text)

    def select(self, family_filter: Optional[str] = None) -> Set[int]:
        """
        Pick the codepoints to keep.

        With a comma-separated filter, every family whose name contains one of
        the fragments (case-insensitive) contributes. Without one, the
        universal set wins when present, else the union of every family.
        """
        if family_filter:
            fragments = [f.strip().lower() for f in family_filter.split(",") if f.strip()]
            result: Set[int] = set()
            for family, codepoints in self.sets.items():
                lowered = family.lower()
                if any(fragment in lowered for fragment in fragments):
                    result.update(codepoints)
            return result

        if UNIVERSAL_FAMILY in self.sets:
            return set(self.sets[UNIVERSAL_FAMILY])
        result = set()
        for codepoints in self.sets.values():
            result.update(codepoints)
        return result

    def to_dict(self) -> Dict[str, list]:
        return {family: sorted(cps) for family, cps in sorted(self.sets.items())}


def add_whitelist(aggregate: GlyphSets, text: str) -> None:
    aggregate.add_whitelist(text)


def select(aggregate: GlyphSets, family_filter: Optional[str] = None) -> Set[int]:
    return aggregate.select(family_filter)
