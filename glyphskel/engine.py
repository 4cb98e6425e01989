"""Skeleton computation per UTS #39 section 4 (Confusable Detection).

    skeleton(X) = NFKD(substitute(NFKD(X)))

Two strings are confusable when their skeletons are equal. Each codepoint of
the decomposed input is replaced once by its confusable prototype;
replacements are not scanned again.
"""

import unicodedata
from typing import Mapping

from .tables import ConfusableTable, get_default_table

NORMAL_FORM = "NFKD"

_default_engine = None


class SkeletonEngine:
    """Computes skeletons against one immutable confusable map."""

    def __init__(self, confusables: Mapping[str, str]):
        self.confusables = confusables

    @classmethod
    def from_table(cls, table: ConfusableTable) -> "SkeletonEngine":
        return cls(table.mapping)

    @classmethod
    def from_path(cls, path: str) -> "SkeletonEngine":
        return cls.from_table(ConfusableTable.load(path))

    def skeleton(self, text: str) -> str:
        decomposed = unicodedata.normalize(NORMAL_FORM, text)
        lookup = self.confusables.get
        substituted = "".join([lookup(char, char) for char in decomposed])
        return unicodedata.normalize(NORMAL_FORM, substituted)

    def is_confusable(self, a: str, b: str) -> bool:
        return self.skeleton(a) == self.skeleton(b)


def get_engine() -> SkeletonEngine:
    """Engine over the default table; rebuilt when that table is reloaded."""
    global _default_engine
    table = get_default_table()
    if _default_engine is None or _default_engine.confusables is not table.mapping:
        _default_engine = SkeletonEngine.from_table(table)
    return _default_engine


def skeleton(text: str) -> str:
    """Skeleton of ``text`` using the default confusable table."""
    return get_engine().skeleton(text)


def is_confusable(a: str, b: str) -> bool:
    return get_engine().is_confusable(a, b)
