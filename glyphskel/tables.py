"""The generated confusable table: JSON persistence and default lookup."""

import json
import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger("glyphskel.tables")

TABLE_ENV_VAR = "GLYPHSKEL_TABLE"
_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
PACKAGED_TABLE_PATH = os.path.join(_DATA_DIR, "confusables_map.json")
PACKAGED_DATASET_PATH = os.path.join(_DATA_DIR, "confusables.txt")
DEFAULT_TABLE_PATH = os.path.expanduser("~/.glyphskel/confusables_map.json")

_default_table = None


class TableNotFoundError(FileNotFoundError):
    """No generated confusable table could be located."""


@dataclass(frozen=True)
class ConfusableTable:
    """Immutable confusable map plus the provenance it was built from."""

    mapping: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    header: tuple[str, ...] = ()
    source: str = ""
    generated_at: str = ""

    def __len__(self) -> int:
        return len(self.mapping)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "generated_at": self.generated_at,
            "header": list(self.header),
            "entries": {
                f"{ord(k):04X}": v
                for k, v in sorted(self.mapping.items(), key=lambda kv: ord(kv[0]))
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConfusableTable":
        mapping = {chr(int(k, 16)): v for k, v in data.get("entries", {}).items()}
        return cls(
            mapping=MappingProxyType(mapping),
            header=tuple(data.get("header", [])),
            source=data.get("source", ""),
            generated_at=data.get("generated_at", ""),
        )

    def save(self, path: str) -> str:
        """Write the table as UTF-8 JSON. Returns the path written."""
        path = os.path.expanduser(path)
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=1)
            f.write("\n")
        logger.info("Wrote %d entries to %s", len(self), path)
        return path

    @classmethod
    def load(cls, path: str) -> "ConfusableTable":
        with open(os.path.expanduser(path), encoding="utf-8") as f:
            data = json.load(f)
        table = cls.from_dict(data)
        logger.info("Loaded %d confusables from %s", len(table), path)
        return table


def candidate_paths() -> list[str]:
    """Table locations in lookup order: $GLYPHSKEL_TABLE, package data, home."""
    paths = []
    env_path = os.environ.get(TABLE_ENV_VAR)
    if env_path:
        paths.append(os.path.expanduser(env_path))
    paths.extend([PACKAGED_TABLE_PATH, DEFAULT_TABLE_PATH])
    return paths


def find_table_path() -> Optional[str]:
    for path in candidate_paths():
        if os.path.isfile(path):
            return path
    return None


def build_packaged_table(path: Optional[str] = None) -> ConfusableTable:
    """Build a table in-process from the confusables.txt subset shipped in glyphskel/data."""
    from .builder import TableBuilder

    return TableBuilder(local_path=path or PACKAGED_DATASET_PATH).build()


def get_default_table() -> ConfusableTable:
    """Load the default table once per process.

    A generated table found by find_table_path() wins. Without one, the
    bundled dataset subset is built in memory so lookups still work on a
    fresh install.
    """
    global _default_table
    if _default_table is not None:
        return _default_table
    path = find_table_path()
    if path is not None:
        _default_table = ConfusableTable.load(path)
    elif os.path.isfile(PACKAGED_DATASET_PATH):
        logger.warning(
            "No generated confusable table found; using the bundled subset. "
            "Run 'glyphskel build' for the full Unicode data."
        )
        _default_table = build_packaged_table()
    else:
        raise TableNotFoundError(
            "No confusable table found (looked in: "
            + ", ".join(candidate_paths() + [PACKAGED_DATASET_PATH])
            + "). Generate one with: glyphskel build"
        )
    return _default_table


def reset_default_table():
    """Forget the memoized default table (the next lookup reloads it)."""
    global _default_table
    _default_table = None
