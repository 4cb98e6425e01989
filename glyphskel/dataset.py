"""Parser for the Unicode confusables.txt dataset (UTS #39)."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("glyphskel.dataset")

MAX_CODEPOINT = 0x10FFFF  # anything above this is not a Unicode scalar
NUM_FIELDS = 3  # source ; target ; class
WHOLE_SCRIPT_CLASS = "MA"  # MA is a superset of SA, SL and ML

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")
_BOM = "\ufeff"


class DatasetError(ValueError):
    """Raised when confusables.txt is malformed. Always fatal for a build."""


@dataclass(frozen=True)
class ConfusableEntry:
    """One MA line of confusables.txt: a source codepoint and its prototype."""

    source: int
    target: tuple[int, ...]

    @property
    def source_text(self) -> str:
        return chr(self.source)

    @property
    def target_text(self) -> str:
        return "".join(chr(cp) for cp in self.target)


@dataclass(frozen=True)
class ConfusableDataset:
    """Parsed dataset: the verbatim header comment plus entries in file order."""

    header: tuple[str, ...] = ()
    entries: tuple[ConfusableEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)


def _excerpt(line: str) -> str:
    return line if len(line) <= 40 else line[:37] + "..."


def parse_codepoint(text: str, line: str = "") -> int:
    """Parse a hex codepoint such as ``03C1``.

    Raises DatasetError for anything that is not plain hex, for zero and for
    values above MAX_CODEPOINT.
    """
    where = _excerpt(line or text)
    text = text.strip()
    if not _HEX_RE.match(text):
        raise DatasetError(f"{where}: invalid codepoint {text!r}")
    point = int(text, 16)
    if point == 0:
        raise DatasetError(f"{where}: unknown codepoint {point:X}")
    if point > MAX_CODEPOINT:
        raise DatasetError(
            f"{where}: codepoint {point:X} > max codepoint ({MAX_CODEPOINT:X})"
        )
    return point


def parse_line(line: str, lineno: Optional[int] = None) -> Optional[ConfusableEntry]:
    """Parse one dataset line.

    Returns None for blank lines, comments and entries outside the MA class.
    Lines look like::

        0441 ;	0063 ;	MA	# ( с → c ) CYRILLIC SMALL LETTER ES → LATIN SMALL LETTER C
    """
    line = line.rstrip("\r\n")
    if not line.strip() or line.lstrip().startswith("#"):
        return None

    # Comments may themselves contain ';' (GREEK QUESTION MARK, ...)
    data = line.split("#", 1)[0]
    fields = [f.strip() for f in data.split(";")]
    if len(fields) != NUM_FIELDS:
        prefix = f"line {lineno}: " if lineno is not None else ""
        raise DatasetError(
            f"{prefix}{_excerpt(line)}: {len(fields)} fields (expected {NUM_FIELDS})"
        )

    source_field, target_field, class_field = fields
    if not class_field.startswith(WHOLE_SCRIPT_CLASS):
        return None

    source = parse_codepoint(source_field, line)
    targets = target_field.split()
    if not targets:
        raise DatasetError(f"{_excerpt(line)}: empty target")
    target = tuple(parse_codepoint(t, line) for t in targets)
    return ConfusableEntry(source=source, target=target)


def parse_dataset(text: str) -> ConfusableDataset:
    """Parse the full text of confusables.txt.

    Leading ``#`` lines up to the first blank or data line are kept verbatim
    as the header. Any malformed line raises DatasetError.
    """
    header = []
    entries = []
    in_header = True

    # Only "\n" ends a line: comments quote U+2028 and friends literally
    for lineno, line in enumerate(text.split("\n"), 1):
        line = line.rstrip("\r")
        if lineno == 1 and line.startswith(_BOM):
            line = line[len(_BOM):]
        if in_header:
            if line.startswith("#"):
                header.append(line)
                continue
            in_header = False

        entry = parse_line(line, lineno)
        if entry is not None:
            entries.append(entry)

    logger.info("Parsed %d MA entries (%d header lines)", len(entries), len(header))
    return ConfusableDataset(header=tuple(header), entries=tuple(entries))
