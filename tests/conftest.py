"""Shared fixtures: a slice of the real confusables.txt and tables built from it."""

import pytest

from glyphskel.dataset import parse_dataset
from glyphskel.rules import OverrideRules
from glyphskel.tables import ConfusableTable, reset_default_table
from glyphskel import engine

# Entries copied from confusables.txt (Unicode 15.1) covering the characters
# the skeleton tests rely on.
SAMPLE_CONFUSABLES = (
    "\ufeff# confusables.txt\n"
    "# Date: 2023-08-11, 17:46:40 GMT\n"
    "# © 2023 Unicode®, Inc.\n"
    "#\n"
    "# Unicode Security Mechanisms for UTS #39\n"
    "# Version: 15.1.0\n"
    "#\n"
    "# For documentation and usage, see https://www.unicode.org/reports/tr39\n"
    "#\n"
    "\n"
    "0031 ;\t006C ;\tMA\t# ( 1 → l ) DIGIT ONE → LATIN SMALL LETTER L\t# \n"
    "\n"
    "0049 ;\t006C ;\tMA\t# ( I → l ) LATIN CAPITAL LETTER I → LATIN SMALL LETTER L\t# \n"
    "\n"
    "007C ;\t006C ;\tMA\t# ( | → l ) VERTICAL LINE → LATIN SMALL LETTER L\t# \n"
    "\n"
    "0399 ;\t006C ;\tMA\t# ( Ι → l ) GREEK CAPITAL LETTER IOTA → LATIN SMALL LETTER L\t# \n"
    "\n"
    "05DF ;\t006C ;\tMA\t# ( ן → l ) HEBREW LETTER FINAL NUN → LATIN SMALL LETTER L\t# \n"
    "\n"
    "2113 ;\t006C ;\tMA\t# ( ℓ → l ) SCRIPT SMALL L → LATIN SMALL LETTER L\t# \n"
    "\n"
    "0030 ;\t004F ;\tMA\t# ( 0 → O ) DIGIT ZERO → LATIN CAPITAL LETTER O\t# \n"
    "\n"
    "03BF ;\t006F ;\tMA\t# ( ο → o ) GREEK SMALL LETTER OMICRON → LATIN SMALL LETTER O\t# \n"
    "\n"
    "03C1 ;\t0070 ;\tMA\t# ( ρ → p ) GREEK SMALL LETTER RHO → LATIN SMALL LETTER P\t# \n"
    "\n"
    "237A ;\t0061 ;\tMA\t# ( ⍺ → a ) APL FUNCTIONAL SYMBOL ALPHA → LATIN SMALL LETTER A\t# →α→\n"
    "\n"
    "0443 ;\t0079 ;\tMA\t# ( у → y ) CYRILLIC SMALL LETTER U → LATIN SMALL LETTER Y\t# \n"
    "\n"
    "1EFF ;\t0079 ;\tMA\t# ( ỿ → y ) LATIN SMALL LETTER Y WITH LOOP → LATIN SMALL LETTER Y\t# \n"
    "\n"
    "03BD ;\t0076 ;\tMA\t# ( ν → v ) GREEK SMALL LETTER NU → LATIN SMALL LETTER V\t# \n"
    "\n"
    "0441 ;\t0063 ;\tMA\t# ( с → c ) CYRILLIC SMALL LETTER ES → LATIN SMALL LETTER C\t# \n"
    "\n"
    "0455 ;\t0073 ;\tMA\t# ( ѕ → s ) CYRILLIC SMALL LETTER DZE → LATIN SMALL LETTER S\t# \n"
    "\n"
    "0435 ;\t0065 ;\tMA\t# ( е → e ) CYRILLIC SMALL LETTER IE → LATIN SMALL LETTER E\t# \n"
    "\n"
    "212E ;\t0065 ;\tMA\t# ( ℮ → e ) ESTIMATED SYMBOL → LATIN SMALL LETTER E\t# \n"
    "\n"
    "00F8 ;\t006F 0338 ;\tMA\t# ( ø → o̸ ) LATIN SMALL LETTER O WITH STROKE → LATIN SMALL LETTER O, COMBINING LONG SOLIDUS OVERLAY\t# →o̷→\n"
    "\n"
    "0337 ;\t0338 ;\tMA\t# ( ̷ → ̸ ) COMBINING SHORT SOLIDUS OVERLAY → COMBINING LONG SOLIDUS OVERLAY\t# \n"
    "\n"
    "006D ;\t0072 006E ;\tMA\t# ( m → rn ) LATIN SMALL LETTER M → LATIN SMALL LETTER R, LATIN SMALL LETTER N\t# \n"
    "\n"
    "217F ;\t0072 006E ;\tMA\t# ( ⅿ → rn ) SMALL ROMAN NUMERAL ONE THOUSAND → LATIN SMALL LETTER R, LATIN SMALL LETTER N\t# →m→\n"
    "\n"
    "2028 ;\t0020 ;\tMA\t#* ( \u2028 → ' ' ) LINE SEPARATOR → SPACE\t# \n"
    "\n"
    "# total: 22\n"
)


@pytest.fixture(scope="session")
def sample_text():
    return SAMPLE_CONFUSABLES


@pytest.fixture(scope="session")
def sample_dataset():
    return parse_dataset(SAMPLE_CONFUSABLES)


@pytest.fixture(scope="session")
def sample_table(sample_dataset):
    mapping = OverrideRules().build_map(sample_dataset.entries)
    return ConfusableTable(
        mapping=mapping,
        header=sample_dataset.header,
        source="tests/confusables.txt",
        generated_at="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def sample_table_path(sample_table, tmp_path):
    return sample_table.save(str(tmp_path / "confusables_map.json"))


@pytest.fixture(autouse=True)
def _isolated_default_table(monkeypatch, tmp_path):
    """Keep tests away from any table installed in the home directory."""
    monkeypatch.delenv("GLYPHSKEL_TABLE", raising=False)
    monkeypatch.setattr("glyphskel.tables.PACKAGED_TABLE_PATH", str(tmp_path / "no_packaged.json"))
    monkeypatch.setattr("glyphskel.tables.DEFAULT_TABLE_PATH", str(tmp_path / "no_home.json"))
    monkeypatch.setattr("glyphskel.tables.PACKAGED_DATASET_PATH", str(tmp_path / "no_dataset.txt"))
    reset_default_table()
    monkeypatch.setattr(engine, "_default_engine", None)
    yield
    reset_default_table()
