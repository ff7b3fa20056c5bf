"""Document-scoped extra columns for the product and dispenser blocks.

A proposal may declare any number of extra named columns, once per block.
Every row of that block gets a cell for each declared column, blank when the
row has no value for it.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Iterable, Literal, Mapping, Sequence

from proposal_tables.fields import pick, resolve
from proposal_tables.models import CustomColumnDefinition, DispenserLine, ProductLine
from proposal_tables.values import coerce_float, format_money, is_blank

__all__ = [
    "HYPHENATION_POINTS",
    "SOFT_HYPHEN",
    "ZERO_WIDTH_SPACE",
    "break_header",
    "custom_cell_text",
    "custom_values_for",
    "extract_custom_columns",
    "legacy_column_id",
    "legacy_extra_values",
]

SOFT_HYPHEN = "\u00ad"
ZERO_WIDTH_SPACE = "\u200b"

# Syllable breaks for long words that show up in narrow column headers.
HYPHENATION_POINTS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "replacement": ("re", "place", "ment"),
        "frequency": ("fre", "quen", "cy"),
        "dispensers": ("dis", "pens", "ers"),
        "dispenser": ("dis", "pens", "er"),
        "warranty": ("war", "ran", "ty"),
        "installation": ("in", "stal", "la", "tion"),
        "maintenance": ("main", "te", "nance"),
        "consumables": ("con", "sum", "ables"),
        "quantity": ("quan", "ti", "ty"),
    }
)

_WORD_RE = re.compile(r"[A-Za-z]+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")

Block = Literal["product", "dispenser"]

_CURRENT_SECTIONS: tuple[tuple[Block, tuple[str, ...]], ...] = (
    ("product", ("products", "product")),
    ("dispenser", ("dispensers", "dispenser")),
)

_LEGACY_SECTIONS: tuple[tuple[Block, tuple[str, ...]], ...] = (
    ("product", ("smallProducts", "bigProducts")),
    ("dispenser", ("dispensers",)),
)


def legacy_column_id(label: Any) -> str:
    """Column id for a legacy ``extraCols`` entry, which only carries a label."""

    slug = _SLUG_RE.sub("_", str(label or "").strip().lower()).strip("_")
    return f"extra_{slug}" if slug else "extra"


def _definitions(raw: Any, applies_to: Block) -> list[CustomColumnDefinition]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return []
    result: list[CustomColumnDefinition] = []
    for entry in raw:
        if isinstance(entry, str):
            label = entry.strip()
            column_id = legacy_column_id(label)
        elif isinstance(entry, Mapping):
            label_raw = resolve(entry, "custom.label")
            id_raw = pick(entry, ("id", "key"))
            label = "" if label_raw is None else str(label_raw).strip()
            column_id = str(id_raw) if id_raw is not None else legacy_column_id(label)
        else:
            continue
        if not label:
            continue
        result.append(CustomColumnDefinition(id=column_id, label=label, applies_to=applies_to))
    return result


def _dedupe(columns: Iterable[CustomColumnDefinition]) -> tuple[CustomColumnDefinition, ...]:
    seen: set[str] = set()
    unique: list[CustomColumnDefinition] = []
    for column in columns:
        if column.id in seen:
            continue
        seen.add(column.id)
        unique.append(column)
    return tuple(unique)


def extract_custom_columns(
    record: Mapping[str, Any] | None,
) -> tuple[tuple[CustomColumnDefinition, ...], tuple[CustomColumnDefinition, ...]]:
    """Return the declared ``(product_columns, dispenser_columns)``.

    The current schema declares columns in a top-level ``customColumns``
    mapping.  Legacy proposals declare ``extraCols`` inside each products
    section; small- and big-product columns are merged into one product list.
    """

    if not isinstance(record, Mapping):
        return (), ()

    found: dict[Block, list[CustomColumnDefinition]] = {"product": [], "dispenser": []}

    declared = record.get("customColumns")
    if isinstance(declared, Mapping):
        for block, keys in _CURRENT_SECTIONS:
            found[block].extend(_definitions(pick(declared, keys), block))

    products = record.get("products")
    if isinstance(products, Mapping):
        for block, keys in _LEGACY_SECTIONS:
            for key in keys:
                section = products.get(key)
                if isinstance(section, Mapping):
                    found[block].extend(_definitions(section.get("extraCols"), block))

    return _dedupe(found["product"]), _dedupe(found["dispenser"])


def legacy_extra_values(extra_cols: Any, extras: Any) -> dict[str, Any]:
    """Key a legacy positional ``extras`` array by its section's column ids."""

    columns = _definitions(extra_cols, "product")
    if not isinstance(extras, Sequence) or isinstance(extras, (str, bytes)):
        return {}
    return {column.id: value for column, value in zip(columns, extras)}


def custom_cell_text(value: Any, currency: str = "$") -> str:
    """Render one custom cell.

    Missing values give an empty cell, numbers (or numeric strings) render as
    currency and any other text is shown verbatim.
    """

    if is_blank(value):
        return ""
    if coerce_float(value) is not None:
        return format_money(value, currency)
    return str(value).strip()


def custom_values_for(
    line: ProductLine | DispenserLine | None,
    columns: Sequence[CustomColumnDefinition],
    currency: str = "$",
) -> list[str]:
    """Return the custom cells of ``line`` in column declaration order."""

    if line is None:
        return ["" for _ in columns]
    values = line.custom_field_values
    cells: list[str] = []
    for column in columns:
        value = values.get(column.id)
        if value is None:
            value = values.get(column.label)
        cells.append(custom_cell_text(value, currency))
    return cells


def _hyphenate_word(match: re.Match[str]) -> str:
    word = match.group(0)
    parts = HYPHENATION_POINTS.get(word.lower())
    if not parts or len("".join(parts)) != len(word):
        return word
    pieces: list[str] = []
    offset = 0
    for part in parts:
        pieces.append(word[offset : offset + len(part)])
        offset += len(part)
    return SOFT_HYPHEN.join(pieces)


def break_header(label: Any) -> str:
    """Add line-break opportunities to a column header.

    A zero-width space follows every ``/`` and known long words receive soft
    hyphens at their declared syllable breaks, so narrow columns can wrap
    without overflowing.
    """

    text = "" if label is None else str(label)
    text = _WORD_RE.sub(_hyphenate_word, text)
    return text.replace("/", "/" + ZERO_WIDTH_SPACE)
