"""Plain-text preview of a compiled document.

The real layout is produced by the typesetting backend; this module gives a
fixed-width ASCII approximation for reviewing compiled output in a terminal.
"""

from __future__ import annotations

import textwrap
from typing import Callable, Sequence

from proposal_tables.custom_columns import SOFT_HYPHEN, ZERO_WIDTH_SPACE
from proposal_tables.models import (
    AreaPricingGrid,
    CompiledDocument,
    NotesBlock,
    ProductGrid,
    RowDescriptor,
    RowKind,
    ServiceColumn,
    ServiceRowBlock,
)

__all__ = [
    "CHARS_PER_WIDTH_UNIT",
    "ascii_table",
    "render_area_grid",
    "render_document",
    "render_notes",
    "render_product_grid",
    "render_service_blocks",
    "render_service_column",
]

# Preview characters per layout width unit.
CHARS_PER_WIDTH_UNIT = 5
_MIN_COLUMN_CHARS = 4
_SERVICE_COLUMN_CHARS = 44


def _plain(text: object) -> str:
    value = "" if text is None else str(text)
    return value.replace(SOFT_HYPHEN, "").replace(ZERO_WIDTH_SPACE, "")


_Align = Callable[[str, int], str]

_ALIGNERS: dict[str, _Align] = {"L": str.ljust, "C": str.center, "R": str.rjust}


def _aligner(token: object, fallback: str) -> _Align:
    text = str(token or fallback).strip().upper()
    return _ALIGNERS.get(text[:1], str.ljust)


def _cell_lines(value: object, width: int) -> list[str]:
    """Wrap one cell to ``width``; explicit newlines start a new line."""

    lines: list[str] = []
    for segment in _plain(value).splitlines() or [""]:
        lines.extend(
            textwrap.wrap(segment.strip(), width=width, break_on_hyphens=False) or [""]
        )
    return lines


def ascii_table(
    headers: Sequence[str] | None,
    rows: Sequence[Sequence[object]],
    *,
    col_widths: Sequence[int],
    col_aligns: Sequence[str] | None = None,
    header_aligns: Sequence[str] | None = None,
) -> str:
    """Draw ``rows`` in a ``+---+`` box, wrapping cells to ``col_widths``.

    Alignment tokens are the ``L``/``C``/``R`` codes used by
    :class:`~proposal_tables.models.ColumnSpec`.  Headers default to centred
    and body cells to left aligned.  Soft hyphens and zero-width spaces from
    broken headers are stripped before measuring.
    """

    widths = list(col_widths)
    if not widths:
        raise ValueError("at least one column is required")
    if min(widths) <= 0:
        raise ValueError("column widths must be positive")

    def aligners(tokens: Sequence[str] | None, fallback: str) -> list[_Align]:
        given = list(tokens or ())
        return [
            _aligner(given[i] if i < len(given) else None, fallback) for i in range(len(widths))
        ]

    def draw(cells: Sequence[object], aligns: list[_Align]) -> list[str]:
        if len(cells) != len(widths):
            raise ValueError(f"expected {len(widths)} cells, got {len(cells)}")
        wrapped = [_cell_lines(cell, width) for cell, width in zip(cells, widths)]
        height = max(len(lines) for lines in wrapped)
        return [
            "|"
            + "|".join(
                align(lines[i] if i < len(lines) else "", width)
                for lines, width, align in zip(wrapped, widths, aligns)
            )
            + "|"
            for i in range(height)
        ]

    rule = "+" + "+".join("-" * width for width in widths) + "+"
    output = [rule]
    if headers:
        output.extend(draw(headers, aligners(header_aligns, "C")))
        output.append(rule)
    body = aligners(col_aligns, "L")
    for row in rows:
        output.extend(draw(row, body))
    output.append(rule)
    return "\n".join(output)


def render_product_grid(grid: ProductGrid) -> str:
    if not grid.column_spec:
        return ""
    widths = [
        max(int(round(spec.width * CHARS_PER_WIDTH_UNIT)), _MIN_COLUMN_CHARS)
        for spec in grid.column_spec
    ]
    rows = [[cell.text for cell in row.cells] for row in grid.body_rows]
    return ascii_table(
        list(grid.header_row),
        rows,
        col_widths=widths,
        col_aligns=[spec.align for spec in grid.column_spec],
    )


def _row_text(row: RowDescriptor) -> tuple[str, str]:
    if row.kind is RowKind.GAP:
        return row.label, ""
    if row.values is not None:
        qty, rate, total = row.values
        return row.label, f"{qty} @ {rate} = {total}".strip()
    label = row.label.upper() if row.kind is RowKind.BOLD else row.label
    return label, row.value


def render_service_column(column: ServiceColumn) -> list[str]:
    """Render one service column as fixed-width lines, heading first."""

    width = _SERVICE_COLUMN_CHARS
    lines = [column.heading.center(width, "="), ""]
    for row in column.rows:
        label, value = _row_text(row)
        if row.kind is RowKind.GAP:
            lines.append(label[:width].ljust(width))
            continue
        room = max(width - len(value) - 1, 1)
        lines.append(f"{label[:room].ljust(room)} {value}"[:width].ljust(width))
        if row.wide_gap:
            lines.append(" " * width)
    return lines


def render_service_blocks(blocks: Sequence[ServiceRowBlock]) -> str:
    rendered: list[str] = []
    for block in blocks:
        columns = [render_service_column(column) for column in block.columns]
        height = max(len(lines) for lines in columns)
        for idx in range(height):
            parts = [
                lines[idx] if idx < len(lines) else " " * _SERVICE_COLUMN_CHARS
                for lines in columns
            ]
            rendered.append("   ".join(parts).rstrip())
        if block.gap_after:
            rendered.append("")
    return "\n".join(rendered)


def render_area_grid(grid: AreaPricingGrid) -> str:
    if not grid.columns:
        return ""
    headers = [""] + [column.label for column in grid.columns]
    rows = [[label, *values] for label, values in grid.rows]
    widths = [16] + [24 for _ in grid.columns]
    aligns = ["L"] + ["C"] * len(grid.columns)
    table = ascii_table(headers, rows, col_widths=widths, col_aligns=aligns)
    return f"{grid.heading}\n{table}"


def render_notes(notes: NotesBlock) -> str:
    lines = [notes.heading]
    for line in notes.lines:
        lines.append(line if line else "_" * 60)
    return "\n".join(lines)


def render_document(document: CompiledDocument) -> str:
    """Render every section of ``document`` separated by blank lines."""

    sections = [render_product_grid(document.products)]
    services = document.services
    sections.append(render_service_blocks(services.paired_row_blocks))
    if services.specialized_area_grid is not None:
        sections.append(render_area_grid(services.specialized_area_grid))
    if services.notes_rows is not None:
        sections.append(render_notes(services.notes_rows))
    return "\n\n".join(section for section in sections if section) + "\n"
