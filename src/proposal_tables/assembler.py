"""Assemble compiled tables from a raw proposal record.

:func:`compile_document` is the entry point used by the document renderer:

>>> doc = compile_document({"products": {"products": [], "dispensers": []}})
>>> doc.products.body_rows
()

The input record is never modified.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from proposal_tables.activation import is_service_used
from proposal_tables.area_pricing import AREA_PRICING_SERVICE_KEY, build_area_pricing_grid
from proposal_tables.config import LayoutSettings, get_logger, load_layout_settings
from proposal_tables.custom_columns import break_header, custom_values_for, extract_custom_columns
from proposal_tables.fields import pick
from proposal_tables.models import (
    AreaPricingGrid,
    Cell,
    ColumnSpec,
    CompiledDocument,
    CustomColumnDefinition,
    DispenserLine,
    GridRow,
    NotesBlock,
    ProductGrid,
    ProductLine,
    ServiceBlock,
    ServiceColumn,
    ServiceRowBlock,
    ServicesLayout,
)
from proposal_tables.rows import build_service_column
from proposal_tables.shapes import (
    adapt_products,
    adapt_service,
    explicitly_inactive,
    service_layers,
)
from proposal_tables.values import format_money, format_quantity

logger = get_logger("assembler")

__all__ = [
    "NON_SERVICE_KEYS",
    "assemble_product_grid",
    "assemble_services",
    "build_notes_block",
    "compile_document",
    "compile_service_blocks",
]

# Entries of ``services`` that are not service categories.
NON_SERVICE_KEYS: frozenset[str] = frozenset({"notes", "serviceNotes", "customColumns"})

_NOTES_TEXT_KEYS: tuple[str, ...] = ("textLines", "text", "content")


def _settings(settings: LayoutSettings | None) -> LayoutSettings:
    return settings if settings is not None else load_layout_settings()


# ---------------------------------------------------------------------------
# products
# ---------------------------------------------------------------------------


def _custom_spec(column: CustomColumnDefinition, width: float) -> ColumnSpec:
    return ColumnSpec(column.label, width, "R")


def _product_cells(
    line: ProductLine | None,
    columns: Sequence[CustomColumnDefinition],
    currency: str,
) -> list[Cell]:
    if line is None:
        return [Cell() for _ in range(5 + len(columns))]
    cells = [
        Cell(line.display_name, shaded=True),
        Cell(format_quantity(line.quantity)),
        Cell(format_money(line.unit_price_or_amount, currency)),
        Cell(line.frequency_label),
        Cell(format_money(line.total, currency)),
    ]
    cells.extend(Cell(text) for text in custom_values_for(line, columns, currency))
    return cells


def _dispenser_cells(
    line: DispenserLine | None,
    columns: Sequence[CustomColumnDefinition],
    currency: str,
) -> list[Cell]:
    if line is None:
        return [Cell() for _ in range(6 + len(columns))]
    cells = [
        Cell(line.display_name, shaded=True),
        Cell(format_quantity(line.quantity)),
        Cell(format_money(line.warranty_rate, currency)),
        Cell(format_money(line.replacement_rate, currency)),
        Cell(line.frequency_label),
        Cell(format_money(line.total, currency)),
    ]
    cells.extend(Cell(text) for text in custom_values_for(line, columns, currency))
    return cells


def assemble_product_grid(
    products: Sequence[ProductLine],
    dispensers: Sequence[DispenserLine],
    product_columns: Sequence[CustomColumnDefinition] = (),
    dispenser_columns: Sequence[CustomColumnDefinition] = (),
    settings: LayoutSettings | None = None,
) -> ProductGrid:
    """Lay products and dispensers side by side in one grid.

    The header is the five fixed product columns, the product custom columns,
    the six fixed dispenser columns and then the dispenser custom columns.
    Both sides are row aligned by index; the shorter side is padded with
    empty, unshaded cells.  Every body row is rule terminated.
    """

    layout = _settings(settings)
    width = layout.custom_column_width

    column_spec = (
        tuple(layout.product_columns)
        + tuple(_custom_spec(column, width) for column in product_columns)
        + tuple(layout.dispenser_columns)
        + tuple(_custom_spec(column, width) for column in dispenser_columns)
    )
    header_row = tuple(break_header(spec.label) for spec in column_spec)

    body_rows: list[GridRow] = []
    for index in range(max(len(products), len(dispensers))):
        product = products[index] if index < len(products) else None
        dispenser = dispensers[index] if index < len(dispensers) else None
        cells = _product_cells(product, product_columns, layout.currency)
        cells.extend(_dispenser_cells(dispenser, dispenser_columns, layout.currency))
        body_rows.append(GridRow(cells=tuple(cells), rule_after=True))

    return ProductGrid(column_spec=column_spec, header_row=header_row, body_rows=tuple(body_rows))


# ---------------------------------------------------------------------------
# services
# ---------------------------------------------------------------------------


def assemble_services(
    columns: Iterable[ServiceColumn | None],
    gap: float = 0.4,
) -> tuple[ServiceRowBlock, ...]:
    """Pair service columns two per row block.

    Columns with no valued rows are removed before pairing, so a gap in the
    middle never leaves a hole.  An odd final column sits alone in its block.
    """

    kept = [
        column
        for column in columns
        if column is not None and any(row.has_value for row in column.rows)
    ]
    blocks: list[ServiceRowBlock] = []
    for start in range(0, len(kept), 2):
        pair = tuple(kept[start : start + 2])
        last = start + 2 >= len(kept)
        blocks.append(ServiceRowBlock(columns=pair, gap_after=0.0 if last else gap))
    return tuple(blocks)


def _service_entries(services: Any) -> list[tuple[str, Any]]:
    if not isinstance(services, Mapping):
        return []
    return [
        (str(key), value)
        for key, value in services.items()
        if key not in NON_SERVICE_KEYS
    ]


def compile_service_blocks(
    services: Any,
    settings: LayoutSettings | None = None,
) -> tuple[list[ServiceBlock], AreaPricingGrid | None]:
    """Normalise every active service and build the area grid.

    A malformed service entry is logged and skipped; it never aborts the
    remaining services.
    """

    layout = _settings(settings)
    blocks: list[ServiceBlock] = []
    area_grid: AreaPricingGrid | None = None

    for key, data in _service_entries(services):
        try:
            if key == AREA_PRICING_SERVICE_KEY and not explicitly_inactive(service_layers(data)):
                grid = build_area_pricing_grid(
                    data,
                    heading=layout.service_headings.get(key, layout.area_grid_heading),
                    max_columns=layout.max_area_columns,
                    currency=layout.currency,
                )
                if grid.columns:
                    area_grid = grid
                    continue

            if not is_service_used(data):
                logger.debug("Skipping unused service %s", key)
                continue

            block = adapt_service(
                key,
                data,
                is_active=True,
                headings=layout.service_headings,
            )
            if block is not None:
                blocks.append(block)
        except Exception:
            logger.warning("Dropping malformed service block %s", key, exc_info=True)

    return blocks, area_grid


def _service_column(block: ServiceBlock, currency: str) -> ServiceColumn | None:
    try:
        return build_service_column(block, currency)
    except Exception:
        logger.warning(
            "Dropping service block %s: rows failed to build", block.service_key, exc_info=True
        )
        return None


# ---------------------------------------------------------------------------
# notes
# ---------------------------------------------------------------------------


def _text_lines(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [line.rstrip() for line in raw.splitlines()]
    if isinstance(raw, Sequence):
        return ["" if line is None else str(line).rstrip() for line in raw]
    return []


def build_notes_block(
    services: Any,
    blocks: Sequence[ServiceBlock] = (),
    settings: LayoutSettings | None = None,
    *,
    record: Mapping[str, Any] | None = None,
) -> NotesBlock | None:
    """Compile the notes rows printed under the service tables.

    Declared notes (``services.notes`` or the top-level ``serviceNotes``) come
    first, then one line per service carrying its own notes.  The block is
    padded with blank lines up to the declared line count.
    """

    layout = _settings(settings)
    declared = services.get("notes") if isinstance(services, Mapping) else None
    if declared is None and isinstance(services, Mapping):
        declared = services.get("serviceNotes")
    if declared is None and record is not None:
        declared = record.get("serviceNotes")

    heading = layout.notes_heading
    line_count: Any = None
    text: list[str] = []
    if isinstance(declared, Mapping):
        raw_heading = pick(declared, ("heading", "title"))
        if isinstance(raw_heading, str) and raw_heading.strip():
            heading = raw_heading.strip()
        line_count = declared.get("lines")
        text = _text_lines(pick(declared, _NOTES_TEXT_KEYS))
    elif declared is not None:
        text = _text_lines(declared)

    for block in blocks:
        if block.notes:
            text.append(f"{block.heading}: {block.notes}")

    if declared is None and not text:
        return None

    try:
        count = int(line_count) if line_count is not None else layout.notes_default_lines
    except (TypeError, ValueError):
        count = layout.notes_default_lines
    lines = text + [""] * max(count - len(text), 0)
    return NotesBlock(heading=heading, lines=tuple(lines))


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------


def compile_document(
    record: Mapping[str, Any] | None,
    settings: LayoutSettings | None = None,
) -> CompiledDocument:
    """Compile a proposal record into its product grid and service layout."""

    layout = _settings(settings)
    source: Mapping[str, Any] = record if isinstance(record, Mapping) else {}

    _, products, dispensers = adapt_products(source.get("products"))
    product_columns, dispenser_columns = extract_custom_columns(source)
    grid = assemble_product_grid(products, dispensers, product_columns, dispenser_columns, layout)

    services = source.get("services")
    blocks, area_grid = compile_service_blocks(services, layout)
    columns = [_service_column(block, layout.currency) for block in blocks]
    paired = assemble_services(columns, layout.service_block_gap)
    notes = build_notes_block(services, blocks, layout, record=source)

    logger.debug(
        "Compiled %d product rows, %d service blocks, %d area columns",
        len(grid.body_rows),
        len(paired),
        len(area_grid.columns) if area_grid else 0,
    )
    return CompiledDocument(
        products=grid,
        services=ServicesLayout(
            paired_row_blocks=paired,
            specialized_area_grid=area_grid,
            notes_rows=notes,
        ),
    )
