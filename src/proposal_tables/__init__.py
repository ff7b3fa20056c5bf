"""Compile customer proposals into canonical product and service tables."""

from __future__ import annotations

from proposal_tables.activation import is_service_used
from proposal_tables.assembler import assemble_product_grid, assemble_services, compile_document
from proposal_tables.config import ConfigError, LayoutSettings, load_layout_settings
from proposal_tables.fields import pick, resolve
from proposal_tables.frequency import determine_frequency_group, normalize_frequency_key
from proposal_tables.models import CompiledDocument, RowDescriptor, RowKind

__version__ = "0.1.0"

__all__ = [
    "CompiledDocument",
    "ConfigError",
    "LayoutSettings",
    "RowDescriptor",
    "RowKind",
    "__version__",
    "assemble_product_grid",
    "assemble_services",
    "compile_document",
    "determine_frequency_group",
    "is_service_used",
    "load_layout_settings",
    "normalize_frequency_key",
    "pick",
    "resolve",
]
