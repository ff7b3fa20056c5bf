from __future__ import annotations

import dataclasses

import pytest

from proposal_tables.models import DispenserLine, ProductLine, ServiceBlock, ServiceShape


def test_mapping_fields_default_to_empty_read_only_mappings() -> None:
    product = ProductLine(key="p1", display_name="Hand Soap")
    dispenser = DispenserLine(key="d1", display_name="Soap Dispenser")
    block = ServiceBlock(service_key="saniclean", heading="SANICLEAN", is_active=True, shape=ServiceShape.LEGACY)

    for mapping in (product.custom_field_values, dispenser.custom_field_values, block.raw_configuration):
        assert dict(mapping) == {}
        with pytest.raises(TypeError):
            mapping["x"] = 1  # type: ignore[index]


@pytest.mark.parametrize("cls", [ProductLine, DispenserLine, ServiceBlock])
def test_mapping_fields_use_factories(cls: type) -> None:
    by_name = {f.name: f for f in dataclasses.fields(cls)}
    name = "raw_configuration" if cls is ServiceBlock else "custom_field_values"

    assert by_name[name].default is dataclasses.MISSING
    assert by_name[name].default_factory is not dataclasses.MISSING
