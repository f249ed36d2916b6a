"""
BOM Domain - Consolidation Engine.

Merges exploded lines that refer to the identical material into single
summed entries, keeping a usage record for every contribution.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from domain.catalog.entities import Material

from .entities import (
    ConsolidatedLineItem,
    ExplodedLine,
    MaterialKey,
    Provenance,
    Usage,
)


def consolidate(lines: Iterable[ExplodedLine]) -> List[ConsolidatedLineItem]:
    """
    Consolidate exploded lines by material key.

    Output order is the first-seen order of each key. Totals do not depend
    on input order; only the order of ``usages`` does.
    """
    merged: Dict[MaterialKey, ConsolidatedLineItem] = {}

    for line in lines:
        key = line.key
        item = merged.get(key)
        if item is None:
            material = line.material
            item = ConsolidatedLineItem(
                material_key=key,
                name=material.name,
                part_number=material.part_number or "",
                manufacturer=material.manufacturer or "",
                unit=material.unit,
                unit_price=material.unit_price,
            )
            merged[key] = item

        item.add_usage(
            Usage(
                assembly_id=line.provenance.assembly_id,
                assembly_name=line.provenance.assembly_name,
                assembly_quantity=line.provenance.assembly_quantity,
                per_assembly_quantity=line.provenance.per_assembly_quantity,
                line_quantity=line.line_quantity,
            ),
            line.line_cost,
        )

    return list(merged.values())


def consolidated_as_lines(items: Iterable[ConsolidatedLineItem]) -> List[ExplodedLine]:
    """
    Turn consolidated items back into single-usage exploded lines.

    Consolidating the result again reproduces the same totals.
    """
    lines = []
    for index, item in enumerate(items):
        material = Material(
            id=f"consolidated-{index}",
            name=item.name,
            unit=item.unit,
            unit_price=item.unit_price,
            part_number=item.part_number,
            manufacturer=item.manufacturer,
        )
        lines.append(ExplodedLine(
            material=material,
            line_quantity=item.total_quantity,
            line_cost=item.total_cost,
            provenance=Provenance(
                assembly_id="",
                assembly_name="Consolidated",
                assembly_quantity=Decimal('1'),
                per_assembly_quantity=item.total_quantity,
            ),
        ))
    return lines


@dataclass(frozen=True)
class ConsolidationSummary:
    """Footer figures of a consolidated materials report."""

    unique_materials: int
    total_quantity: Decimal
    total_value: Decimal

    @classmethod
    def of(cls, items: List[ConsolidatedLineItem]) -> ConsolidationSummary:
        return cls(
            unique_materials=len(items),
            total_quantity=sum((i.total_quantity for i in items), Decimal('0')),
            total_value=sum((i.total_cost for i in items), Decimal('0')),
        )
