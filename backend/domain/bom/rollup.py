"""
BOM Domain - Cost Rollup & Percentage Calculator.

Aggregates costs upward (material -> assembly -> category -> grand total)
and computes each entry's share of the grand total.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Union

from domain.catalog.entities import Assembly, CompositionItem
from domain.catalog.repositories import CatalogSnapshotRepository
from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import IssueKind, Percentage, ZERO

from .entities import (
    ConsolidatedLineItem,
    DataIntegrityIssue,
    warning_message,
)

logger = logging.getLogger(__name__)


@dataclass
class AssemblySubtotal:
    assembly_id: str
    name: str
    subtotal: Decimal = ZERO


@dataclass
class CategorySubtotal:
    category_id: str
    name: str
    subtotal: Decimal = ZERO


@dataclass
class RollupResult:
    """Grand total, breakdowns and percentage shares of one composition."""

    grand_total: Decimal = ZERO
    per_assembly: List[AssemblySubtotal] = field(default_factory=list)
    per_category: List[CategorySubtotal] = field(default_factory=list)
    percentages: List[Percentage] = field(default_factory=list)
    warnings: List[DataIntegrityIssue] = field(default_factory=list)

    def warning_message(self) -> Optional[str]:
        return warning_message(self.warnings)


def assembly_subtotal(
    assembly: Assembly,
    catalog: CatalogSnapshotRepository,
    warnings: Optional[List[DataIntegrityIssue]] = None,
) -> Decimal:
    """
    Cost of one unit of an assembly: sum of unit_price * per-assembly quantity.

    Missing materials contribute nothing and are appended to ``warnings``.
    """
    total = ZERO
    for assembly_material in assembly.materials:
        material = catalog.get_material(assembly_material.material_id)
        if material is None:
            logger.warning(
                f"Material {assembly_material.material_id} of assembly {assembly.id} not found, "
                f"excluded from cost"
            )
            if warnings is not None:
                warnings.append(DataIntegrityIssue(
                    IssueKind.MATERIAL,
                    assembly_material.material_id,
                    context=f"assembly {assembly.name}",
                ))
            continue
        total += material.unit_price * assembly_material.quantity
    return total


def rollup_composition(
    items: Iterable[CompositionItem],
    catalog: CatalogSnapshotRepository,
) -> RollupResult:
    """
    Roll up a raw (assembly, quantity) composition.

    ``per_assembly`` and ``per_category`` keep first-seen order; an assembly
    listed twice is reported once with both contributions summed.
    Percentages are keyed by assembly id.
    """
    result = RollupResult()
    by_assembly: Dict[str, AssemblySubtotal] = {}
    by_category: Dict[str, CategorySubtotal] = {}

    for item in items:
        assembly = catalog.get_assembly(item.assembly_id)
        if assembly is None:
            logger.warning(f"Assembly {item.assembly_id} not found, excluded from rollup")
            result.warnings.append(DataIntegrityIssue(IssueKind.ASSEMBLY, item.assembly_id))
            continue

        cost = assembly_subtotal(assembly, catalog, result.warnings) * item.quantity

        entry = by_assembly.get(assembly.id)
        if entry is None:
            entry = by_assembly[assembly.id] = AssemblySubtotal(assembly.id, assembly.name)
        entry.subtotal += cost

        category = by_category.get(assembly.category_id)
        if category is None:
            category = by_category[assembly.category_id] = CategorySubtotal(
                assembly.category_id, catalog.category_name(assembly.category_id)
            )
        category.subtotal += cost

        result.grand_total += cost

    result.per_assembly = list(by_assembly.values())
    result.per_category = list(by_category.values())
    result.percentages = [
        Percentage.of(entry.assembly_id, entry.subtotal, result.grand_total)
        for entry in result.per_assembly
    ]
    return result


def rollup_consolidated(items: Sequence[ConsolidatedLineItem]) -> RollupResult:
    """
    Roll up consolidated line items for flat reporting.

    The grand total equals the sum of ``total_cost``. ``per_assembly`` is
    derived from usages and keyed by assembly id; consolidated items carry
    no category, so ``per_category`` stays empty. Percentages are keyed by
    the material label.
    """
    result = RollupResult()
    by_assembly: Dict[str, AssemblySubtotal] = {}

    for item in items:
        result.grand_total += item.total_cost
        for usage in item.usages:
            entry = by_assembly.get(usage.assembly_id)
            if entry is None:
                entry = by_assembly[usage.assembly_id] = AssemblySubtotal(
                    usage.assembly_id, usage.assembly_name
                )
            entry.subtotal += usage.line_quantity * item.unit_price

    result.per_assembly = list(by_assembly.values())
    result.percentages = [
        Percentage.of(item.label, item.total_cost, result.grand_total)
        for item in items
    ]
    return result


def rollup(
    source: Iterable[Union[CompositionItem, ConsolidatedLineItem]],
    catalog: Optional[CatalogSnapshotRepository] = None,
) -> RollupResult:
    """
    Roll up either a composition or consolidated items.

    A composition needs the catalog to price its assemblies.
    """
    entries = list(source)
    if not entries:
        return RollupResult()
    if all(isinstance(entry, ConsolidatedLineItem) for entry in entries):
        return rollup_consolidated(entries)
    if not all(isinstance(entry, CompositionItem) for entry in entries):
        raise ValidationException(
            "Rollup input must be all composition items or all consolidated items", "items"
        )
    if catalog is None:
        raise ValidationException("A catalog snapshot is required to roll up a composition", "catalog")
    return rollup_composition(entries, catalog)
