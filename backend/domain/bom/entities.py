"""
BOM Domain - Entities.

Ephemeral records produced fresh for every computation: exploded lines,
consolidated line items and the warnings raised for missing references.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from domain.catalog.entities import Material
from domain.shared.exceptions import DataIntegrityException
from domain.shared.value_objects import IssueKind, format_decimal


# (name, part_number or "", manufacturer or "", unit, unit_price)
MaterialKey = Tuple[str, str, str, str, Decimal]


def material_key(material: Material) -> MaterialKey:
    """
    Consolidation key of a material.

    Exact, case-sensitive match on all five fields. Materials that differ
    in any of them stay separate line items.
    """
    return (
        material.name,
        material.part_number or "",
        material.manufacturer or "",
        material.unit,
        material.unit_price,
    )


def material_key_label(key: MaterialKey) -> str:
    """
    Readable form of a key, used as the percentage key in reports.

    Every slot is kept, empty or not, so distinct keys never share a label:
    "Brick | BR-01 | Acme | pcs @ 500", "Cement |  |  | bag @ 50000".
    """
    name, part_number, manufacturer, unit, unit_price = key
    return f"{name} | {part_number} | {manufacturer} | {unit} @ {format_decimal(unit_price)}"


@dataclass(frozen=True)
class DataIntegrityIssue:
    """
    A reference that could not be resolved against the catalog snapshot.

    The affected entry is excluded from totals; computation continues.
    """

    kind: IssueKind
    reference_id: str
    context: Optional[str] = None

    @property
    def message(self) -> str:
        text = f"{self.kind.value.capitalize()} '{self.reference_id}' not found in catalog"
        if self.context:
            text += f" ({self.context})"
        return text

    def to_exception(self) -> DataIntegrityException:
        return DataIntegrityException(self.kind.value, self.reference_id, self.context)


def warning_message(warnings: List[DataIntegrityIssue]) -> Optional[str]:
    """
    User-facing summary of unresolved references, or ``None`` when clean.

    Example: "2 materials could not be resolved and were excluded from totals".
    """
    if not warnings:
        return None
    parts = []
    total = 0
    for kind in IssueKind:
        count = len({w.reference_id for w in warnings if w.kind is kind})
        if count:
            noun = kind.value if count == 1 else f"{kind.value}s"
            parts.append(f"{count} {noun}")
            total += count
    verb = "was" if total == 1 else "were"
    return f"{' and '.join(parts)} could not be resolved and {verb} excluded from totals"


@dataclass(frozen=True)
class Provenance:
    """Where an exploded line came from."""

    assembly_id: str
    assembly_name: str
    assembly_quantity: Decimal
    per_assembly_quantity: Decimal


@dataclass(frozen=True)
class ExplodedLine:
    """
    One material requirement of one assembly occurrence.

    ``line_quantity = per_assembly_quantity * assembly_quantity`` and
    ``line_cost = line_quantity * material.unit_price``; nothing is rounded.
    """

    material: Material
    line_quantity: Decimal
    line_cost: Decimal
    provenance: Provenance

    @property
    def material_id(self) -> str:
        return self.material.id

    @property
    def key(self) -> MaterialKey:
        return material_key(self.material)


@dataclass(frozen=True)
class Usage:
    """One contribution to a consolidated line item."""

    assembly_id: str
    assembly_name: str
    assembly_quantity: Decimal
    per_assembly_quantity: Decimal
    line_quantity: Decimal


@dataclass
class ConsolidatedLineItem:
    """
    A distinct material with its quantities summed across every usage.
    """

    material_key: MaterialKey
    name: str
    part_number: str
    manufacturer: str
    unit: str
    unit_price: Decimal
    total_quantity: Decimal = Decimal('0')
    total_cost: Decimal = Decimal('0')
    usages: List[Usage] = field(default_factory=list)

    @property
    def label(self) -> str:
        return material_key_label(self.material_key)

    def add_usage(self, usage: Usage, cost: Decimal) -> None:
        """Accumulate one more contribution."""
        self.total_quantity += usage.line_quantity
        self.total_cost += cost
        self.usages.append(usage)


@dataclass(frozen=True)
class ExplosionResult:
    """Exploded lines plus the references that had to be skipped."""

    lines: List[ExplodedLine] = field(default_factory=list)
    warnings: List[DataIntegrityIssue] = field(default_factory=list)

    @property
    def total_cost(self) -> Decimal:
        return sum((line.line_cost for line in self.lines), Decimal('0'))

    @property
    def is_complete(self) -> bool:
        return not self.warnings

    def warning_message(self) -> Optional[str]:
        return warning_message(self.warnings)

    def raise_for_warnings(self) -> None:
        """Raise the first integrity issue, for callers that cannot accept partial totals."""
        if self.warnings:
            raise self.warnings[0].to_exception()
