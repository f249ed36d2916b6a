"""
BOM Domain - Report rows.

Tabular rows handed to export sinks (Excel, CSV, API clients). Values stay
``Decimal``; rounding and locale formatting belong to the sink.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from domain.catalog.entities import Assembly, CompositionItem
from domain.catalog.repositories import CatalogSnapshotRepository
from domain.shared.value_objects import AssemblyModule, format_decimal

from .entities import ConsolidatedLineItem, Usage
from .explosion import explode
from .rollup import assembly_subtotal


CONSOLIDATED_COLUMNS = [
    'Sequence', 'Manufacturer', 'PartNumber', 'ItemName', 'Quantity',
    'Unit', 'UnitPrice', 'TotalPrice', 'SourceName', 'UsageDetail',
]

BOQ_COLUMNS = [
    'No', 'Manufacturer', 'PartNumber', 'Item', 'Qty',
    'Unit', 'UnitPrice', 'TotalPrice', 'AssemblyName',
]


def format_usage(usage: Usage) -> str:
    """``Wall(3× × 100 = 300)``"""
    return (
        f"{usage.assembly_name}("
        f"{format_decimal(usage.assembly_quantity)}× × "
        f"{format_decimal(usage.per_assembly_quantity)} = "
        f"{format_decimal(usage.line_quantity)})"
    )


def format_usage_detail(usages: Iterable[Usage]) -> str:
    """Every usage of a consolidated item, joined with ``; ``."""
    return "; ".join(format_usage(usage) for usage in usages)


def consolidated_report_rows(
    items: Sequence[ConsolidatedLineItem],
    source_name: str,
) -> List[list]:
    """
    Rows for the consolidated materials export, in ``CONSOLIDATED_COLUMNS`` order.
    """
    return [
        [
            sequence,
            item.manufacturer,
            item.part_number,
            item.name,
            item.total_quantity,
            item.unit,
            item.unit_price,
            item.total_cost,
            source_name,
            format_usage_detail(item.usages),
        ]
        for sequence, item in enumerate(items, 1)
    ]


@dataclass(frozen=True)
class BOQRow:
    """One row of a hierarchical Bill of Quantity."""

    no: str
    item: str
    manufacturer: str = ""
    part_number: str = ""
    qty: Decimal = Decimal('0')
    unit: str = ""
    unit_price: Decimal = Decimal('0')
    total_price: Decimal = Decimal('0')
    assembly_name: str = ""
    is_module_header: bool = False
    is_assembly_header: bool = False
    assembly_id: Optional[str] = None
    material_id: Optional[str] = None

    def as_list(self) -> list:
        return [
            self.no, self.manufacturer, self.part_number, self.item, self.qty,
            self.unit, self.unit_price, self.total_price, self.assembly_name,
        ]


def boq_rows(
    items: Iterable[CompositionItem],
    catalog: CatalogSnapshotRepository,
) -> List[BOQRow]:
    """
    Hierarchical Bill of Quantity: module headers, assembly headers, material rows.

    Modules follow ``AssemblyModule.report_order()`` and are numbered ``1``,
    ``2``...; assemblies ``m.a``; materials ``m.a.i``. Material rows are the
    un-consolidated explosion of each assembly. Unresolvable references are
    left out (use ``explode`` to collect them as warnings).
    """
    by_module: Dict[AssemblyModule, List[tuple]] = {}
    for item in items:
        assembly = catalog.get_assembly(item.assembly_id)
        if assembly is None:
            continue
        by_module.setdefault(assembly.report_module, []).append((assembly, item.quantity))

    rows: List[BOQRow] = []
    module_number = 0
    for module in AssemblyModule.report_order():
        entries = by_module.get(module)
        if not entries:
            continue
        module_number += 1
        rows.append(BOQRow(
            no=str(module_number),
            item=f"{module.value} MODULE",
            is_module_header=True,
        ))
        for assembly_number, (assembly, quantity) in enumerate(entries, 1):
            rows.extend(_assembly_rows(f"{module_number}.{assembly_number}", assembly, quantity, catalog))
    return rows


def _assembly_rows(
    number: str,
    assembly: Assembly,
    quantity: Decimal,
    catalog: CatalogSnapshotRepository,
) -> List[BOQRow]:
    unit_cost = assembly_subtotal(assembly, catalog)
    rows = [BOQRow(
        no=number,
        manufacturer="-",
        part_number="-",
        item=assembly.name,
        qty=quantity,
        unit="Assembly",
        unit_price=unit_cost,
        total_price=unit_cost * quantity,
        assembly_name=assembly.name,
        is_assembly_header=True,
        assembly_id=assembly.id,
    )]
    lines = explode([CompositionItem(assembly.id, quantity)], catalog).lines
    for material_number, line in enumerate(lines, 1):
        material = line.material
        rows.append(BOQRow(
            no=f"{number}.{material_number}",
            manufacturer=material.manufacturer or "",
            part_number=material.part_number or "",
            item=material.name,
            qty=line.line_quantity,
            unit=material.unit,
            unit_price=material.unit_price,
            total_price=line.line_cost,
            assembly_name=assembly.name,
            material_id=material.id,
        ))
    return rows
