"""
BOM Domain - Explosion Engine.

Expands (assembly, quantity) pairs into flat per-material lines with the
quantity propagated multiplicatively across both composition levels.
"""

from __future__ import annotations
import logging
from typing import Iterable, List

from domain.catalog.entities import CompositionItem
from domain.catalog.repositories import CatalogSnapshotRepository
from domain.shared.value_objects import IssueKind

from .entities import (
    DataIntegrityIssue,
    ExplodedLine,
    ExplosionResult,
    Provenance,
)

logger = logging.getLogger(__name__)


def explode(
    items: Iterable[CompositionItem],
    catalog: CatalogSnapshotRepository,
) -> ExplosionResult:
    """
    Explode a composition into one line per (assembly, material) pair.

    No deduplication happens here: two assemblies sharing a material yield
    two lines. An entry whose assembly (or one of whose materials) is missing
    from the snapshot is skipped and recorded in ``warnings``; the rest of
    the composition is still exploded.
    """
    lines: List[ExplodedLine] = []
    warnings: List[DataIntegrityIssue] = []

    for item in items:
        assembly = catalog.get_assembly(item.assembly_id)
        if assembly is None:
            logger.warning(f"Assembly {item.assembly_id} not found, skipping it in explosion")
            warnings.append(DataIntegrityIssue(IssueKind.ASSEMBLY, item.assembly_id))
            continue

        for assembly_material in assembly.materials:
            material = catalog.get_material(assembly_material.material_id)
            if material is None:
                logger.warning(
                    f"Material {assembly_material.material_id} of assembly {assembly.id} "
                    f"not found, skipping line"
                )
                warnings.append(DataIntegrityIssue(
                    IssueKind.MATERIAL,
                    assembly_material.material_id,
                    context=f"assembly {assembly.name}",
                ))
                continue

            line_quantity = assembly_material.quantity * item.quantity
            lines.append(ExplodedLine(
                material=material,
                line_quantity=line_quantity,
                line_cost=line_quantity * material.unit_price,
                provenance=Provenance(
                    assembly_id=assembly.id,
                    assembly_name=assembly.name,
                    assembly_quantity=item.quantity,
                    per_assembly_quantity=assembly_material.quantity,
                ),
            ))

    logger.debug(f"Exploded composition into {len(lines)} lines ({len(warnings)} warnings)")
    return ExplosionResult(lines=lines, warnings=warnings)
