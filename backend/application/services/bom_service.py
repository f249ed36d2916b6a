"""
BOM Service.

Runs the validate -> explode -> consolidate -> rollup pipeline over one
catalog snapshot. Every report path (API, Excel export, management
command, bulk export) goes through this service.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from django.conf import settings

from domain.bom.consolidation import ConsolidationSummary, consolidate
from domain.bom.entities import (
    ConsolidatedLineItem,
    DataIntegrityIssue,
    ExplosionResult,
    warning_message,
)
from domain.bom.explosion import explode
from domain.bom.reports import BOQRow, boq_rows, consolidated_report_rows
from domain.bom.rollup import RollupResult, rollup_composition, rollup_consolidated
from domain.catalog.entities import CompositionItem, Project, Template
from domain.catalog.repositories import CatalogSnapshotRepository
from domain.shared.exceptions import ValidationException
from domain.selection.entities import Selection, ValidationResult
from domain.selection.validator import groups_for_selection, validate_selection, with_defaults

logger = logging.getLogger(__name__)


def engine_setting(name: str, default=None):
    """Value from ``settings.BOM_ENGINE``."""
    return getattr(settings, 'BOM_ENGINE', {}).get(name, default)


@dataclass
class BomReport:
    """Everything one pipeline run produces for a Template or Project."""

    source_name: str
    explosion: ExplosionResult
    items: List[ConsolidatedLineItem]
    rollup: RollupResult
    summary: ConsolidationSummary
    warnings: List[DataIntegrityIssue] = field(default_factory=list)

    @property
    def grand_total(self):
        return self.rollup.grand_total

    def rows(self) -> List[list]:
        """Rows for the consolidated materials export."""
        return consolidated_report_rows(self.items, self.source_name)

    def warning_message(self) -> Optional[str]:
        return warning_message(self.warnings)


class BomService:
    """
    Application service wrapping the BOM engines for one catalog snapshot.
    """

    def __init__(
        self,
        catalog: CatalogSnapshotRepository,
        deduplicate_selections: Optional[bool] = None,
    ):
        self.catalog = catalog
        if deduplicate_selections is None:
            deduplicate_selections = engine_setting('DEDUPLICATE_GROUP_SELECTIONS', True)
        self.deduplicate_selections = deduplicate_selections

    # =========================================================================
    # SINGLE STEPS
    # =========================================================================

    def validate(
        self,
        selection: Selection,
        category_ids: Optional[Iterable[str]] = None,
        apply_defaults: bool = False,
    ) -> ValidationResult:
        """
        Validate a selection.

        Groups are taken from ``category_ids`` when given (so that required
        groups of categories the user skipped are still enforced), otherwise
        from the categories present in the selection. With ``apply_defaults``
        groups the selection does not mention start from their default picks.
        """
        if category_ids is not None:
            groups = []
            for category_id in category_ids:
                groups.extend(self.catalog.get_assembly_groups(str(category_id)))
        else:
            groups = groups_for_selection(selection, self.catalog)
        if apply_defaults:
            selection = with_defaults(groups, selection)
        return validate_selection(
            groups, selection, self.catalog, deduplicate=self.deduplicate_selections
        )

    def explode(self, items: Iterable[CompositionItem]) -> ExplosionResult:
        return explode(items, self.catalog)

    def consolidate(self, items: Iterable[CompositionItem]) -> List[ConsolidatedLineItem]:
        return consolidate(self.explode(items).lines)

    def rollup(self, items: Iterable[CompositionItem]) -> RollupResult:
        return rollup_composition(items, self.catalog)

    def boq(self, items: Iterable[CompositionItem]) -> List[BOQRow]:
        return boq_rows(items, self.catalog)

    # =========================================================================
    # PIPELINES
    # =========================================================================

    def build_report(self, items: Iterable[CompositionItem], source_name: str) -> BomReport:
        """Explode, consolidate and roll up one composition."""
        items = list(items)
        explosion = self.explode(items)
        consolidated = consolidate(explosion.lines)
        rollup = rollup_consolidated(consolidated)
        report = BomReport(
            source_name=source_name,
            explosion=explosion,
            items=consolidated,
            rollup=rollup,
            summary=ConsolidationSummary.of(consolidated),
            warnings=list(explosion.warnings),
        )
        logger.info(
            f"BOM for {source_name}: {report.summary.unique_materials} materials, "
            f"total {report.grand_total}"
        )
        if report.warnings:
            logger.warning(f"BOM for {source_name}: {report.warning_message()}")
        return report

    def report_for_selection(
        self,
        selection: Selection,
        source_name: str,
        category_ids: Optional[Iterable[str]] = None,
        apply_defaults: bool = False,
    ) -> tuple[ValidationResult, BomReport]:
        """Validate a selection and build the report of its valid picks."""
        validation = self.validate(selection, category_ids, apply_defaults)
        report = self.build_report(validation.composition(), source_name)
        # the validator and the explosion both report a material missing from a pick
        report.warnings = list(dict.fromkeys(validation.warnings + report.warnings))
        return validation, report

    def report_for_template(self, template: Template) -> BomReport:
        return self.build_report(template.assemblies, template.name)

    def report_for_project(self, project: Project) -> BomReport:
        if project.template is None:
            raise ValidationException(
                f"Project '{project.name}' has no template to export materials for",
                "template",
            )
        return self.build_report(project.template.assemblies, project.name)

    def refresh_template_total(self, template: Template) -> tuple[Template, BomReport]:
        """Template carrying a total recomputed from the catalog, plus its report."""
        report = self.report_for_template(template)
        return template.with_total(report.grand_total), report
