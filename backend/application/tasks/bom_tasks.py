"""
BOM Tasks.

Celery tasks for BOM exports and template total recalculation.
"""

from celery import shared_task
from django.utils import timezone
import logging
import os

from application.services.bom_service import BomReport, BomService, engine_setting
from application.services.bulk_export import run_bulk_export
from domain.bom.reports import CONSOLIDATED_COLUMNS
from domain.catalog.snapshot import (
    InMemoryCatalogSnapshot,
    project_from_dict,
    template_from_dict,
)
from domain.shared.exceptions import DomainException

logger = logging.getLogger(__name__)


def write_consolidated_workbook(report: BomReport, filepath: str) -> str:
    """
    Write the consolidated materials of ``report`` to an xlsx file.

    Money and quantity cells are written as numbers; the summary block
    (unique materials, total quantity, total value) follows the table.
    """
    import openpyxl
    from openpyxl.styles import Font

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Materials"

    header_font = Font(bold=True)

    # Headers
    for col, header in enumerate(CONSOLIDATED_COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font

    # Data
    numeric_columns = {'Quantity', 'UnitPrice', 'TotalPrice'}
    for row, values in enumerate(report.rows(), 2):
        for col, (header, value) in enumerate(zip(CONSOLIDATED_COLUMNS, values), 1):
            if header in numeric_columns:
                value = float(value)
            ws.cell(row=row, column=col, value=value)

    # Summary
    summary_row = len(report.items) + 3
    summary = [
        ('Unique materials', report.summary.unique_materials),
        ('Total quantity', float(report.summary.total_quantity)),
        ('Total value', float(report.summary.total_value)),
    ]
    for offset, (label, value) in enumerate(summary):
        ws.cell(row=summary_row + offset, column=1, value=label).font = header_font
        ws.cell(row=summary_row + offset, column=2, value=value)

    message = report.warning_message()
    if message:
        ws.cell(row=summary_row + len(summary), column=1, value='Warning').font = header_font
        ws.cell(row=summary_row + len(summary), column=2, value=message)

    # Auto-width columns
    for column in ws.columns:
        max_length = max(len(str(cell.value or '')) for cell in column)
        ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 80)

    wb.save(filepath)
    return filepath


def export_filename(source_name: str) -> str:
    safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in source_name).strip("_")
    return f"Materials_{safe_name or 'export'}_{timezone.now().strftime('%Y%m%d_%H%M%S')}.xlsx"


@shared_task
def export_consolidated_materials(projects_payload: list, catalog_payload: dict):
    """
    Export the consolidated materials of every project to Excel.

    One workbook per project is written under ``MEDIA_ROOT/exports/<EXPORT_SUBDIR>``.
    Projects that fail (no template, invalid data) are reported in
    ``errors`` without stopping the export of the others.
    """
    from django.conf import settings

    try:
        catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)
        projects = [project_from_dict(row) for row in projects_payload]
    except DomainException as e:
        logger.error(f"Invalid export payload: {e.message}")
        return {'error': e.message, 'code': e.code, 'details': e.details}

    subdir = engine_setting('EXPORT_SUBDIR', 'boq')
    export_dir = os.path.join(settings.MEDIA_ROOT, 'exports', subdir)
    os.makedirs(export_dir, exist_ok=True)

    result = run_bulk_export(projects, lambda project: catalog)

    files = []
    errors = []
    for outcome in result.outcomes:
        if not outcome.ok:
            errors.append({'project_id': outcome.project_id, 'error': outcome.error})
            continue
        filename = export_filename(f"{outcome.project_name}_{outcome.project_id}")
        filepath = write_consolidated_workbook(
            outcome.report, os.path.join(export_dir, filename)
        )
        logger.info(f"Exported materials of project {outcome.project_name} to {filename}")
        files.append({
            'project_id': outcome.project_id,
            'filename': filename,
            'filepath': filepath,
            'download_url': f"{settings.MEDIA_URL}exports/{subdir}/{filename}",
            'total_value': str(outcome.report.summary.total_value),
            'warning': outcome.report.warning_message(),
        })

    return {
        'files': files,
        'errors': errors,
        'skipped': result.skipped,
    }


@shared_task
def recalculate_template_total(template_payload: dict, catalog_payload: dict):
    """
    Recompute the cached total of a template after its composition or
    the catalog prices changed.

    The total comes from the consolidated materials report of the template;
    references missing from the catalog are excluded and reported in
    ``warning``.
    """
    try:
        catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)
        template, report = BomService(catalog).refresh_template_total(
            template_from_dict(template_payload)
        )
    except DomainException as e:
        logger.error(f"Error recalculating template total: {e.message}")
        return {'error': e.message, 'code': e.code}

    logger.info(f"Template {template.name} total recalculated: {template.cached_total}")
    return {
        'template_id': template.id,
        'total': str(template.cached_total),
        'warning': report.warning_message(),
    }
