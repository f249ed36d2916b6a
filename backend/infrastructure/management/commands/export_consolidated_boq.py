import os

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from application.services.bom_service import engine_setting
from application.services.bulk_export import run_bulk_export
from application.tasks.bom_tasks import export_filename, write_consolidated_workbook
from domain.shared.exceptions import DataIntegrityException, DomainException
from infrastructure.catalog.json_loader import load_catalog_snapshot, load_projects


class Command(BaseCommand):
    help = (
        "Exports the consolidated materials of every project in PROJECTS_JSON "
        "to Excel, pricing them from the catalog snapshot in CATALOG_JSON."
    )

    def add_arguments(self, parser):
        parser.add_argument('catalog_json')
        parser.add_argument('projects_json')
        parser.add_argument(
            '--output-dir',
            default=None,
            help='Directory for the xlsx files (default: MEDIA_ROOT/exports/<EXPORT_SUBDIR>)',
        )
        parser.add_argument('--workers', type=int, default=None)
        parser.add_argument(
            '--strict',
            action='store_true',
            help='Fail when a project references assemblies or materials missing from the catalog',
        )

    def handle(self, *args, **options):
        try:
            catalog = load_catalog_snapshot(options['catalog_json'])
            projects = load_projects(options['projects_json'])
        except (OSError, DomainException) as e:
            raise CommandError(str(e))

        output_dir = options['output_dir'] or os.path.join(
            settings.MEDIA_ROOT, 'exports', engine_setting('EXPORT_SUBDIR', 'boq')
        )
        os.makedirs(output_dir, exist_ok=True)

        result = run_bulk_export(projects, lambda project: catalog, max_workers=options['workers'])

        for outcome in result.failed:
            self.stderr.write(self.style.ERROR(f'{outcome.project_name}: {outcome.error}'))

        incomplete = []
        for outcome in result.succeeded:
            report = outcome.report
            if options['strict']:
                try:
                    report.explosion.raise_for_warnings()
                except DataIntegrityException as e:
                    incomplete.append(outcome.project_name)
                    self.stderr.write(self.style.ERROR(f'{outcome.project_name}: {e.message}'))
                    continue
            elif report.warnings:
                self.stdout.write(self.style.WARNING(f'{outcome.project_name}: {report.warning_message()}'))
            filepath = write_consolidated_workbook(
                report, os.path.join(output_dir, export_filename(f"{outcome.project_name}_{outcome.project_id}"))
            )
            self.stdout.write(self.style.SUCCESS(
                f'{outcome.project_name}: {report.summary.unique_materials} materials, '
                f'total {report.summary.total_value} -> {filepath}'
            ))

        if options['strict'] and incomplete:
            raise CommandError(f"Incomplete catalog data for: {', '.join(incomplete)}")
        if result.failed:
            raise CommandError(f'{len(result.failed)} of {len(projects)} projects failed')
