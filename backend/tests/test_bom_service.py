import threading
import time
from decimal import Decimal

import pytest

from application.services.bom_service import BomService
from application.services.bulk_export import run_bulk_export
from domain.catalog.entities import CompositionItem, Project, Template
from domain.catalog.snapshot import InMemoryCatalogSnapshot
from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import IssueKind


@pytest.fixture
def service(catalog):
    return BomService(catalog)


@pytest.fixture
def template(wall_floor):
    return Template('t1', 'Standard House', assemblies=wall_floor)


def _projects(template, count):
    return [Project(f'p{i}', f'Project {i}', template=template) for i in range(count)]


def test_build_report(service, wall_floor):
    report = service.build_report(wall_floor, 'House A')

    assert report.grand_total == Decimal('475000')
    assert report.summary.unique_materials == 2
    assert report.rows()[0][8] == 'House A'
    assert report.warning_message() is None


def test_report_for_project_without_template(service):
    with pytest.raises(ValidationException):
        service.report_for_project(Project('p', 'Empty'))


def test_refresh_template_total(service, template):
    refreshed, report = service.refresh_template_total(template)

    assert refreshed.cached_total == Decimal('475000')
    assert template.cached_total is None
    assert report.source_name == 'Standard House'
    assert report.warning_message() is None


def test_report_for_template(service, template):
    report = service.report_for_template(template)

    assert report.grand_total == Decimal('475000')
    assert report.rows()[0][8] == 'Standard House'


def test_report_for_selection_uses_valid_picks(service):
    validation, report = service.report_for_selection(
        {'structure': {'walls': ['wall']}, 'finish': {'paint': ['paint-a']}},
        'Selection',
    )

    assert validation.is_valid
    assert report.grand_total == validation.total_cost == Decimal('152001')


def test_validate_enforces_requested_categories(service):
    result = service.validate({}, category_ids=['structure'])
    assert [e.group_id for e in result.errors] == ['walls']


def test_deduplication_follows_settings(settings, catalog):
    settings.BOM_ENGINE = {**settings.BOM_ENGINE, 'DEDUPLICATE_GROUP_SELECTIONS': False}
    result = BomService(catalog).validate({'structure': {'walls': ['floor', 'floor']}})

    assert not result.is_valid
    assert result.total_cost == Decimal('50000')


def test_bulk_export_isolates_failures(catalog, template):
    projects = _projects(template, 3)
    projects.insert(1, Project('empty', 'Empty'))

    result = run_bulk_export(projects, lambda project: catalog, max_workers=2)

    assert [o.project_id for o in result.outcomes] == ['p0', 'empty', 'p1', 'p2']
    assert [o.project_id for o in result.failed] == ['empty']
    assert all(o.report.grand_total == Decimal('475000') for o in result.succeeded)
    assert not result.cancelled


def test_bulk_export_catalog_errors_are_captured(catalog, template):
    def catalog_for(project):
        if project.id == 'p1':
            raise OSError('catalog service unavailable')
        return catalog

    result = run_bulk_export(_projects(template, 3), catalog_for, max_workers=2)

    assert [o.error for o in result.failed] == ['catalog service unavailable']
    assert len(result.succeeded) == 2


def test_bulk_export_respects_worker_bound(catalog, template):
    lock = threading.Lock()
    active = [0]
    peak = [0]

    def catalog_for(project):
        with lock:
            active[0] += 1
            peak[0] = max(peak[0], active[0])
        time.sleep(0.02)
        with lock:
            active[0] -= 1
        return catalog

    result = run_bulk_export(_projects(template, 6), catalog_for, max_workers=2)

    assert len(result.succeeded) == 6
    assert peak[0] <= 2


def test_bulk_export_cancellation_lets_running_pipelines_finish(catalog, template):
    cancel = threading.Event()

    def catalog_for(project):
        cancel.set()
        return catalog

    result = run_bulk_export(_projects(template, 4), catalog_for, max_workers=1, cancel_event=cancel)

    assert result.cancelled
    assert [o.project_id for o in result.succeeded] == ['p0']
    assert result.skipped == ['p1', 'p2', 'p3']


def test_bulk_export_uses_configured_workers(settings, catalog, template):
    settings.BOM_ENGINE = {**settings.BOM_ENGINE, 'BULK_MAX_WORKERS': 1}
    result = run_bulk_export(_projects(template, 2), lambda project: catalog)
    assert len(result.succeeded) == 2


def test_selection_report_lists_each_missing_material_once(catalog_payload):
    catalog_payload['assemblies'][0]['materials'].append({'material_id': 'ghost', 'quantity': 1})
    service = BomService(InMemoryCatalogSnapshot.from_dict(catalog_payload))

    validation, report = service.report_for_selection({'structure': {'walls': ['wall']}}, 'Selection')

    assert len(validation.warnings) == 1
    assert [(w.kind, w.reference_id) for w in report.warnings] == [(IssueKind.MATERIAL, 'ghost')]
    assert report.grand_total == Decimal('150000')


@pytest.fixture
def floor_by_default(catalog_payload):
    catalog_payload['assembly_groups'][0]['items'][1]['is_default'] = True
    return BomService(InMemoryCatalogSnapshot.from_dict(catalog_payload))


def test_selection_with_defaults(floor_by_default):
    validation, report = floor_by_default.report_for_selection(
        {}, 'Defaults', category_ids=['structure', 'finish'], apply_defaults=True
    )

    assert validation.is_valid
    assert [i.assembly_id for i in validation.composition()] == ['floor']
    assert report.grand_total == Decimal('25000')


def test_explicit_empty_group_is_not_defaulted(floor_by_default):
    result = floor_by_default.validate({'structure': {'walls': []}}, apply_defaults=True)
    assert [e.group_id for e in result.errors] == ['walls']
