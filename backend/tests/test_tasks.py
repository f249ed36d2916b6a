import json
import os

import openpyxl
import pytest
from django.core.management import CommandError, call_command

from application.tasks.bom_tasks import export_consolidated_materials, recalculate_template_total


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    return tmp_path


def test_export_writes_one_workbook_per_project(media_root, catalog_payload, projects_payload):
    result = export_consolidated_materials(projects_payload, catalog_payload)

    assert [f['project_id'] for f in result['files']] == ['p1']
    assert [e['project_id'] for e in result['errors']] == ['p2']
    assert result['files'][0]['total_value'] == '475000'

    filepath = result['files'][0]['filepath']
    assert os.path.dirname(filepath) == str(media_root / 'exports' / 'boq')

    ws = openpyxl.load_workbook(filepath).active
    assert [cell.value for cell in ws[1]][:4] == ['Sequence', 'Manufacturer', 'PartNumber', 'ItemName']
    assert ws.cell(row=2, column=4).value == 'Brick'
    assert ws.cell(row=2, column=5).value == 350
    assert ws.cell(row=2, column=10).value == 'Wall(3× × 100 = 300); Floor(1× × 50 = 50)'
    assert ws.cell(row=5, column=1).value == 'Unique materials'
    assert ws.cell(row=5, column=2).value == 2


def test_export_reports_malformed_catalog(media_root, projects_payload):
    result = export_consolidated_materials(projects_payload, {'materials': 'none'})
    assert result['code'] == 'MALFORMED_SNAPSHOT'


def test_recalculate_template_total(catalog_payload, projects_payload):
    result = recalculate_template_total(projects_payload[0]['template'], catalog_payload)
    assert result == {'template_id': 't1', 'total': '475000', 'warning': None}


def test_recalculate_template_total_excludes_missing_assemblies(catalog_payload, projects_payload):
    template = projects_payload[0]['template']
    template['assemblies'].append({'assembly_id': 'ghost', 'quantity': 1})

    result = recalculate_template_total.delay(template, catalog_payload).get()

    assert result['total'] == '475000'
    assert result['warning'] == '1 assembly could not be resolved and was excluded from totals'


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding='utf-8')
    return str(path)


def test_export_command(tmp_path, catalog_payload, projects_payload):
    catalog_file = _write(tmp_path / 'catalog.json', catalog_payload)
    projects_file = _write(tmp_path / 'projects.json', {'projects': projects_payload[:1]})
    output_dir = tmp_path / 'out'

    call_command('export_consolidated_boq', catalog_file, projects_file, output_dir=str(output_dir))

    assert len(list(output_dir.glob('*.xlsx'))) == 1


def test_export_command_strict_refuses_incomplete_data(tmp_path, catalog_payload, projects_payload):
    projects_payload[0]['template']['assemblies'].append({'assembly_id': 'ghost', 'quantity': 1})
    catalog_file = _write(tmp_path / 'catalog.json', catalog_payload)
    projects_file = _write(tmp_path / 'projects.json', projects_payload[:1])
    output_dir = tmp_path / 'out'

    with pytest.raises(CommandError):
        call_command(
            'export_consolidated_boq', catalog_file, projects_file,
            output_dir=str(output_dir), strict=True,
        )
    assert list(output_dir.glob('*.xlsx')) == []


def test_export_command_reports_failed_projects(tmp_path, catalog_payload, projects_payload):
    catalog_file = _write(tmp_path / 'catalog.json', catalog_payload)
    projects_file = _write(tmp_path / 'projects.json', projects_payload)

    with pytest.raises(CommandError):
        call_command('export_consolidated_boq', catalog_file, projects_file, output_dir=str(tmp_path / 'out'))


def test_export_command_rejects_invalid_json(tmp_path, catalog_payload):
    catalog_file = _write(tmp_path / 'catalog.json', catalog_payload)
    projects_file = tmp_path / 'projects.json'
    projects_file.write_text('{not json', encoding='utf-8')

    with pytest.raises(CommandError):
        call_command('export_consolidated_boq', catalog_file, str(projects_file))
