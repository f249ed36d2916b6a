import pytest
from rest_framework.test import APIClient


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def composition():
    return [{'assembly_id': 'wall', 'quantity': 3}, {'assembly_id': 'floor', 'quantity': 1}]


def _post(client, action, payload):
    return client.post(f'/api/v1/bom/{action}/', payload, format='json')


def test_validate_selection_reports_required_group(client, catalog_payload):
    response = _post(client, 'validate-selection', {
        'catalog': catalog_payload,
        'selection': {},
        'category_ids': ['structure'],
    })

    assert response.status_code == 200
    assert response.data['is_valid'] is False
    assert [e['code'] for e in response.data['errors']] == ['required']
    assert response.data['errors'][0]['group_id'] == 'walls'


def test_validate_selection_breakdown(client, catalog_payload):
    response = _post(client, 'validate-selection', {
        'catalog': catalog_payload,
        'selection': {'structure': {'walls': ['wall']}},
    })

    assert response.status_code == 200
    assert response.data['is_valid'] is True
    assert response.data['total_cost'] == '150000'
    assert response.data['breakdown'][0]['category_name'] == 'Structure'


def test_validate_selection_with_defaults(client, catalog_payload):
    catalog_payload['assembly_groups'][0]['items'][0]['is_default'] = True
    response = _post(client, 'validate-selection', {
        'catalog': catalog_payload,
        'selection': {},
        'category_ids': ['structure'],
        'apply_defaults': True,
    })

    assert response.status_code == 200
    assert response.data['is_valid'] is True
    assert response.data['total_cost'] == '150000'


def test_selection_report(client, catalog_payload):
    catalog_payload['assemblies'][0]['materials'].append({'material_id': 'ghost', 'quantity': 1})
    response = _post(client, 'selection-report', {
        'catalog': catalog_payload,
        'selection': {'structure': {'walls': ['wall']}},
        'source_name': 'Kitchen',
    })

    assert response.status_code == 200
    assert response.data['validation']['is_valid'] is True
    report = response.data['report']
    assert report['grand_total'] == '150000'
    assert report['rows'][0][8] == 'Kitchen'
    assert [w['reference_id'] for w in report['warnings']] == ['ghost']


def test_explode(client, catalog_payload, composition):
    response = _post(client, 'explode', {'catalog': catalog_payload, 'items': composition})

    assert response.status_code == 200
    assert len(response.data['lines']) == 3
    assert response.data['lines'][0]['line_quantity'] == '300'
    assert response.data['lines'][0]['provenance']['assembly_name'] == 'Wall'
    assert response.data['total_cost'] == '475000'


def test_consolidate(client, catalog_payload, composition):
    response = _post(client, 'consolidate', {
        'catalog': catalog_payload,
        'items': composition,
        'source_name': 'House A',
    })

    assert response.status_code == 200
    brick = response.data['items'][0]
    assert brick['total_quantity'] == '350'
    assert brick['total_cost'] == '175000'
    assert brick['usage_detail'] == 'Wall(3× × 100 = 300); Floor(1× × 50 = 50)'
    assert response.data['summary']['total_value'] == '475000'
    assert response.data['rows'][0][4] == '350'
    assert response.data['rows'][0][8] == 'House A'


@pytest.mark.parametrize('mode, first_key', [
    ('composition', 'wall'),
    ('consolidated', 'Brick | BR-01 | Acme | pcs @ 500'),
])
def test_rollup(client, catalog_payload, composition, mode, first_key):
    response = _post(client, 'rollup', {'catalog': catalog_payload, 'items': composition, 'mode': mode})

    assert response.status_code == 200
    assert response.data['grand_total'] == '475000'
    assert response.data['percentages'][0]['key'] == first_key


def test_rollup_of_empty_composition(client, catalog_payload):
    response = _post(client, 'rollup', {'catalog': catalog_payload, 'items': []})

    assert response.status_code == 200
    assert response.data['grand_total'] == '0'
    assert response.data['percentages'] == []


def test_boq(client, catalog_payload, composition):
    response = _post(client, 'boq', {'catalog': catalog_payload, 'items': composition})

    assert response.status_code == 200
    assert response.data['rows'][0]['item'] == 'INSTALLATION MODULE'
    assert response.data['rows'][1]['unit'] == 'Assembly'


def test_missing_assembly_is_reported_as_warning(client, catalog_payload):
    response = _post(client, 'consolidate', {
        'catalog': catalog_payload,
        'items': [{'assembly_id': 'ghost', 'quantity': 1}],
    })

    assert response.status_code == 200
    assert response.data['warnings'][0]['reference_id'] == 'ghost'
    assert response.data['warning_message'] == '1 assembly could not be resolved and was excluded from totals'


def test_strict_request_with_missing_assembly(client, catalog_payload):
    response = _post(client, 'explode', {
        'catalog': catalog_payload,
        'items': [{'assembly_id': 'ghost', 'quantity': 1}],
        'strict': True,
    })

    assert response.status_code == 409
    assert response.data['error'] == 'data_integrity_error'


def test_non_positive_quantity_rejected(client, catalog_payload):
    response = _post(client, 'explode', {
        'catalog': catalog_payload,
        'items': [{'assembly_id': 'wall', 'quantity': 0}],
    })

    assert response.status_code == 400
    assert response.data['error'] == 'numeric_error'


def test_malformed_catalog_rejected(client):
    response = _post(client, 'explode', {'catalog': {'materials': 'none'}, 'items': []})

    assert response.status_code == 400
    assert response.data['error'] == 'malformed_snapshot'


def test_missing_fields_rejected(client, catalog_payload):
    response = _post(client, 'explode', {'catalog': catalog_payload})

    assert response.status_code == 400
    assert 'items' in response.data
