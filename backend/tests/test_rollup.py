import logging
from decimal import Decimal

import pytest

from domain.bom.consolidation import consolidate
from domain.bom.explosion import explode
from domain.bom.rollup import rollup, rollup_composition, rollup_consolidated
from domain.catalog.entities import CompositionItem
from domain.catalog.snapshot import InMemoryCatalogSnapshot
from domain.shared.exceptions import ValidationException


def _percent(result, key):
    return next(p.percent for p in result.percentages if p.key == key)


def test_composition_rollup(catalog, wall_floor):
    result = rollup_composition(wall_floor, catalog)

    assert result.grand_total == Decimal('475000')
    assert [(a.assembly_id, a.subtotal) for a in result.per_assembly] == [
        ('wall', Decimal('450000')),
        ('floor', Decimal('25000')),
    ]
    assert [(c.name, c.subtotal) for c in result.per_category] == [('Structure', Decimal('475000'))]
    assert round(_percent(result, 'wall'), 2) == Decimal('94.74')


def test_consolidated_rollup_percentages(catalog, wall_floor):
    items = consolidate(explode(wall_floor, catalog).lines)
    result = rollup_consolidated(items)

    assert result.grand_total == Decimal('475000')
    assert round(result.percentages[0].percent, 2) == Decimal('36.84')
    assert result.per_category == []
    assert [(a.name, a.subtotal) for a in result.per_assembly] == [
        ('Wall', Decimal('450000')),
        ('Floor', Decimal('25000')),
    ]


def test_percentages_sum_to_hundred(catalog, wall_floor):
    result = rollup_composition(wall_floor, catalog)
    assert abs(sum(p.percent for p in result.percentages) - Decimal('100')) < Decimal('1e-20')


def test_repeated_assembly_is_summed(catalog):
    result = rollup_composition([CompositionItem('floor', 1), CompositionItem('floor', 1)], catalog)
    assert len(result.per_assembly) == 1
    assert result.per_assembly[0].subtotal == Decimal('50000')


def test_empty_rollup():
    result = rollup([])
    assert result.grand_total == Decimal('0')
    assert result.percentages == []


def test_zero_priced_composition_has_zero_percentages(catalog_payload):
    for material in catalog_payload['materials']:
        material['unit_price'] = 0
    catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)

    result = rollup_composition([CompositionItem('wall', 1)], catalog)
    assert result.grand_total == Decimal('0')
    assert [p.percent for p in result.percentages] == [Decimal('0')]


def test_dispatcher(catalog, wall_floor):
    items = consolidate(explode(wall_floor, catalog).lines)

    assert rollup(items).grand_total == rollup(wall_floor, catalog).grand_total
    with pytest.raises(ValidationException):
        rollup(wall_floor)
    with pytest.raises(ValidationException):
        rollup(items + wall_floor, catalog)


def test_missing_assembly_is_a_warning(catalog):
    result = rollup_composition([CompositionItem('ghost', 2), CompositionItem('floor', 1)], catalog)

    assert result.grand_total == Decimal('25000')
    assert result.warning_message() == '1 assembly could not be resolved and was excluded from totals'


def test_missing_material_is_logged(catalog_payload, caplog):
    catalog_payload['assemblies'][1]['materials'].append({'material_id': 'ghost', 'quantity': 1})
    catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)

    with caplog.at_level(logging.WARNING, logger='domain.bom.rollup'):
        result = rollup_composition([CompositionItem('floor', 1)], catalog)

    assert result.grand_total == Decimal('25000')
    assert 'Material ghost of assembly floor not found' in caplog.text


def test_consolidated_labels_keep_empty_slots(catalog_payload):
    catalog_payload['materials'] = [
        {'id': 'a', 'name': 'Brick', 'unit': 'pcs', 'unit_price': 500, 'part_number': 'X'},
        {'id': 'b', 'name': 'Brick', 'unit': 'pcs', 'unit_price': 500, 'manufacturer': 'X'},
    ]
    catalog_payload['assemblies'] = [
        {'id': 'wall', 'name': 'Wall', 'category_id': 'structure',
         'materials': [{'material_id': 'a', 'quantity': 1}, {'material_id': 'b', 'quantity': 1}]},
    ]
    catalog_payload['assembly_groups'] = []
    catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)

    items = consolidate(explode([CompositionItem('wall', 1)], catalog).lines)
    keys = [p.key for p in rollup_consolidated(items).percentages]

    assert keys == ['Brick | X |  | pcs @ 500', 'Brick |  | X | pcs @ 500']


def test_consolidated_per_assembly_keyed_by_id(catalog_payload):
    catalog_payload['assemblies'] = [
        {'id': 'w1', 'name': 'Wall', 'category_id': 'structure',
         'materials': [{'material_id': 'brick', 'quantity': 1}]},
        {'id': 'w2', 'name': 'Wall', 'category_id': 'structure',
         'materials': [{'material_id': 'brick', 'quantity': 1}]},
    ]
    catalog_payload['assembly_groups'] = []
    catalog = InMemoryCatalogSnapshot.from_dict(catalog_payload)

    items = consolidate(explode(
        [CompositionItem('w1', 1), CompositionItem('w2', 2)], catalog
    ).lines)
    result = rollup_consolidated(items)

    assert [(a.assembly_id, a.name, a.subtotal) for a in result.per_assembly] == [
        ('w1', 'Wall', Decimal('500')),
        ('w2', 'Wall', Decimal('1000')),
    ]
