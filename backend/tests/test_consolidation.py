from decimal import Decimal

from domain.bom.consolidation import ConsolidationSummary, consolidate, consolidated_as_lines
from domain.bom.entities import ExplodedLine, Provenance
from domain.bom.explosion import explode
from domain.bom.rollup import rollup_composition
from domain.catalog.entities import Material
from domain.catalog.snapshot import InMemoryCatalogSnapshot


def _totals(items):
    return {item.name: (item.total_quantity, item.total_cost) for item in items}


def test_wall_and_floor(catalog, wall_floor):
    items = consolidate(explode(wall_floor, catalog).lines)

    assert [item.name for item in items] == ['Brick', 'Cement']
    assert _totals(items) == {
        'Brick': (Decimal('350'), Decimal('175000')),
        'Cement': (Decimal('6'), Decimal('300000')),
    }


def test_usages_in_line_order(catalog, wall_floor):
    brick = consolidate(explode(wall_floor, catalog).lines)[0]

    assert [(u.assembly_id, u.assembly_name, u.line_quantity) for u in brick.usages] == [
        ('wall', 'Wall', Decimal('300')),
        ('floor', 'Floor', Decimal('50')),
    ]


def test_totals_do_not_depend_on_line_order(catalog, wall_floor):
    lines = explode(wall_floor, catalog).lines
    assert _totals(consolidate(lines)) == _totals(consolidate(list(reversed(lines))))


def test_total_cost_equals_rollup_grand_total(catalog, wall_floor):
    items = consolidate(explode(wall_floor, catalog).lines)
    assert sum(item.total_cost for item in items) == rollup_composition(wall_floor, catalog).grand_total


def test_reconsolidation_is_idempotent(catalog, wall_floor):
    items = consolidate(explode(wall_floor, catalog).lines)
    again = consolidate(consolidated_as_lines(items))

    assert _totals(again) == _totals(items)
    assert [item.material_key for item in again] == [item.material_key for item in items]


def test_different_price_stays_separate():
    snapshot = InMemoryCatalogSnapshot(materials=[
        Material('old', 'Brick', 'pcs', Decimal('500')),
        Material('new', 'Brick', 'pcs', Decimal('550')),
    ])

    lines = [
        ExplodedLine(snapshot.get_material(mid), Decimal('1'), snapshot.get_material(mid).unit_price,
                     Provenance('a', 'A', Decimal('1'), Decimal('1')))
        for mid in ('old', 'new', 'old')
    ]
    items = consolidate(lines)

    assert len(items) == 2
    assert items[0].total_quantity == Decimal('2')


def test_key_is_case_sensitive():
    lines = []

    for name in ('Brick', 'brick'):
        material = Material(name, name, 'pcs', Decimal('1'))
        lines.append(ExplodedLine(material, Decimal('1'), Decimal('1'),
                                  Provenance('a', 'A', Decimal('1'), Decimal('1'))))
    assert len(consolidate(lines)) == 2


def test_summary(catalog, wall_floor):
    summary = ConsolidationSummary.of(consolidate(explode(wall_floor, catalog).lines))

    assert summary.unique_materials == 2
    assert summary.total_quantity == Decimal('356')
    assert summary.total_value == Decimal('475000')


def test_empty():
    assert consolidate([]) == []
    assert ConsolidationSummary.of([]).total_value == Decimal('0')
