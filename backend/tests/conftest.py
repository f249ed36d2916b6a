"""
Shared fixtures: a small construction catalog.

Wall = 100 Brick + 2 Cement, Floor = 50 Brick; two finishing paints that
conflict with each other; a "Walls" group requiring exactly one pick.
"""

import copy
from decimal import Decimal

import pytest

from domain.catalog.entities import CompositionItem
from domain.catalog.snapshot import InMemoryCatalogSnapshot


CATALOG_PAYLOAD = {
    'materials': [
        {'id': 'brick', 'name': 'Brick', 'unit': 'pcs', 'unit_price': 500,
         'part_number': 'BR-01', 'manufacturer': 'Acme'},
        {'id': 'cement', 'name': 'Cement', 'unit': 'bag', 'unit_price': 50000},
        {'id': 'paint-white', 'name': 'Paint White', 'unit': 'l', 'unit_price': '1000.50'},
        {'id': 'paint-blue', 'name': 'Paint Blue', 'unit': 'l', 'unit_price': 1200},
    ],
    'categories': [
        {'id': 'structure', 'name': 'Structure'},
        {'id': 'finish', 'name': 'Finishing'},
    ],
    'assemblies': [
        {'id': 'wall', 'name': 'Wall', 'category_id': 'structure', 'module': 'MECHANICAL',
         'materials': [
             {'material_id': 'brick', 'quantity': 100},
             {'material_id': 'cement', 'quantity': 2},
         ]},
        {'id': 'floor', 'name': 'Floor', 'category_id': 'structure', 'module': 'INSTALLATION',
         'materials': [
             {'material_id': 'brick', 'quantity': 50},
         ]},
        {'id': 'paint-a', 'name': 'White Finish', 'category_id': 'finish',
         'materials': [
             {'material_id': 'paint-white', 'quantity': 2},
         ]},
        {'id': 'paint-b', 'name': 'Blue Finish', 'category_id': 'finish',
         'materials': [
             {'material_id': 'paint-blue', 'quantity': 3},
         ]},
    ],
    'assembly_groups': [
        {'id': 'walls', 'name': 'Walls', 'category_id': 'structure',
         'rule': {'min': 1, 'max': 1, 'required': True},
         'items': [
             {'assembly_id': 'wall'},
             {'assembly_id': 'floor'},
         ]},
        {'id': 'paint', 'name': 'Paint', 'category_id': 'finish', 'group_type': 'CONFLICT',
         'items': [
             {'assembly_id': 'paint-a', 'conflicts_with': ['paint-b']},
             {'assembly_id': 'paint-b'},
         ]},
    ],
}


@pytest.fixture
def catalog_payload():
    return copy.deepcopy(CATALOG_PAYLOAD)


@pytest.fixture
def catalog(catalog_payload):
    return InMemoryCatalogSnapshot.from_dict(catalog_payload)


@pytest.fixture
def wall_floor():
    """Wall x3 plus Floor x1."""
    return [
        CompositionItem('wall', Decimal('3')),
        CompositionItem('floor', Decimal('1')),
    ]


@pytest.fixture
def projects_payload():
    return [
        {
            'id': 'p1',
            'name': 'House A',
            'template': {
                'id': 't1',
                'name': 'Standard House',
                'assemblies': [
                    {'assembly_id': 'wall', 'quantity': 3},
                    {'assembly_id': 'floor', 'quantity': 1},
                ],
            },
        },
        {
            'id': 'p2',
            'name': 'Empty Lot',
        },
    ]
