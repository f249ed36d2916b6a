"""
Catalog Domain - In-memory snapshot.

An immutable, already-fetched read of the catalog. Built once per
computation (or per project in a bulk export) and shared read-only.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from domain.shared.exceptions import (
    MalformedSnapshotException,
    ValidationException,
)
from domain.shared.value_objects import GroupType

from .entities import (
    Assembly,
    AssemblyGroup,
    AssemblyMaterial,
    Category,
    CompositionItem,
    GroupItem,
    GroupRule,
    Material,
    Project,
    Template,
)
from .repositories import CatalogSnapshotRepository


def _field(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among ``names`` (snake_case first, then camelCase aliases)."""
    for name in names:
        if name in data:
            return data[name]
    return default


def _records(payload: Mapping[str, Any], *names: str) -> List[Mapping[str, Any]]:
    rows = _field(payload, *names, default=[])
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise MalformedSnapshotException(f"'{names[0]}' must be a list", names[0])
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise MalformedSnapshotException(
                f"'{names[0]}[{index}]' must be an object", f"{names[0]}[{index}]"
            )
    return rows


def _index(records: Iterable, kind: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for record in records:
        if record.id in result:
            raise MalformedSnapshotException(f"Duplicate {kind} id '{record.id}'", kind)
        result[record.id] = record
    return result


class InMemoryCatalogSnapshot(CatalogSnapshotRepository):
    """
    Catalog snapshot held in memory.

    Lookups never raise for unknown ids; they return ``None`` (or an empty
    list for groups) and the engines record a data integrity warning.
    """

    def __init__(
        self,
        materials: Iterable[Material] = (),
        assemblies: Iterable[Assembly] = (),
        groups: Iterable[AssemblyGroup] = (),
        categories: Iterable[Category] = (),
    ):
        self._materials = MappingProxyType(_index(materials, 'material'))
        self._assemblies = MappingProxyType(_index(assemblies, 'assembly'))
        self._groups = MappingProxyType(_index(groups, 'assembly_group'))
        self._categories = MappingProxyType(_index(categories, 'category'))

        by_category: Dict[str, List[AssemblyGroup]] = {}
        for group in self._groups.values():
            by_category.setdefault(group.category_id, []).append(group)
        self._groups_by_category = MappingProxyType({
            category_id: tuple(sorted(groups, key=lambda g: (g.sort_order, g.id)))
            for category_id, groups in by_category.items()
        })

    # =========================================================================
    # REPOSITORY
    # =========================================================================

    def get_assembly(self, assembly_id: str) -> Optional[Assembly]:
        return self._assemblies.get(str(assembly_id))

    def get_material(self, material_id: str) -> Optional[Material]:
        return self._materials.get(str(material_id))

    def get_assembly_groups(self, category_id: str) -> List[AssemblyGroup]:
        return list(self._groups_by_category.get(str(category_id), ()))

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(str(category_id))

    def get_group(self, group_id: str) -> Optional[AssemblyGroup]:
        return self._groups.get(str(group_id))

    @property
    def groups(self) -> List[AssemblyGroup]:
        """All groups, ordered by category then sort order."""
        return [
            group
            for category_groups in self._groups_by_category.values()
            for group in category_groups
        ]

    def __repr__(self) -> str:
        return (
            f"<InMemoryCatalogSnapshot materials={len(self._materials)} "
            f"assemblies={len(self._assemblies)} groups={len(self._groups)}>"
        )

    # =========================================================================
    # BOUNDARY PARSING
    # =========================================================================

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> InMemoryCatalogSnapshot:
        """
        Build a snapshot from a JSON-shaped payload.

        Accepts snake_case keys and the camelCase names used by the catalog
        API (``partNumber``, ``price``, ``categoryId``, ``groupType`` ...).
        Structural problems raise :class:`MalformedSnapshotException`;
        invalid values raise :class:`ValidationException` with the offending
        path in ``details``.
        """
        if not isinstance(payload, Mapping):
            raise MalformedSnapshotException("Catalog snapshot must be an object")

        materials = [
            _parse(f"materials[{i}]", _material_from_dict, row)
            for i, row in enumerate(_records(payload, 'materials'))
        ]
        categories = [
            _parse(f"categories[{i}]", _category_from_dict, row)
            for i, row in enumerate(_records(payload, 'categories'))
        ]
        assemblies = [
            _parse(f"assemblies[{i}]", _assembly_from_dict, row)
            for i, row in enumerate(_records(payload, 'assemblies'))
        ]
        groups = [
            _parse(f"assembly_groups[{i}]", _group_from_dict, row)
            for i, row in enumerate(_records(payload, 'assembly_groups', 'assemblyGroups', 'groups'))
        ]
        return cls(
            materials=materials,
            assemblies=assemblies,
            groups=groups,
            categories=categories,
        )


def _parse(path: str, parser, row: Mapping[str, Any]):
    try:
        return parser(row)
    except ValidationException as exc:
        exc.details['path'] = path
        raise
    except (TypeError, ValueError) as exc:
        raise MalformedSnapshotException(f"{path}: {exc}", path) from exc


def _material_from_dict(row: Mapping[str, Any]) -> Material:
    return Material(
        id=_field(row, 'id'),
        name=_field(row, 'name'),
        unit=_field(row, 'unit'),
        unit_price=_field(row, 'unit_price', 'unitPrice', 'price'),
        part_number=_field(row, 'part_number', 'partNumber'),
        manufacturer=_field(row, 'manufacturer'),
    )


def _category_from_dict(row: Mapping[str, Any]) -> Category:
    return Category(id=_field(row, 'id'), name=_field(row, 'name'))


def _assembly_from_dict(row: Mapping[str, Any]) -> Assembly:
    materials = [
        AssemblyMaterial(
            material_id=_field(m, 'material_id', 'materialId'),
            quantity=_field(m, 'quantity'),
        )
        for m in _records(row, 'materials')
    ]
    return Assembly(
        id=_field(row, 'id'),
        name=_field(row, 'name'),
        category_id=_field(row, 'category_id', 'categoryId'),
        materials=materials,
        module=_field(row, 'module'),
        description=_field(row, 'description'),
    )


def _group_type(value: Any) -> GroupType:
    try:
        return GroupType(str(value).upper())
    except ValueError:
        raise ValidationException(f"Unknown group type '{value}'", 'group_type', value)


def _group_from_dict(row: Mapping[str, Any]) -> AssemblyGroup:
    items = [
        GroupItem(
            assembly_id=_field(item, 'assembly_id', 'assemblyId'),
            quantity=_field(item, 'quantity', default=1),
            conflicts_with=_field(item, 'conflicts_with', 'conflictsWith', default=()) or (),
            is_default=bool(_field(item, 'is_default', 'isDefault', default=False)),
        )
        for item in _records(row, 'items')
    ]
    group_type = _field(row, 'group_type', 'groupType')
    rule_data = _field(row, 'rule')
    if rule_data is not None:
        rule = GroupRule(
            min=int(_field(rule_data, 'min', default=0)),
            max=int(_field(rule_data, 'max', default=len(items))),
            required=bool(_field(rule_data, 'required', default=False)),
        )
    elif group_type is not None:
        rule = GroupRule.for_group_type(_group_type(group_type), len(items))
    else:
        rule = GroupRule(min=0, max=len(items), required=False)
    return AssemblyGroup(
        id=_field(row, 'id'),
        category_id=_field(row, 'category_id', 'categoryId'),
        rule=rule,
        items=items,
        name=_field(row, 'name', default='') or '',
        group_type=group_type,
        sort_order=int(_field(row, 'sort_order', 'sortOrder', default=0) or 0),
    )


def composition_from_dicts(rows: Iterable[Mapping[str, Any]]) -> List[CompositionItem]:
    """Parse ``[{assembly_id, quantity}]`` rows into composition items."""
    items = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise MalformedSnapshotException(f"'items[{index}]' must be an object", f"items[{index}]")
        items.append(_parse(f"items[{index}]", lambda r: CompositionItem(
            assembly_id=_field(r, 'assembly_id', 'assemblyId'),
            quantity=_field(r, 'quantity', default=1),
        ), row))
    return items


def template_from_dict(row: Mapping[str, Any]) -> Template:
    """Parse ``{id, name, assemblies: [{assembly_id, quantity}], total}``."""
    if not isinstance(row, Mapping):
        raise MalformedSnapshotException("Template must be an object", "template")
    total = _field(row, 'cached_total', 'total', 'totalPrice')
    template = Template(
        id=_field(row, 'id'),
        name=_field(row, 'name'),
        assemblies=composition_from_dicts(_records(row, 'assemblies', 'items')),
    )
    if total is not None:
        template = template.with_total(total)
    return template


def project_from_dict(row: Mapping[str, Any]) -> Project:
    """Parse a project with its template embedded under ``template``."""
    if not isinstance(row, Mapping):
        raise MalformedSnapshotException("Project must be an object", "project")
    template = _field(row, 'template')
    return Project(
        id=_field(row, 'id'),
        name=_field(row, 'name'),
        template=template_from_dict(template) if template is not None else None,
        description=_field(row, 'description'),
    )
