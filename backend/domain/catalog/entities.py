"""
Catalog Domain - Entities.

Immutable reference records read from a catalog snapshot: materials,
assemblies, categories, assembly groups, templates and projects.

Every record validates itself on construction so that the engines can
assume well-formed input. Identifiers are normalised to ``str``.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Tuple

from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import (
    AssemblyModule,
    GroupType,
    non_negative,
    positive,
)


def _require_text(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationException(f"'{field_name}' is required", field_name, value)
    return str(value)


def _optional_text(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Material:
    """
    A purchasable material with a unit price.
    """

    id: str
    name: str
    unit: str
    unit_price: Decimal
    part_number: Optional[str] = None
    manufacturer: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))
        object.__setattr__(self, 'unit', _require_text(self.unit, 'unit'))
        object.__setattr__(self, 'unit_price', non_negative(self.unit_price, 'unit_price'))
        object.__setattr__(self, 'part_number', _optional_text(self.part_number))
        object.__setattr__(self, 'manufacturer', _optional_text(self.manufacturer))


@dataclass(frozen=True)
class AssemblyMaterial:
    """Quantity of one material needed for one assembly."""

    material_id: str
    quantity: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'material_id', _require_text(self.material_id, 'material_id'))
        object.__setattr__(self, 'quantity', positive(self.quantity, 'quantity'))


@dataclass(frozen=True)
class Assembly:
    """
    A buildable unit composed of materials.

    The same material may appear more than once; each occurrence is a
    separate line for explosion and is merged later by consolidation.
    """

    id: str
    name: str
    category_id: str
    materials: Tuple[AssemblyMaterial, ...] = ()
    module: Optional[AssemblyModule] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))
        object.__setattr__(self, 'category_id', _require_text(self.category_id, 'category_id'))
        object.__setattr__(self, 'materials', tuple(self.materials))
        if self.module is not None and not isinstance(self.module, AssemblyModule):
            try:
                object.__setattr__(self, 'module', AssemblyModule(str(self.module).upper()))
            except ValueError:
                raise ValidationException(f"Unknown assembly module '{self.module}'", 'module', self.module)

    @property
    def report_module(self) -> AssemblyModule:
        """Module used to section reports; unassigned assemblies go under ASSEMBLY."""
        return self.module or AssemblyModule.ASSEMBLY


@dataclass(frozen=True)
class Category:
    """Assembly category (e.g. "Lighting", "Power")."""

    id: str
    name: str

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))


@dataclass(frozen=True)
class GroupRule:
    """
    Selection constraints of an assembly group.
    """

    min: int = 0
    max: int = 0
    required: bool = False

    def __post_init__(self):
        if self.min < 0:
            raise ValidationException("Rule minimum cannot be negative", 'min', self.min)
        if self.max < self.min:
            raise ValidationException("Rule maximum cannot be lower than minimum", 'max', self.max)

    @classmethod
    def for_group_type(cls, group_type: GroupType, item_count: int) -> GroupRule:
        """Rule implied by a configured group type."""
        if group_type is GroupType.REQUIRED:
            return cls(min=item_count, max=item_count, required=item_count > 0)
        if group_type is GroupType.CHOOSE_ONE:
            return cls(min=1, max=1, required=True)
        return cls(min=0, max=item_count, required=False)


@dataclass(frozen=True)
class GroupItem:
    """An assembly offered by a group, with the quantity it contributes."""

    assembly_id: str
    quantity: Decimal = Decimal('1')
    conflicts_with: Tuple[str, ...] = ()
    is_default: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'assembly_id', _require_text(self.assembly_id, 'assembly_id'))
        object.__setattr__(self, 'quantity', positive(self.quantity, 'quantity'))
        object.__setattr__(self, 'conflicts_with', tuple(str(c) for c in self.conflicts_with))


@dataclass(frozen=True)
class AssemblyGroup:
    """
    A rule-constrained bucket of selectable assemblies within a category.
    """

    id: str
    category_id: str
    rule: GroupRule
    items: Tuple[GroupItem, ...] = ()
    name: str = ""
    group_type: Optional[GroupType] = None
    sort_order: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'category_id', _require_text(self.category_id, 'category_id'))
        object.__setattr__(self, 'items', tuple(self.items))
        if not self.name:
            object.__setattr__(self, 'name', self.id)
        if self.group_type is not None and not isinstance(self.group_type, GroupType):
            try:
                object.__setattr__(self, 'group_type', GroupType(str(self.group_type).upper()))
            except ValueError:
                raise ValidationException(
                    f"Unknown group type '{self.group_type}'", 'group_type', self.group_type
                )

    def get_item(self, assembly_id: str) -> Optional[GroupItem]:
        """Group item offering ``assembly_id``, if any."""
        for item in self.items:
            if item.assembly_id == assembly_id:
                return item
        return None


@dataclass(frozen=True)
class CompositionItem:
    """
    A top-level (assembly, quantity) pair of a Template or a validated selection.
    """

    assembly_id: str
    quantity: Decimal = Decimal('1')

    def __post_init__(self):
        object.__setattr__(self, 'assembly_id', _require_text(self.assembly_id, 'assembly_id'))
        object.__setattr__(self, 'quantity', positive(self.quantity, 'quantity'))


@dataclass(frozen=True)
class Template:
    """
    A reusable composition of assemblies.

    ``cached_total`` is a projection of the rollup grand total; replace it
    through :meth:`with_total`, never by hand.
    """

    id: str
    name: str
    assemblies: Tuple[CompositionItem, ...] = ()
    cached_total: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))
        object.__setattr__(self, 'assemblies', tuple(self.assemblies))

    def with_total(self, grand_total: Decimal) -> Template:
        """Copy of the template carrying a freshly computed total."""
        return replace(self, cached_total=non_negative(grand_total, 'cached_total'))


@dataclass(frozen=True)
class Project:
    """A customer project built from one template."""

    id: str
    name: str
    template: Optional[Template] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'id', _require_text(self.id, 'id'))
        object.__setattr__(self, 'name', _require_text(self.name, 'name'))

    @property
    def has_template(self) -> bool:
        return self.template is not None
