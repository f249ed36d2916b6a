"""
Selection Domain - Entities.

A user's per-category, per-group assembly picks and the result of
validating them against the group rules.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.bom.entities import DataIntegrityIssue, warning_message
from domain.catalog.entities import CompositionItem
from domain.shared.exceptions import MalformedSnapshotException
from domain.shared.value_objects import ZERO


# category_id -> group_id -> [assembly_id]
Selection = Dict[str, Dict[str, List[str]]]


def normalize_selection(raw: Mapping[Any, Any]) -> Selection:
    """Normalise ids to ``str`` and check the nested mapping shape."""
    if not isinstance(raw, Mapping):
        raise MalformedSnapshotException("Selection must be an object", "selection")
    selection: Selection = {}
    for category_id, groups in raw.items():
        if not isinstance(groups, Mapping):
            raise MalformedSnapshotException(
                f"Selection for category '{category_id}' must be an object",
                f"selection.{category_id}",
            )
        selection[str(category_id)] = {}
        for group_id, assembly_ids in groups.items():
            if not isinstance(assembly_ids, (list, tuple)):
                raise MalformedSnapshotException(
                    f"Selection for group '{group_id}' must be a list",
                    f"selection.{category_id}.{group_id}",
                )
            selection[str(category_id)][str(group_id)] = [str(a) for a in assembly_ids]
    return selection


class ErrorCode:
    REQUIRED = "required"
    BELOW_MIN = "below_min"
    ABOVE_MAX = "above_max"
    NOT_IN_GROUP = "not_in_group"
    CONFLICT = "conflict"
    UNKNOWN_GROUP = "unknown_group"


@dataclass(frozen=True)
class GroupValidationError:
    """A rule violation; always names the group it belongs to."""

    group_id: str
    reason: str
    code: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SelectedAssembly:
    assembly_id: str
    name: str
    quantity: Decimal
    cost: Decimal


@dataclass
class GroupBreakdown:
    group_id: str
    group_name: str
    cost: Decimal = ZERO
    assemblies: List[SelectedAssembly] = field(default_factory=list)


@dataclass
class CategoryBreakdown:
    category_id: str
    category_name: str
    cost: Decimal = ZERO
    groups: List[GroupBreakdown] = field(default_factory=list)


@dataclass
class ValidationResult:
    """
    Outcome of validating a selection.

    ``is_valid`` is False as soon as one rule is violated, but the breakdown
    and ``total_cost`` still cover every selected assembly that could be
    resolved, so a UI can show all problems next to the running cost.
    """

    errors: List[GroupValidationError] = field(default_factory=list)
    warnings: List[DataIntegrityIssue] = field(default_factory=list)
    breakdown: List[CategoryBreakdown] = field(default_factory=list)
    total_cost: Decimal = ZERO

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def errors_for(self, group_id: str) -> List[GroupValidationError]:
        return [error for error in self.errors if error.group_id == group_id]

    def composition(self) -> List[CompositionItem]:
        """Selected (assembly, quantity) pairs, ready for explosion."""
        return [
            CompositionItem(assembly.assembly_id, assembly.quantity)
            for category in self.breakdown
            for group in category.groups
            for assembly in group.assemblies
        ]

    def warning_message(self) -> Optional[str]:
        return warning_message(self.warnings)
