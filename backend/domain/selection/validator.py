"""
Selection Domain - Assembly Group Validator.

Checks a selection against the rules of each assembly group and prices
the selected assemblies into a category/group breakdown.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Mapping

from domain.bom.entities import DataIntegrityIssue
from domain.bom.rollup import assembly_subtotal
from domain.catalog.entities import AssemblyGroup
from domain.catalog.repositories import CatalogSnapshotRepository
from domain.shared.value_objects import GroupType, IssueKind

from .entities import (
    CategoryBreakdown,
    ErrorCode,
    GroupBreakdown,
    GroupValidationError,
    SelectedAssembly,
    Selection,
    ValidationResult,
)

logger = logging.getLogger(__name__)


def validate_selection(
    groups: Iterable[AssemblyGroup],
    selection: Selection,
    catalog: CatalogSnapshotRepository,
    deduplicate: bool = True,
) -> ValidationResult:
    """
    Validate ``selection`` against ``groups`` and price the selected assemblies.

    All violations are collected; nothing is raised for rule violations.
    With ``deduplicate`` (the default) an assembly picked twice in the same
    group counts, and costs, once. With ``deduplicate=False`` every pick
    counts and is priced separately.

    Assemblies missing from the catalog become warnings and are left out
    of the totals; picks that are not offered by the group are errors.
    """
    result = ValidationResult()
    categories: Dict[str, CategoryBreakdown] = {}
    known_groups = set()

    for group in _ordered(groups):
        known_groups.add((group.category_id, group.id))
        picks = selection.get(group.category_id, {}).get(group.id, [])
        if deduplicate:
            picks = list(dict.fromkeys(picks))

        result.errors.extend(_check_rule(group, picks))

        breakdown = _price_group(group, picks, catalog, result)
        category = categories.get(group.category_id)
        if category is None:
            category = categories[group.category_id] = CategoryBreakdown(
                category_id=group.category_id,
                category_name=catalog.category_name(group.category_id),
            )
        category.groups.append(breakdown)
        category.cost += breakdown.cost
        result.total_cost += breakdown.cost

    for category_id, category_groups in selection.items():
        for group_id, picks in category_groups.items():
            if (category_id, group_id) not in known_groups and picks:
                logger.warning(f"Selection references unknown group {group_id} in category {category_id}")
                result.errors.append(GroupValidationError(
                    group_id=group_id,
                    reason=f'Group "{group_id}" does not exist in category "{category_id}"',
                    code=ErrorCode.UNKNOWN_GROUP,
                    details={"category_id": category_id},
                ))

    result.breakdown = list(categories.values())
    logger.debug(
        f"Validated selection: {len(result.errors)} errors, "
        f"{len(result.warnings)} warnings, total {result.total_cost}"
    )
    return result


def _ordered(groups: Iterable[AssemblyGroup]) -> List[AssemblyGroup]:
    """Categories in first-seen order, groups by sort order within each."""
    by_category: Dict[str, List[AssemblyGroup]] = {}
    for group in groups:
        by_category.setdefault(group.category_id, []).append(group)
    return [
        group
        for category_groups in by_category.values()
        for group in sorted(category_groups, key=lambda g: (g.sort_order, g.id))
    ]


def _check_rule(group: AssemblyGroup, picks: List[str]) -> List[GroupValidationError]:
    errors = []
    count = len(picks)
    rule = group.rule
    counts = {"selected": count, "min": rule.min, "max": rule.max}

    if rule.required and count == 0:
        errors.append(GroupValidationError(
            group_id=group.id,
            reason=f'Group "{group.name}" requires a selection',
            code=ErrorCode.REQUIRED,
            details=counts,
        ))
    elif count < rule.min:
        errors.append(GroupValidationError(
            group_id=group.id,
            reason=f'Group "{group.name}" requires at least {rule.min} selected, got {count}',
            code=ErrorCode.BELOW_MIN,
            details=counts,
        ))
    if count > rule.max:
        errors.append(GroupValidationError(
            group_id=group.id,
            reason=f'Group "{group.name}" allows at most {rule.max} selected, got {count}',
            code=ErrorCode.ABOVE_MAX,
            details=counts,
        ))

    offered = [group.get_item(pick) for pick in picks]
    for pick, item in zip(picks, offered):
        if item is None:
            errors.append(GroupValidationError(
                group_id=group.id,
                reason=f'Assembly "{pick}" is not offered by group "{group.name}"',
                code=ErrorCode.NOT_IN_GROUP,
                details={"assembly_id": pick},
            ))

    errors.extend(_check_conflicts(group, [item for item in offered if item is not None]))
    return errors


def _check_conflicts(group: AssemblyGroup, items) -> List[GroupValidationError]:
    errors = []
    seen_pairs = set()
    for item in items:
        for other in items:
            if other.assembly_id == item.assembly_id or other.assembly_id not in item.conflicts_with:
                continue
            pair = frozenset((item.assembly_id, other.assembly_id))
            if pair in seen_pairs:
                continue
            seen_pairs.add(pair)
            errors.append(GroupValidationError(
                group_id=group.id,
                reason=f'Conflicting items selected in group "{group.name}"',
                code=ErrorCode.CONFLICT,
                details={"item": item.assembly_id, "conflicts": [other.assembly_id]},
            ))
    return errors


def _price_group(
    group: AssemblyGroup,
    picks: List[str],
    catalog: CatalogSnapshotRepository,
    result: ValidationResult,
) -> GroupBreakdown:
    breakdown = GroupBreakdown(group_id=group.id, group_name=group.name)
    for pick in picks:
        item = group.get_item(pick)
        if item is None:
            continue
        assembly = catalog.get_assembly(pick)
        if assembly is None:
            logger.warning(f"Selected assembly {pick} of group {group.id} not found in catalog")
            result.warnings.append(DataIntegrityIssue(
                IssueKind.ASSEMBLY, pick, context=f"group {group.name}"
            ))
            continue

        cost = assembly_subtotal(assembly, catalog, result.warnings) * item.quantity
        breakdown.assemblies.append(SelectedAssembly(
            assembly_id=assembly.id,
            name=assembly.name,
            quantity=item.quantity,
            cost=cost,
        ))
        breakdown.cost += cost
    return breakdown


def groups_for_selection(
    selection: Mapping[str, Mapping[str, List[str]]],
    catalog: CatalogSnapshotRepository,
) -> List[AssemblyGroup]:
    """Every group of every category mentioned in ``selection``."""
    groups: List[AssemblyGroup] = []
    for category_id in selection:
        groups.extend(catalog.get_assembly_groups(category_id))
    return groups


def default_picks(group: AssemblyGroup) -> List[str]:
    """
    Assemblies a group starts with before the user picks anything.

    REQUIRED groups start with every item; CHOOSE_ONE groups with the item
    flagged ``is_default``, else the first item. OPTIONAL and CONFLICT
    groups start empty. Groups configured by rule only start with their
    ``is_default`` items.
    """
    if group.group_type is GroupType.REQUIRED:
        return [item.assembly_id for item in group.items]
    if group.group_type is GroupType.CHOOSE_ONE:
        default = next((item for item in group.items if item.is_default), None)
        if default is None and group.items:
            default = group.items[0]
        return [default.assembly_id] if default is not None else []
    if group.group_type is not None:
        return []
    return [item.assembly_id for item in group.items if item.is_default]


def with_defaults(groups: Iterable[AssemblyGroup], selection: Selection) -> Selection:
    """
    Copy of ``selection`` where every group the user has not touched yet
    holds its default picks. Groups present in ``selection`` are kept as
    given, an empty list included.
    """
    filled: Selection = {
        category_id: {group_id: list(picks) for group_id, picks in category_groups.items()}
        for category_id, category_groups in selection.items()
    }
    for group in groups:
        category_groups = filled.setdefault(group.category_id, {})
        if group.id not in category_groups:
            category_groups[group.id] = default_picks(group)
    return filled
