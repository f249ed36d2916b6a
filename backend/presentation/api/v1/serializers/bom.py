"""
BOM Serializers.

Request and response serializers for the BOM engine endpoints.
"""

from decimal import Decimal

from rest_framework import serializers

from domain.bom.reports import CONSOLIDATED_COLUMNS, format_usage_detail
from domain.catalog.entities import CompositionItem
from domain.selection.entities import normalize_selection
from .base import AmountField, CatalogRequestSerializer, IssueSerializer, plain


# =============================================================================
# REQUESTS
# =============================================================================

class CompositionItemSerializer(serializers.Serializer):
    """One (assembly, quantity) pair; validates into a CompositionItem."""

    assembly_id = serializers.CharField()
    quantity = AmountField(default=Decimal('1'))

    def validate(self, attrs):
        return CompositionItem(**attrs)


class CompositionRequestSerializer(CatalogRequestSerializer):
    items = CompositionItemSerializer(many=True)
    # Refuse partial results when a reference is missing from the catalog
    strict = serializers.BooleanField(default=False)


class ConsolidateRequestSerializer(CompositionRequestSerializer):
    source_name = serializers.CharField(default='Composition')


class RollupRequestSerializer(CompositionRequestSerializer):
    mode = serializers.ChoiceField(
        choices=['composition', 'consolidated'],
        default='composition',
    )


class SelectionRequestSerializer(CatalogRequestSerializer):
    selection = serializers.JSONField()
    category_ids = serializers.ListField(
        child=serializers.CharField(),
        required=False,
    )
    # Untouched groups start from their default picks
    apply_defaults = serializers.BooleanField(default=False)

    def validate_selection(self, value):
        return normalize_selection(value)


class SelectionReportRequestSerializer(SelectionRequestSerializer):
    source_name = serializers.CharField(default='Selection')


# =============================================================================
# EXPLOSION
# =============================================================================

class MaterialSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    unit = serializers.CharField(read_only=True)
    unit_price = AmountField(read_only=True)
    part_number = serializers.CharField(read_only=True, allow_null=True)
    manufacturer = serializers.CharField(read_only=True, allow_null=True)


class ProvenanceSerializer(serializers.Serializer):
    assembly_id = serializers.CharField(read_only=True)
    assembly_name = serializers.CharField(read_only=True)
    assembly_quantity = AmountField(read_only=True)
    per_assembly_quantity = AmountField(read_only=True)


class ExplodedLineSerializer(serializers.Serializer):
    material = MaterialSerializer(read_only=True)
    line_quantity = AmountField(read_only=True)
    line_cost = AmountField(read_only=True)
    provenance = ProvenanceSerializer(read_only=True)


class ExplosionResultSerializer(serializers.Serializer):
    lines = ExplodedLineSerializer(many=True, read_only=True)
    total_cost = AmountField(read_only=True)
    warnings = IssueSerializer(many=True, read_only=True)
    warning_message = serializers.CharField(read_only=True, allow_null=True)


# =============================================================================
# CONSOLIDATION
# =============================================================================

class UsageSerializer(serializers.Serializer):
    assembly_name = serializers.CharField(read_only=True)
    assembly_quantity = AmountField(read_only=True)
    per_assembly_quantity = AmountField(read_only=True)
    line_quantity = AmountField(read_only=True)


class ConsolidatedLineItemSerializer(serializers.Serializer):
    """Consolidated material with its usages and the rendered usage detail."""

    label = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    part_number = serializers.CharField(read_only=True)
    manufacturer = serializers.CharField(read_only=True)
    unit = serializers.CharField(read_only=True)
    unit_price = AmountField(read_only=True)
    total_quantity = AmountField(read_only=True)
    total_cost = AmountField(read_only=True)
    usages = UsageSerializer(many=True, read_only=True)
    usage_detail = serializers.SerializerMethodField()

    def get_usage_detail(self, obj):
        return format_usage_detail(obj.usages)


class ConsolidationSummarySerializer(serializers.Serializer):
    unique_materials = serializers.IntegerField(read_only=True)
    total_quantity = AmountField(read_only=True)
    total_value = AmountField(read_only=True)


class BomReportSerializer(serializers.Serializer):
    """Consolidated materials of one composition plus export rows."""

    source_name = serializers.CharField(read_only=True)
    items = ConsolidatedLineItemSerializer(many=True, read_only=True)
    summary = ConsolidationSummarySerializer(read_only=True)
    grand_total = AmountField(read_only=True)
    columns = serializers.SerializerMethodField()
    rows = serializers.SerializerMethodField()
    warnings = IssueSerializer(many=True, read_only=True)
    warning_message = serializers.CharField(read_only=True, allow_null=True)

    def get_columns(self, obj):
        return CONSOLIDATED_COLUMNS

    def get_rows(self, obj):
        return [[plain(value) for value in row] for row in obj.rows()]


# =============================================================================
# ROLLUP
# =============================================================================

class AssemblySubtotalSerializer(serializers.Serializer):
    assembly_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    subtotal = AmountField(read_only=True)


class CategorySubtotalSerializer(serializers.Serializer):
    category_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    subtotal = AmountField(read_only=True)


class PercentageSerializer(serializers.Serializer):
    key = serializers.CharField(read_only=True)
    percent = AmountField(read_only=True)
    display = serializers.CharField(source='__str__', read_only=True)


class RollupResultSerializer(serializers.Serializer):
    grand_total = AmountField(read_only=True)
    per_assembly = AssemblySubtotalSerializer(many=True, read_only=True)
    per_category = CategorySubtotalSerializer(many=True, read_only=True)
    percentages = PercentageSerializer(many=True, read_only=True)
    warnings = IssueSerializer(many=True, read_only=True)
    warning_message = serializers.CharField(read_only=True, allow_null=True)


# =============================================================================
# SELECTION VALIDATION
# =============================================================================

class GroupValidationErrorSerializer(serializers.Serializer):
    group_id = serializers.CharField(read_only=True)
    reason = serializers.CharField(read_only=True)
    code = serializers.CharField(read_only=True)
    details = serializers.JSONField(read_only=True)


class SelectedAssemblySerializer(serializers.Serializer):
    assembly_id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    quantity = AmountField(read_only=True)
    cost = AmountField(read_only=True)


class GroupBreakdownSerializer(serializers.Serializer):
    group_id = serializers.CharField(read_only=True)
    group_name = serializers.CharField(read_only=True)
    cost = AmountField(read_only=True)
    assemblies = SelectedAssemblySerializer(many=True, read_only=True)


class CategoryBreakdownSerializer(serializers.Serializer):
    category_id = serializers.CharField(read_only=True)
    category_name = serializers.CharField(read_only=True)
    cost = AmountField(read_only=True)
    groups = GroupBreakdownSerializer(many=True, read_only=True)


class ValidationResultSerializer(serializers.Serializer):
    is_valid = serializers.BooleanField(read_only=True)
    errors = GroupValidationErrorSerializer(many=True, read_only=True)
    warnings = IssueSerializer(many=True, read_only=True)
    breakdown = CategoryBreakdownSerializer(many=True, read_only=True)
    total_cost = AmountField(read_only=True)
    warning_message = serializers.CharField(read_only=True, allow_null=True)


class SelectionReportSerializer(serializers.Serializer):
    """Validation of a selection together with the materials of its valid picks."""

    validation = ValidationResultSerializer(read_only=True)
    report = BomReportSerializer(read_only=True)


# =============================================================================
# BILL OF QUANTITY
# =============================================================================

class BOQRowSerializer(serializers.Serializer):
    no = serializers.CharField(read_only=True)
    item = serializers.CharField(read_only=True)
    manufacturer = serializers.CharField(read_only=True)
    part_number = serializers.CharField(read_only=True)
    qty = AmountField(read_only=True)
    unit = serializers.CharField(read_only=True)
    unit_price = AmountField(read_only=True)
    total_price = AmountField(read_only=True)
    assembly_name = serializers.CharField(read_only=True)
    is_module_header = serializers.BooleanField(read_only=True)
    is_assembly_header = serializers.BooleanField(read_only=True)
    assembly_id = serializers.CharField(read_only=True, allow_null=True)
    material_id = serializers.CharField(read_only=True, allow_null=True)
