"""
Base Serializers.

Common fields and base classes for the BOM engine endpoints.
"""

from decimal import Decimal

from rest_framework import serializers

from domain.catalog.snapshot import InMemoryCatalogSnapshot


class AmountField(serializers.DecimalField):
    """
    Decimal without fixed precision.

    Quantities and money are returned as plain strings (``"175000"``,
    ``"0.125"``) and never rounded here; rounding belongs to the client.
    """

    def __init__(self, **kwargs):
        super().__init__(max_digits=None, decimal_places=None, **kwargs)


def plain(value):
    """JSON-safe cell value: Decimals as plain strings."""
    if isinstance(value, Decimal):
        return '{:f}'.format(value)
    return value


class CatalogRequestSerializer(serializers.Serializer):
    """
    Base for requests carrying a catalog snapshot.

    ``validated_data['catalog']`` is an :class:`InMemoryCatalogSnapshot`.
    Malformed snapshots raise domain exceptions that the API exception
    handler turns into 400 responses.
    """

    catalog = serializers.JSONField()

    def validate_catalog(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Catalog snapshot must be an object.')
        return InMemoryCatalogSnapshot.from_dict(value)


class IssueSerializer(serializers.Serializer):
    """Catalog reference that could not be resolved."""

    kind = serializers.CharField(source='kind.value', read_only=True)
    reference_id = serializers.CharField(read_only=True)
    context = serializers.CharField(read_only=True, allow_null=True)
    message = serializers.CharField(read_only=True)
