"""
Serializers Package.

All API serializers for the BOQ engine.
"""

from .base import AmountField, CatalogRequestSerializer, IssueSerializer

from .bom import (
    CompositionItemSerializer,
    CompositionRequestSerializer,
    ConsolidateRequestSerializer,
    RollupRequestSerializer,
    SelectionRequestSerializer,
    SelectionReportRequestSerializer,
    ExplosionResultSerializer,
    BomReportSerializer,
    RollupResultSerializer,
    ValidationResultSerializer,
    SelectionReportSerializer,
    BOQRowSerializer,
)
