"""
BOM Views.

Stateless BOM engine endpoints. Every request carries the catalog snapshot
it should be computed against; nothing is persisted.

Endpoints:
- POST /bom/validate-selection/ - group rule check and cost breakdown
- POST /bom/selection-report/   - validation plus consolidated materials
- POST /bom/explode/            - one line per (assembly, material)
- POST /bom/consolidate/        - materials merged across assemblies
- POST /bom/rollup/             - grand total, subtotals and percentages
- POST /bom/boq/                - hierarchical Bill of Quantity
"""

from dataclasses import replace
import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from application.services.bom_service import BomService
from domain.bom.reports import BOQ_COLUMNS

from ..serializers.base import IssueSerializer
from ..serializers.bom import (
    BomReportSerializer,
    BOQRowSerializer,
    CompositionRequestSerializer,
    ConsolidateRequestSerializer,
    ExplosionResultSerializer,
    RollupRequestSerializer,
    RollupResultSerializer,
    SelectionReportRequestSerializer,
    SelectionReportSerializer,
    SelectionRequestSerializer,
    ValidationResultSerializer,
)

logger = logging.getLogger(__name__)


class BOMEngineViewSet(viewsets.ViewSet):
    """
    ViewSet for the BOM engine.

    Validation problems in the selection are part of a 200 response
    (``is_valid`` false); only malformed requests get an error status.
    """

    permission_classes = [AllowAny]

    def _validated(self, serializer_class, request):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return BomService(data['catalog']), data

    def _check_strict(self, data, warnings):
        """With ``strict`` set, a missing catalog reference fails the request (409)."""
        if data.get('strict') and warnings:
            raise warnings[0].to_exception()

    @action(detail=False, methods=['post'], url_path='validate-selection')
    def validate_selection(self, request):
        """Check a selection against the assembly group rules."""
        service, data = self._validated(SelectionRequestSerializer, request)
        result = service.validate(
            data['selection'], data.get('category_ids'), data['apply_defaults']
        )
        return Response(ValidationResultSerializer(result).data)

    @action(detail=False, methods=['post'], url_path='selection-report')
    def selection_report(self, request):
        """Validate a selection and consolidate the materials of its valid picks."""
        service, data = self._validated(SelectionReportRequestSerializer, request)
        validation, report = service.report_for_selection(
            data['selection'],
            data['source_name'],
            data.get('category_ids'),
            data['apply_defaults'],
        )
        return Response(SelectionReportSerializer(
            {'validation': validation, 'report': report}
        ).data)

    @action(detail=False, methods=['post'], url_path='explode')
    def explode(self, request):
        service, data = self._validated(CompositionRequestSerializer, request)
        result = service.explode(data['items'])
        self._check_strict(data, result.warnings)
        return Response(ExplosionResultSerializer(result).data)

    @action(detail=False, methods=['post'], url_path='consolidate')
    def consolidate(self, request):
        service, data = self._validated(ConsolidateRequestSerializer, request)
        report = service.build_report(data['items'], data['source_name'])
        self._check_strict(data, report.warnings)
        return Response(BomReportSerializer(report).data)

    @action(detail=False, methods=['post'], url_path='rollup')
    def rollup(self, request):
        """
        Roll up a composition.

        ``mode=composition`` breaks the total down per assembly and category;
        ``mode=consolidated`` rolls up the consolidated materials instead
        (percentages per material).
        """
        service, data = self._validated(RollupRequestSerializer, request)
        if data['mode'] == 'consolidated':
            report = service.build_report(data['items'], 'Rollup')
            result = replace(report.rollup, warnings=report.warnings)
        else:
            result = service.rollup(data['items'])
        self._check_strict(data, result.warnings)
        return Response(RollupResultSerializer(result).data)

    @action(detail=False, methods=['post'], url_path='boq')
    def boq(self, request):
        service, data = self._validated(CompositionRequestSerializer, request)
        rows = service.boq(data['items'])
        warnings = service.explode(data['items']).warnings
        self._check_strict(data, warnings)
        return Response({
            'columns': BOQ_COLUMNS,
            'rows': BOQRowSerializer(rows, many=True).data,
            'warnings': IssueSerializer(warnings, many=True).data,
        })
