from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from domain.shared.exceptions import (
    DataIntegrityException,
    DomainException,
    EntityNotFoundException,
)


def custom_exception_handler(exc, context):
    """
    Maps domain exceptions to API responses; everything else goes through
    the default DRF handler.
    """
    if isinstance(exc, DomainException):
        if isinstance(exc, EntityNotFoundException):
            status_code = status.HTTP_404_NOT_FOUND
        elif isinstance(exc, DataIntegrityException):
            status_code = status.HTTP_409_CONFLICT
        else:
            status_code = status.HTTP_400_BAD_REQUEST

        return Response(
            {
                'detail': exc.message,
                'error': exc.code.lower(),
                'details': exc.details,
            },
            status=status_code,
        )

    return exception_handler(exc, context)
