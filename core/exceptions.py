from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("collab.api")


# ---- Domain error taxonomy ----------------------------------------------


class DomainError(APIException):
    """
    Base for every error the collaboration core raises.

    Services raise these directly; the exception handler below renders them
    with their own status code, so views never need to catch them.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "domain_error"


class ValidationFailed(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_failed"


class MalformedQuery(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Query parameters could not be parsed."
    default_code = "malformed_query"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "forbidden"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class NoActiveProject(NotFound):
    default_detail = "You have no active project."
    default_code = "no_active_project"


class AttachmentNotFound(NotFound):
    default_detail = "There is no file with that name on this entry."
    default_code = "attachment_not_found"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Request conflicts with the current state."
    default_code = "conflict"


class AmbiguousActiveProject(Conflict):
    default_detail = "More than one active project matches; refusing to guess."
    default_code = "ambiguous_active_project"


class StorageFailure(DomainError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Attachment storage is unavailable."
    default_code = "storage_failure"


# ---- DRF hook ------------------------------------------------------------


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        errors = response.data
        if isinstance(exc, DomainError) and isinstance(errors, dict):
            errors = {**errors, "code": exc.default_code}
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": errors,
            },
            status=response.status_code,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
