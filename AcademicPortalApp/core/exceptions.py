"""Domain error taxonomy.

The errors subclass DRF's ``APIException`` so that services can raise them
directly and the API layer renders them with a matching status code.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class StoreUnavailable(APIException):
    """The record store could not be reached or failed mid-operation."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Record store unavailable."
    default_code = "store_unavailable"


class NotFound(APIException):
    """An operation targeted an entity that does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidBatch(APIException):
    """Malformed batch write input (empty, bad date, unknown status...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid batch."
    default_code = "invalid_batch"


class Unauthorized(APIException):
    """Caller attempted an action outside its role capability."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Action not permitted for this role."
    default_code = "unauthorized"


class InvalidTransition(APIException):
    """Requested course status change is not in the approval transition table."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Course status transition not allowed."
    default_code = "invalid_transition"


class ConstraintViolation(APIException):
    """A write collided with a uniqueness or integrity constraint."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting record already exists."
    default_code = "constraint_violation"
