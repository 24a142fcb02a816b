# delivery/utils/errors.py
# Error taxonomy rendered by the handlers in main.py as {"error": message}

from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}


class ValidationError(ServiceError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """The record is not in a state that allows the operation."""
    status_code = status.HTTP_409_CONFLICT
