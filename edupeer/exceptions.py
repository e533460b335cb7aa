# edupeer/exceptions.py

"""
Domain errors raised by the services. Each one knows the HTTP status it maps
to; main.py turns them into a ``{"message": ...}`` body.
"""

from fastapi import status


class EdupeerError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailed(EdupeerError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(EdupeerError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(EdupeerError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(EdupeerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class Conflict(EdupeerError):
    status_code = status.HTTP_409_CONFLICT
