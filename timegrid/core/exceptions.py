from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Referenced class (or the draft to publish) does not exist in the caller's tenant."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationError(ServiceError):
    """Malformed periods payload, unknown day, bad period number or duplicate slot."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class StaleVersionError(ServiceError):
    """A save carried a draft version that is no longer current."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class AuthorizationGap(ServiceError):
    """Caller context carries no tenant; precondition failure, never retried."""

    def __init__(self, message: str = "You must be part of an institution to access timetables") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)
