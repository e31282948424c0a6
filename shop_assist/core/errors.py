from fastapi import status


class ShopAssistError(Exception):
    """Base class for failures reported to API callers.

    ``kind`` is stable and safe to branch on; ``message`` is for humans.
    """

    kind = "unexpected_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ShopAssistError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class ForbiddenError(ShopAssistError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class ConflictError(ShopAssistError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The request conflicts with the current state."


class AlreadyRespondedError(ConflictError):
    default_message = "Invitation has already been responded to."


class LastAdminError(ConflictError):
    default_message = "A family group must keep at least one admin."


class ExpiredError(ShopAssistError):
    kind = "expired"
    status_code = status.HTTP_410_GONE
    default_message = "Invitation has expired."


class ValidationError(ShopAssistError):
    kind = "validation_error"
    status_code = 422
    default_message = "Invalid input."


class TransientStoreError(ShopAssistError):
    kind = "transient_store_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The data store is temporarily unavailable. Please retry."


class UnexpectedError(ShopAssistError):
    pass
