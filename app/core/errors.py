"""
Typed application errors.

CRUD functions and the storage gateway raise these; a single exception handler
in main.py renders them as {"error": kind, "detail": message}.
"""


class AppError(Exception):
    kind = "internal"
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class BadRequestError(AppError):
    kind = "bad_request"
    status_code = 400
    default_detail = "Bad request"


class UnauthorizedError(AppError):
    kind = "unauthorized"
    status_code = 401
    default_detail = "Authorization token required"


class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = 403
    default_detail = "Permission denied"


class NotFoundError(AppError):
    kind = "not_found"
    status_code = 404
    default_detail = "Not found"


class ConflictError(AppError):
    kind = "conflict"
    status_code = 409
    default_detail = "Resource already exists"


class InvalidOperationError(AppError):
    kind = "invalid_operation"
    status_code = 400
    default_detail = "Invalid operation"


class InternalError(AppError):
    pass


class NotInitializedError(AppError):
    kind = "not_initialized"
    status_code = 503
    default_detail = "minio client not initialized"
