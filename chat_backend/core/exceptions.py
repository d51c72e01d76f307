"""Domain error taxonomy.

Services raise these; the HTTP layer translates them to responses using
``status_code``. Nothing below the API layer knows about HTTP beyond that
attribute.
"""


class ChatError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(ChatError):
    status_code = 401
    default_detail = "Unauthenticated"


class Unauthorized(ChatError):
    status_code = 401
    default_detail = "Unauthorized"


class Forbidden(ChatError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(ChatError):
    status_code = 404
    default_detail = "Not found"


class Conflict(ChatError):
    status_code = 409
    default_detail = "Conflict"


class InvalidOperation(ChatError):
    status_code = 400
    default_detail = "Invalid operation"


class ValidationError(ChatError):
    status_code = 422
    default_detail = "Invalid request payload"


class Internal(ChatError):
    status_code = 500


class StoreError(Internal):
    default_detail = "Storage backend failure"
