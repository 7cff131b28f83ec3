"""
Error taxonomy shared by the scheduling services.

Every class carries the HTTP status and a short ``kind`` so the client can tell
"slot just got taken" apart from "not allowed" and "fix this field".
"""


class BookingServiceError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        body.update(self.extra)
        return body


class ValidationError(BookingServiceError):
    status_code = 400
    kind = "validation"


class AuthenticationError(BookingServiceError):
    status_code = 401
    kind = "unauthenticated"


class AuthorizationError(BookingServiceError):
    status_code = 403
    kind = "forbidden"


class NotFoundError(BookingServiceError):
    status_code = 404
    kind = "not_found"


class ConflictError(BookingServiceError):
    status_code = 409
    kind = "conflict"


class NothingToGenerateError(ConflictError):
    """Every generated candidate collided with an existing slot."""

    def __init__(self, skipped: int):
        super().__init__("No new time slots to create (all slots already exist)", created=0, skipped=skipped)
        self.skipped = skipped


class PaymentIntegrityError(BookingServiceError):
    status_code = 400
    kind = "payment"


class PaymentPendingError(BookingServiceError):
    """Payment went through but the booking is not visible yet; poll again."""

    status_code = 202
    kind = "processing"
