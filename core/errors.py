"""
core/errors.py -- Error taxonomy shared by every layer.

Services and the auth policy raise these; api/main.py owns the single set of
exception handlers that turns them into the JSON error envelope. Route
handlers never build error responses by hand.

Each class carries a machine-readable code and the HTTP status it maps to:

  VALIDATION     400   malformed or missing input
  AUTH_REQUIRED  401   no bearer token, or a blank one
  AUTH_INVALID   401   bad/expired token, or the token holder no longer exists
  FORBIDDEN      403   authenticated but not allowed
  NOT_FOUND      404   resource absent
  CONFLICT       409   duplicate unique key
  RENDER_FAILED  500   PDF generation failed
  INTERNAL       500   anything unrecognised (handled in api/main.py)
"""


class PortfolioError(Exception):
    """Base class for every expected, client-facing failure."""

    code = "INTERNAL"
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailedError(PortfolioError):
    code = "VALIDATION"
    status_code = 400
    default_message = "Request validation failed."


class AuthRequiredError(PortfolioError):
    code = "AUTH_REQUIRED"
    status_code = 401
    default_message = "Access token is required."


class AuthInvalidError(PortfolioError):
    code = "AUTH_INVALID"
    status_code = 401
    default_message = "Invalid or expired token."


class ForbiddenError(PortfolioError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Insufficient permissions."


class NotFoundError(PortfolioError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."


class ConflictError(PortfolioError):
    code = "CONFLICT"
    status_code = 409
    default_message = "Duplicate field value entered."


class RenderFailedError(PortfolioError):
    code = "RENDER_FAILED"
    status_code = 500
    default_message = "Failed to generate PDF."
