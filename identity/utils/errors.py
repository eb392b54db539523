class IdentityError(Exception):
    """
    Base error for the identity engine. Carries a client-safe message,
    a machine readable kind and the HTTP status it maps to.
    """
    kind = "error"
    status = 400

    def __init__(self, message="Identity error", code=None, status=None):
        self.message = message
        self.code = code or self.kind
        if status is not None:
            self.status = status
        super().__init__(self.message)

    def to_result(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class ConflictError(IdentityError):
    """Uniqueness violations, invalid codes, unverified login, exhausted generation."""
    kind = "conflict"
    status = 409


class NotFoundError(IdentityError):
    kind = "not_found"
    status = 404


class ValidationError(IdentityError):
    """A required field is missing from the input."""
    kind = "validation"
    status = 422


class TransientError(IdentityError):
    """Directory or notification I/O failed. Safe for the caller to retry."""
    kind = "transient"
    status = 503


class InvalidTokenError(IdentityError):
    kind = "invalid_token"
    status = 401
