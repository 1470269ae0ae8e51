"""
Domain errors raised by the service layer.

Routes convert these to HTTP responses at the operation boundary:
- FieldValidationError -> 422 with a field -> message map
- StoreError           -> 400 with the backend message passed through
- NotFoundError        -> 404
- AuthError            -> 401 (403 when the email is not confirmed)
"""


class FieldValidationError(Exception):
    """One or more caller-correctable field errors. Never reaches the database."""

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        super().__init__("Validation failed: {}".format(", ".join(sorted(self.errors))))


class StoreError(Exception):
    """A read or write against the database failed (includes integrity violations)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(Exception):
    """The requested row does not exist."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class AuthError(Exception):
    """Sign-up, sign-in or token failure."""

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
