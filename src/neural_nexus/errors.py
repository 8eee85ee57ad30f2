"""Error hierarchy shared by the progress engine, stores and API layer."""


class NeuralNexusError(Exception):
    """Base error. ``status_code`` is what the API layer responds with."""

    status_code: int = 500

    def __init__(self, message: str, **context: object):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(NeuralNexusError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(NeuralNexusError):
    """Bad credentials or an invalid/expired session token."""

    status_code = 401


class AuthorizationError(NeuralNexusError):
    """Acting user does not own the referenced resource."""

    status_code = 403


class NotFoundError(NeuralNexusError):
    status_code = 404


class ConflictError(NeuralNexusError):
    """Unique constraint violated (e.g. email already registered)."""

    status_code = 409


class UpstreamError(NeuralNexusError):
    """Curriculum generator unreachable or erroring."""

    status_code = 502


class PersistenceError(NeuralNexusError):
    """Document store read or write failure."""

    status_code = 500
