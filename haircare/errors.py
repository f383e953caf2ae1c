"""Error taxonomy shared by the services and the HTTP layer."""


class HairCareError(Exception):
    """Base class for all errors raised by the core."""


class ValidationError(HairCareError):
    """Caller-supplied data violates an invariant. Never retried."""


class NotFoundError(HairCareError):
    """Referenced conversation or profile does not exist."""


class PersistenceError(HairCareError):
    """Backend I/O failure, including timeouts. Never retried by the core."""


class GateLookupError(HairCareError):
    """Role lookup failed while evaluating an access decision."""
