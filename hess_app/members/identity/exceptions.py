"""FreeIPA exception classes."""


class IdentityOperationFailed(RuntimeError):
    """Raised when FreeIPA returns a structured failure without raising."""


__all__ = [
    "IdentityOperationFailed",
]
