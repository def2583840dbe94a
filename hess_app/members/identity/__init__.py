from members.identity.client import reset_identity_client
from members.identity.exceptions import IdentityOperationFailed
from members.identity.user import IdentityUser

__all__ = [
    "IdentityOperationFailed",
    "IdentityUser",
    "reset_identity_client",
]
