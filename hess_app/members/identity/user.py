from __future__ import annotations

import logging

from python_freeipa import exceptions

from members.identity.client import with_service_client_retry
from members.identity.exceptions import IdentityOperationFailed

logger = logging.getLogger(__name__)


def _first(value: object) -> str:
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value or "").strip()


def _raise_if_failed(result: object, *, action: str, username: str) -> None:
    if isinstance(result, dict) and result.get("failed"):
        raise IdentityOperationFailed(f"FreeIPA {action} failed for {username}: {result['failed']!r}")


class IdentityUser:
    """A member login identity stored in FreeIPA."""

    def __init__(self, username: str, user_data: dict[str, object] | None = None) -> None:
        self.username = str(username or "").strip()
        data = user_data or {}
        self.first_name = _first(data.get("givenname"))
        self.last_name = _first(data.get("sn"))
        self.email = _first(data.get("mail"))

    def __repr__(self) -> str:
        return f"IdentityUser({self.username!r})"

    @classmethod
    def get(cls, username: str) -> IdentityUser | None:
        normalized = str(username or "").strip()
        if not normalized:
            return None
        try:
            result = with_service_client_retry(lambda client: client.user_show(a_uid=normalized, o_all=True))
        except exceptions.NotFound:
            return None
        except Exception:
            logger.exception("Failed to get identity username=%s", normalized)
            raise
        data = result.get("result") if isinstance(result, dict) else None
        return cls(normalized, data if isinstance(data, dict) else {})

    def update_email(self, email: str) -> None:
        """Change the login email; FreeIPA has no separate confirmation step."""

        normalized = str(email or "").strip()
        try:
            with_service_client_retry(lambda client: client.user_mod(self.username, o_mail=normalized))
        except exceptions.BadRequest as exc:
            if "no modifications to be performed" not in str(exc).lower():
                logger.exception("Failed to update identity email username=%s", self.username)
                raise
            logger.info("FreeIPA user_mod was a no-op username=%s", self.username)
        self.email = normalized

    @classmethod
    def delete(cls, username: str) -> bool:
        """Delete the identity. Returns False when it was already gone."""

        try:
            result = with_service_client_retry(lambda client: client.user_del(username))
            _raise_if_failed(result, action="user_del", username=username)
        except exceptions.NotFound:
            logger.info("Identity already absent username=%s", username)
            return False
        except Exception:
            logger.exception("Failed to delete identity username=%s", username)
            raise
        return True
