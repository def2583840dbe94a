import logging
import threading
from collections.abc import Callable
from typing import override

import requests
from django.conf import settings
from python_freeipa import ClientMeta, exceptions

logger = logging.getLogger(__name__)

_service_client_local = threading.local()


class _FreeIPATimeoutSession(requests.Session):
    def __init__(self, default_timeout: float) -> None:
        super().__init__()
        self.default_timeout = default_timeout

    @override
    def request(self, method: str, url: str, **kwargs: object) -> requests.Response:
        if "timeout" not in kwargs or kwargs.get("timeout") is None:
            kwargs["timeout"] = self.default_timeout
        return super().request(method, url, **kwargs)


def _build_freeipa_client() -> ClientMeta:
    client = ClientMeta(host=settings.FREEIPA_HOST, verify_ssl=settings.FREEIPA_VERIFY_SSL)
    client._session = _FreeIPATimeoutSession(settings.FREEIPA_REQUEST_TIMEOUT_SECONDS)
    return client


def get_service_client() -> ClientMeta:
    """Logged-in service-account client, cached per thread."""

    client = getattr(_service_client_local, "client", None)
    if client is not None:
        return client

    client = _build_freeipa_client()
    client.login(settings.FREEIPA_SERVICE_USER, settings.FREEIPA_SERVICE_PASSWORD)
    _service_client_local.client = client
    return client


def reset_identity_client() -> None:
    """Force a fresh FreeIPA login on the next call in this thread."""

    if hasattr(_service_client_local, "client"):
        delattr(_service_client_local, "client")


def with_service_client_retry[T](fn: Callable[[ClientMeta], T]) -> T:
    """Run ``fn`` with the service client, re-logging in once on Unauthorized."""

    try:
        return fn(get_service_client())
    except exceptions.PasswordExpired:
        logger.exception("FreeIPA service account password expired")
        reset_identity_client()
        raise
    except exceptions.Unauthorized:
        reset_identity_client()
        try:
            return fn(get_service_client())
        except Exception:
            logger.exception("FreeIPA service account operation failed after re-login")
            raise
