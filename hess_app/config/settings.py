import os
from pathlib import Path
from urllib.parse import urlparse

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes", "on")


DEBUG = _env_bool("DEBUG", True)

SECRET_KEY = os.getenv("SECRET_KEY", "")
if not SECRET_KEY:
    if not DEBUG:
        raise ValueError("SECRET_KEY must be set when DEBUG is off")
    SECRET_KEY = "insecure-development-key-do-not-use-in-production"

ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "post_office",
    "members",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
    {
        "BACKEND": "post_office.template.backends.post_office.PostOfficeTemplates",
        "APP_DIRS": True,
        "DIRS": [],
        "OPTIONS": {
            "context_processors": [],
        },
    },
]


def _database_from_env() -> dict[str, object]:
    database_url = os.getenv("DATABASE_URL", "")
    if database_url:
        parsed = urlparse(database_url)
        if parsed.scheme not in {"postgres", "postgresql"}:
            raise ValueError(f"For DATABASE_URL, only postgres is supported, not {parsed.scheme!r}.")
        return {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": parsed.path.lstrip("/"),
            "USER": parsed.username,
            "PASSWORD": parsed.password,
            "HOST": parsed.hostname,
            "PORT": parsed.port or "5432",
        }

    if os.getenv("DATABASE_HOST"):
        return {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DATABASE_NAME", "hess"),
            "USER": os.getenv("DATABASE_USER", "hess"),
            "PASSWORD": os.getenv("DATABASE_PASSWORD", ""),
            "HOST": os.getenv("DATABASE_HOST"),
            "PORT": os.getenv("DATABASE_PORT", "5432"),
        }

    # sqlite fallback: local development and the test suite.
    return {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }


DATABASES = {"default": _database_from_env()}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = os.getenv("STATIC_ROOT", str(BASE_DIR / "staticfiles"))

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")

# FreeIPA (member login identities)
FREEIPA_HOST = os.getenv("FREEIPA_HOST", "ipa.hessconsortium.org")
FREEIPA_VERIFY_SSL = _env_bool("FREEIPA_VERIFY_SSL", True)
FREEIPA_SERVICE_USER = os.getenv("FREEIPA_SERVICE_USER", "svc_hess")
FREEIPA_SERVICE_PASSWORD = os.getenv("FREEIPA_SERVICE_PASSWORD", "")
FREEIPA_REQUEST_TIMEOUT_SECONDS = int(os.getenv("FREEIPA_REQUEST_TIMEOUT_SECONDS", "10"))

# Email (django-post-office queues; the delivery backend is SMTP or console)
POST_OFFICE = {
    "BACKENDS": {
        "default": os.getenv("POST_OFFICE_DELIVERY_BACKEND", "django.core.mail.backends.smtp.EmailBackend"),
    },
    "MESSAGE_ID_ENABLED": True,
}
EMAIL_BACKEND = "post_office.EmailBackend"
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", True)

DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "HESS Consortium <noreply@hessconsortium.org>")
HESS_ADMIN_EMAIL = os.getenv("HESS_ADMIN_EMAIL", "membership@hessconsortium.org")
DEFAULT_NOTIFICATION_SUBJECT = "HESS Consortium Notification"

REGISTRATION_UPDATE_SUBMITTED_EMAIL_TEMPLATE_NAME = "registration-update-submitted"
REGISTRATION_UPDATE_APPROVED_EMAIL_TEMPLATE_NAME = "registration-update-approved"
REGISTRATION_UPDATE_REJECTED_EMAIL_TEMPLATE_NAME = "registration-update-rejected"
REGISTRATION_UPDATES_PENDING_EMAIL_TEMPLATE_NAME = "registration-updates-pending"
TEST_EMAIL_TEMPLATE_NAME = "test-email"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "filters": {
        "health_endpoint": {
            "()": "config.logging_filters.HealthEndpointFilter",
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "django.server": {
            "handlers": ["stderr"],
            "level": "INFO",
            "filters": ["health_endpoint"],
            "propagate": False,
        },
        "members": {
            "handlers": ["stderr"],
            "level": os.getenv("HESS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["stderr"],
        "level": "WARNING",
    },
}

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
if SENTRY_DSN:
    import logging

    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
        traces_sample_rate=0.0,
        send_client_reports=False,
        auto_session_tracking=False,
        send_default_pii=False,
    )
