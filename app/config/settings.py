"""
Django settings for the chat client core.

This is the single settings file for all environments. Configuration is driven
by environment variables using django-environ, following the 12-factor app
methodology.

Environment files:
    - .env.development: Development settings (DEBUG=True, local sqlite store)
    - .env.production: Production settings (DEBUG=False)

The project has no server surface: Django provides settings, the ORM used by
the durable session store, timezone handling and logging configuration.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/topics/settings/
"""

import os
from pathlib import Path

import environ

# =============================================================================
# Path Configuration
# =============================================================================
# Build paths inside the project: BASE_DIR / 'subdir'
BASE_DIR = Path(__file__).resolve().parent.parent

# =============================================================================
# Environment Configuration
# =============================================================================
env = environ.Env(
    DEBUG=(bool, False),  # Default to False for safety
    LOG_LEVEL=(str, "INFO"),
    CHAT_DEFAULT_RETENTION_HOURS=(int, 24),
    CHAT_PRESENCE_EXPIRY_ENABLED=(bool, False),
    CHAT_PRESENCE_TTL_SECONDS=(int, 3600),
    CHAT_ROOM_LEAVE_ENABLED=(bool, False),
)

# Read environment file if present; real env vars take precedence
env_file = os.environ.get("ENV_FILE", BASE_DIR.parent / ".env.development")
if Path(env_file).exists():
    environ.Env.read_env(env_file)

# =============================================================================
# Core Settings
# =============================================================================
# Only used by Django internals (signing); the chat store never signs anything
SECRET_KEY = env("SECRET_KEY", default="insecure-local-chat-client-key")

DEBUG = env("DEBUG")

ALLOWED_HOSTS: list[str] = []

# =============================================================================
# Application Definition
# =============================================================================
INSTALLED_APPS = [
    # Django core apps
    "django.contrib.contenttypes",
    "django.contrib.auth",
    # Third-party apps
    "rest_framework",
    # Local apps
    "core",
    "chat",
]

# =============================================================================
# Database Configuration
# =============================================================================
# The durable key-value store lives in a local sqlite file by default
DATABASES = {
    "default": env.db(
        "DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'chat.sqlite3'}",
    ),
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# Django REST Framework Configuration
# =============================================================================
# Serializers only; no views or authentication classes are used
REST_FRAMEWORK = {
    "DATETIME_FORMAT": "iso-8601",
    "UNAUTHENTICATED_USER": None,
}

# =============================================================================
# Internationalization
# =============================================================================
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# =============================================================================
# Chat Configuration
# =============================================================================
# Plaintext equality credential, kept as observed behaviour (see DESIGN.md)
CHAT_MASTER_PASSPHRASE = env("CHAT_MASTER_PASSPHRASE", default="Password from HMray")

# Reserved username that drives the admin bootstrap (compared case-insensitively)
CHAT_ADMIN_USERNAME = "admin"

# General-context retention used until the admin bootstrap writes AdminConfig
CHAT_DEFAULT_RETENTION_HOURS = env("CHAT_DEFAULT_RETENTION_HOURS")

# Presence-expiry sweep hook; presence is otherwise a recorded flag only
CHAT_PRESENCE_EXPIRY_ENABLED = env("CHAT_PRESENCE_EXPIRY_ENABLED")
CHAT_PRESENCE_TTL_SECONDS = env("CHAT_PRESENCE_TTL_SECONDS")

# Room leave operation hook
CHAT_ROOM_LEAVE_ENABLED = env("CHAT_ROOM_LEAVE_ENABLED")

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = env("LOG_LEVEL")

LOG_FILE_NAME = env("LOG_FILE_NAME", default="chat.log")
LOG_DIR = BASE_DIR / "logs"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
        "file": {
            "format": "[{asctime}] {levelname} {name} {module}:{lineno} - {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": {
            # Max 10MB per file, keeps 5 backups
            "level": "DEBUG",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / LOG_FILE_NAME,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "formatter": "file",
            "encoding": "utf-8",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
