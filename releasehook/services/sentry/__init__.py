"""Sentry release integration."""

from .cli import app as sentry_app
from .client import SentryReleaseClient
from .config import ReleaseUploaderConfig
from .plugin import ReleaseUploader

__all__ = [
    "ReleaseUploader",
    "ReleaseUploaderConfig",
    "SentryReleaseClient",
    "sentry_app",
]
