"""Configuration for the Sentry release uploader."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

from releasehook.core.errors import ConfigError
from releasehook.core.logger import get_logger
from releasehook.core.profiles import expand_env, load_section

from .models import Derived, Fixed, as_release_value

LOGGER = get_logger()

DEFAULT_BASE_URL = "https://sentry.io/api/0"
DEPRECATED_URL_SUFFIX = "/projects"
DEFAULT_INCLUDE = r"\.js$|\.map$"
DEFAULT_DELETE_REGEX = r"\.map$"
DEFAULT_TIMEOUT = 30.0

URL_SCHEME_ORGANIZATIONS = "organizations"
URL_SCHEME_PROJECTS = "projects"
URL_SCHEMES = (URL_SCHEME_ORGANIZATIONS, URL_SCHEME_PROJECTS)

ORG_ENV = "SENTRY_ORG"
PROJECT_ENV = "SENTRY_PROJECT"
API_KEY_ENV = "SENTRY_API_KEY"
BASE_URL_ENV = "SENTRY_URL"
TIMEOUT_ENV = "RELEASEHOOK_TIMEOUT_SEC"

# Recognized plugin options, by accepted spelling.
OPTION_FIELDS: dict[str, str] = {
    "organization": "organization",
    "organisation": "organization",
    "project": "projects",
    "apiKey": "api_key",
    "api_key": "api_key",
    "baseSentryURL": "base_url",
    "base_sentry_url": "base_url",
    "release": "release",
    "releaseBody": "release_body",
    "release_body": "release_body",
    "include": "include",
    "exclude": "exclude",
    "filenameTransform": "filename_transform",
    "filename_transform": "filename_transform",
    "suppressErrors": "suppress_errors",
    "suppress_errors": "suppress_errors",
    "suppressConflictError": "suppress_conflict_error",
    "suppress_conflict_error": "suppress_conflict_error",
    "shouldOverwrite": "should_overwrite",
    "should_overwrite": "should_overwrite",
    "deleteAfterCompile": "delete_after_compile",
    "delete_after_compile": "delete_after_compile",
    "deleteRegex": "delete_regex",
    "delete_regex": "delete_regex",
}

# Profile-level settings that are not plugin options.
PROFILE_SETTINGS = ("timeout_sec", "url_scheme")


def default_filename_transform(filename: str) -> str:
    return f"~/{filename}"


def default_release_body(version: str, projects: Sequence[str]) -> dict[str, Any]:
    return {"version": version, "projects": list(projects)}


@dataclass(slots=True)
class ReleaseUploaderConfig:
    """Normalized uploader configuration with every default applied."""

    organization: str | None = None
    projects: tuple[str, ...] = ()
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    release: Fixed[Any] | Derived[Any] = field(default_factory=lambda: Fixed(None))
    release_body: Fixed[Any] | Derived[Any] = field(default_factory=lambda: Derived(default_release_body))
    include: re.Pattern[str] | None = field(default_factory=lambda: re.compile(DEFAULT_INCLUDE))
    exclude: re.Pattern[str] | None = None
    filename_transform: Callable[[str], str] = default_filename_transform
    suppress_errors: bool = False
    suppress_conflict_error: bool = False
    should_overwrite: bool = False
    delete_after_compile: bool = False
    delete_regex: re.Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_DELETE_REGEX))
    timeout_sec: float = DEFAULT_TIMEOUT
    url_scheme: str = URL_SCHEME_ORGANIZATIONS

    @classmethod
    def from_mapping(
        cls,
        options: Mapping[str, Any],
        *,
        timeout_sec: float | None = None,
        url_scheme: str | None = None,
    ) -> "ReleaseUploaderConfig":
        """Create a configuration from plugin options.

        Args:
            options: Plugin options, camelCase or snake_case spellings.
            timeout_sec: Optional HTTP timeout override.
            url_scheme: ``"organizations"`` (default) or ``"projects"``.

        Raises:
            ConfigError: If a pattern, transform or URL scheme is invalid.
        """

        values: dict[str, Any] = {}
        for key, value in options.items():
            target = OPTION_FIELDS.get(key)
            if target is None:
                LOGGER.warning("sentry.config unknown_option key=%s", key)
                continue
            if target == "organization" and values.get("organization"):
                continue
            values[target] = value

        filename_transform = values.get("filename_transform") or default_filename_transform
        if not callable(filename_transform):
            raise ConfigError("filenameTransform must be callable")

        scheme = url_scheme or URL_SCHEME_ORGANIZATIONS
        if scheme not in URL_SCHEMES:
            raise ConfigError(f"Unknown Sentry URL scheme: {scheme}")

        return cls(
            organization=values.get("organization") or None,
            projects=_coerce_projects(values.get("projects")),
            api_key=values.get("api_key") or None,
            base_url=normalize_base_url(values.get("base_url")),
            release=as_release_value(values.get("release")),
            release_body=as_release_value(values.get("release_body") or default_release_body),
            include=_compile(values.get("include") or DEFAULT_INCLUDE, "include"),
            exclude=_compile(values.get("exclude") or None, "exclude"),
            filename_transform=filename_transform,
            suppress_errors=bool(values.get("suppress_errors", False)),
            suppress_conflict_error=bool(values.get("suppress_conflict_error", False)),
            should_overwrite=bool(values.get("should_overwrite", False)),
            delete_after_compile=bool(values.get("delete_after_compile", False)),
            delete_regex=_compile(values.get("delete_regex") or DEFAULT_DELETE_REGEX, "deleteRegex"),
            timeout_sec=float(timeout_sec) if timeout_sec is not None else DEFAULT_TIMEOUT,
            url_scheme=scheme,
        )

    @classmethod
    def from_profile(cls, profile_name: str, *, config_path: str | Path | None = None) -> "ReleaseUploaderConfig":
        """Create a configuration from the ``sentry`` section of releasehook.yaml."""

        raw = load_section("sentry", config_path).get(profile_name)
        if raw is None:
            raise ConfigError(f"sentry profile '{profile_name}' not found")
        expanded = {key: expand_env(value) for key, value in raw.items()}
        settings = {key: expanded.pop(key) for key in PROFILE_SETTINGS if key in expanded}
        return cls.from_mapping(expanded, **settings)

    def validate(self) -> ConfigError | None:
        """Return the first missing required field as an error, or None."""

        if not self.organization:
            return ConfigError("Must provide organization")
        if not self.projects:
            return ConfigError("Must provide project")
        if not self.api_key:
            return ConfigError("Must provide api key")
        if not self.release.is_present():
            return ConfigError("Must provide release version")
        return None


def normalize_base_url(value: str | None) -> str:
    """Return the API root, stripping the deprecated ``/projects`` suffix."""

    if not value:
        return DEFAULT_BASE_URL
    url = str(value).rstrip("/")
    if url.endswith(DEPRECATED_URL_SUFFIX):
        LOGGER.warning(
            "sentry.config deprecated_base_url url=%s -- baseSentryURL with '/projects' suffix is deprecated",
            value,
        )
        url = url[: -len(DEPRECATED_URL_SUFFIX)]
    return url


def resolve_config(
    options: Mapping[str, Any] | None = None,
    *,
    profile: str | None = None,
    config_path: str | Path | None = None,
) -> ReleaseUploaderConfig:
    """Resolve configuration from a profile, explicit options and environment fallbacks.

    Explicit options override profile values; ``SENTRY_*`` variables only fill
    fields that are still missing.
    """

    base = ReleaseUploaderConfig.from_profile(profile, config_path=config_path) if profile else ReleaseUploaderConfig()
    overrides = ReleaseUploaderConfig.from_mapping(options, timeout_sec=base.timeout_sec, url_scheme=base.url_scheme) if options else None

    merged = base
    if overrides is not None:
        changes = {
            OPTION_FIELDS[key]: getattr(overrides, OPTION_FIELDS[key])
            for key in options
            if key in OPTION_FIELDS
        }
        if "organization" in changes and not changes["organization"]:
            changes.pop("organization")
        merged = replace(base, **changes)

    timeout = _read_env_float(TIMEOUT_ENV)
    return replace(
        merged,
        organization=merged.organization or _read_env(ORG_ENV),
        projects=merged.projects or _coerce_projects(_read_env(PROJECT_ENV)),
        api_key=merged.api_key or _read_env(API_KEY_ENV),
        base_url=merged.base_url if merged.base_url != DEFAULT_BASE_URL else normalize_base_url(_read_env(BASE_URL_ENV)),
        timeout_sec=timeout if timeout is not None else merged.timeout_sec,
    )


def _coerce_projects(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value if item)


def _compile(value: Any, option: str) -> re.Pattern[str] | None:
    if value is None:
        return None
    if isinstance(value, re.Pattern):
        return value
    try:
        return re.compile(str(value))
    except re.error as exc:
        raise ConfigError(f"Invalid {option} pattern {value!r}: {exc}") from exc


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip() or None


def _read_env_float(key: str) -> float | None:
    value = _read_env(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be a number") from exc


__all__ = [
    "ReleaseUploaderConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_INCLUDE",
    "DEFAULT_DELETE_REGEX",
    "DEFAULT_TIMEOUT",
    "URL_SCHEME_ORGANIZATIONS",
    "URL_SCHEME_PROJECTS",
    "ORG_ENV",
    "PROJECT_ENV",
    "API_KEY_ENV",
    "BASE_URL_ENV",
    "TIMEOUT_ENV",
    "default_filename_transform",
    "default_release_body",
    "normalize_base_url",
    "resolve_config",
]
