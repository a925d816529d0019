"""Custom exceptions used across releasehook."""


class ReleaseHookError(Exception):
    """Base error for the application."""


class ConfigError(ReleaseHookError):
    """Configuration related error."""
