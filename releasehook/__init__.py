"""Sentry release upload hook for bundler build pipelines."""

__version__ = "0.4.0"
