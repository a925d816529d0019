"""Domain models and exceptions for the Sentry release integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Generic, Mapping, TypeVar

from releasehook.core.errors import ReleaseHookError

T = TypeVar("T")


class SentryError(ReleaseHookError):
    """Base error raised for Sentry API failures."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class SentryRequestError(SentryError):
    """Raised when Sentry answers with an unexpected HTTP status."""


class SentryTransportError(SentryError):
    """Raised when the request never produced a response (DNS, TLS, socket)."""


@dataclass(frozen=True, slots=True)
class Fixed(Generic[T]):
    """A configured value used as-is."""

    value: T

    def resolve(self, *args: Any) -> T:
        return self.value

    def is_present(self) -> bool:
        return bool(self.value)


@dataclass(frozen=True, slots=True)
class Derived(Generic[T]):
    """A value computed from build information once per invocation."""

    fn: Callable[..., T]

    def resolve(self, *args: Any) -> T:
        return self.fn(*args)

    def is_present(self) -> bool:
        return True


ReleaseValue = Fixed[T] | Derived[T]


def as_release_value(value: Any) -> Fixed[Any] | Derived[Any]:
    """Wrap a raw option: callables become ``Derived``, anything else ``Fixed``."""

    if isinstance(value, (Fixed, Derived)):
        return value
    if callable(value):
        return Derived(value)
    return Fixed(value)


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An asset selected for upload: logical name plus on-disk path."""

    name: str
    path: Path


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Release identity resolved for a single ``after-emit`` invocation."""

    version: str
    body: Mapping[str, Any]
    files: tuple[UploadFile, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Artifact:
    """A file already attached to a release on the Sentry side."""

    id: str | None
    name: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> "Artifact":
        artifact_id = raw.get("id")
        return cls(
            id=str(artifact_id) if artifact_id not in (None, "") else None,
            name=raw.get("name"),
            extra=dict(raw),
        )


__all__ = [
    "SentryError",
    "SentryRequestError",
    "SentryTransportError",
    "Fixed",
    "Derived",
    "ReleaseValue",
    "as_release_value",
    "UploadFile",
    "ReleaseContext",
    "Artifact",
]
