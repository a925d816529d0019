"""HTTP utilities for the Sentry release API."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import requests
from requests import Response
from requests.exceptions import RequestException, Timeout

from releasehook import __version__
from releasehook.core.logger import get_logger

from .config import ReleaseUploaderConfig
from .models import SentryRequestError, SentryTransportError

LOGGER = get_logger()

USER_AGENT = f"releasehook/{__version__}"


class HttpClient:
    """Request helper adding bearer auth, timeouts and status checks."""

    def __init__(
        self,
        config: ReleaseUploaderConfig,
        *,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._logger = logger or LOGGER

    @property
    def session(self) -> requests.Session:
        return self._session

    def request(
        self,
        method: str,
        url: str,
        *,
        json_body: Any | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        expected_status: Iterable[int] = (200, 201, 202, 204),
    ) -> Response:
        """Send a single authenticated request; no retries are attempted."""

        headers = {"Authorization": f"Bearer {self._config.api_key}"}
        expected = tuple(expected_status)
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=data,
                files=files,
                timeout=self._config.timeout_sec,
            )
        except Timeout as exc:
            self._logger.warning("sentry.http timeout method=%s url=%s", method, url, exc_info=exc)
            raise SentryTransportError(f"{method} {url} timed out", payload={"url": url}) from exc
        except RequestException as exc:
            self._logger.warning(
                "sentry.http connection_error method=%s url=%s error=%s",
                method,
                url,
                type(exc).__name__,
                exc_info=exc,
            )
            raise SentryTransportError(f"{method} {url} failed: {exc}", payload={"url": url}) from exc

        status = response.status_code
        if status in expected:
            self._logger.debug("sentry.http ok method=%s url=%s status=%d", method, url, status)
            return response

        payload = safe_json(response)
        detail = payload.get("detail") if isinstance(payload, dict) else None
        self._logger.warning("sentry.http unexpected_status method=%s url=%s status=%d", method, url, status)
        raise SentryRequestError(
            f"{status} {detail or 'Unexpected status'} ({method} {url})",
            status_code=status,
            payload=payload,
        )

    def close(self) -> None:
        self._session.close()


def safe_json(response: Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        text = response.text
        if len(text) > 200:
            text = text[:200] + "..."
        return {"body": text}
    if isinstance(data, dict):
        return data
    return {"body": data}


__all__ = ["HttpClient", "USER_AGENT", "safe_json"]
