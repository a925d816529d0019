"""Client for the Sentry release and release-file endpoints."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote

from releasehook.core.logger import get_logger

from .config import URL_SCHEME_PROJECTS, ReleaseUploaderConfig
from .http import HttpClient
from .models import Artifact, SentryRequestError

LOGGER = get_logger()


class SentryReleaseClient:
    """Create releases and manage their artifacts."""

    def __init__(
        self,
        config: ReleaseUploaderConfig,
        *,
        http_client: HttpClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or LOGGER
        self._http = http_client or HttpClient(config, logger=self._logger)

    def release_url(self) -> str:
        base = self._config.base_url.rstrip("/")
        organization = _segment(self._config.organization or "")
        if self._config.url_scheme == URL_SCHEME_PROJECTS:
            project = _segment(self._config.projects[0]) if self._config.projects else ""
            return f"{base}/projects/{organization}/{project}/releases"
        return f"{base}/organizations/{organization}/releases"

    def files_url(self, version: str) -> str:
        return f"{self.release_url()}/{_segment(version)}/files/"

    def create_release(self, body: Mapping[str, Any]) -> dict[str, Any]:
        response = self._http.request("POST", f"{self.release_url()}/", json_body=body)
        self._logger.info("sentry.client release_created version=%s", body.get("version"))
        return _json_or_empty(response)

    def list_artifacts(self, version: str) -> list[Artifact]:
        response = self._http.request("GET", self.files_url(version), expected_status=(200,))
        data = response.json()
        if not isinstance(data, list):
            raise SentryRequestError("Release files response is not a list", payload={"body": data})
        return [Artifact.from_payload(raw) for raw in data if isinstance(raw, Mapping)]

    def delete_artifact(self, version: str, artifact_id: str) -> None:
        self._http.request("DELETE", f"{self.files_url(version)}{_segment(artifact_id)}/")
        self._logger.info("sentry.client artifact_deleted version=%s id=%s", version, artifact_id)

    def upload_artifact(self, version: str, path: Path, name: str) -> dict[str, Any]:
        with Path(path).open("rb") as handle:
            response = self._http.request(
                "POST",
                self.files_url(version),
                data={"name": name},
                files={"file": (Path(path).name, handle)},
            )
        self._logger.info("sentry.client artifact_uploaded version=%s name=%s", version, name)
        return _json_or_empty(response)

    def close(self) -> None:
        self._http.close()


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _json_or_empty(response: Any) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


__all__ = ["SentryReleaseClient"]
