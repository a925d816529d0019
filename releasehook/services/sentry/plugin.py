"""Build plugin that publishes emitted assets as a Sentry release."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Iterable, Mapping, TypeVar

from releasehook.core.errors import ConfigError
from releasehook.core.lifecycle import AFTER_EMIT, DONE, Compilation, Compiler, Stats
from releasehook.core.logger import get_logger

from .client import SentryReleaseClient
from .config import ReleaseUploaderConfig
from .models import ReleaseContext, UploadFile
from .selection import match_deletions, select_files

LOGGER = get_logger()

ERROR_PREFIX = "Sentry Plugin"
CONFLICT_STATUS = 409
DEFAULT_MAX_WORKERS = 8

T = TypeVar("T")
ClientFactory = Callable[[ReleaseUploaderConfig], SentryReleaseClient]


class ReleaseUploader:
    """Create a Sentry release for each compilation and upload its assets.

    The plugin hooks ``after-emit`` to publish the release and ``done`` to
    remove local files (source maps by default) once the build has finished.
    Version and body are resolved per invocation, so one instance may serve
    several builds without leaking state between them.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | ReleaseUploaderConfig,
        *,
        client_factory: ClientFactory | None = None,
        logger: logging.Logger | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if isinstance(options, ReleaseUploaderConfig):
            self.config = options
        else:
            self.config = ReleaseUploaderConfig.from_mapping(options)
        self._logger = logger or LOGGER
        self._client_factory = client_factory or self._default_client
        self._max_workers = max(1, max_workers)
        self.published: dict[str, ReleaseContext] = {}

    def apply(self, compiler: Compiler) -> None:
        compiler.plugin(AFTER_EMIT, self.after_emit)
        compiler.plugin(DONE, self.done)

    # Lifecycle handlers -----------------------------------------------

    def after_emit(self, compilation: Compilation, callback: Callable[[], None]) -> None:
        error = self.config.validate()
        if error is not None:
            self.handle_errors(error, compilation, callback)
            return

        try:
            files = self.get_files(compilation)
            context = self.resolve_release(compilation.hash, files)
            client = self._client_factory(self.config)
            try:
                self.publish(client, context)
            finally:
                client.close()
            self.published[compilation.hash] = context
        except Exception as exc:  # noqa: BLE001 - reported through the compilation
            self.handle_errors(exc, compilation, callback)
            return

        callback()

    def done(self, stats: Stats) -> None:
        if self.config.delete_after_compile:
            self.delete_files(stats)

    # Steps ------------------------------------------------------------

    def get_files(self, compilation: Compilation) -> list[UploadFile]:
        return select_files(compilation.assets, self.config.include, self.config.exclude)

    def resolve_release(self, build_hash: str, files: Iterable[UploadFile] = ()) -> ReleaseContext:
        """Resolve version and body for one build without touching the configuration."""

        version = self.config.release.resolve(build_hash)
        if not version:
            raise ConfigError("Must provide release version")
        version = str(version)
        body = self.config.release_body.resolve(version, list(self.config.projects))
        if not isinstance(body, Mapping):
            raise ConfigError("releaseBody must resolve to a mapping")
        return ReleaseContext(version=version, body=body, files=tuple(files))

    def publish(self, client: SentryReleaseClient, context: ReleaseContext) -> None:
        """Create the release, clear old artifacts when overwriting, then upload."""

        version = context.version
        self._logger.info(
            "sentry.plugin release_start version=%s files=%d overwrite=%s",
            version,
            len(context.files),
            self.config.should_overwrite,
        )
        client.create_release(context.body)

        if self.config.should_overwrite:
            artifacts = client.list_artifacts(version)
            stale = [artifact.id for artifact in artifacts if artifact.id]
            self._logger.info(
                "sentry.plugin overwrite version=%s listed=%d deleting=%d",
                version,
                len(artifacts),
                len(stale),
            )
            self._run_all(lambda artifact_id: client.delete_artifact(version, artifact_id), stale)

        self._run_all(
            lambda item: client.upload_artifact(version, item.path, self.config.filename_transform(item.name)),
            context.files,
        )
        self._logger.info("sentry.plugin release_done version=%s uploaded=%d", version, len(context.files))

    def delete_files(self, stats: Stats) -> list[UploadFile]:
        """Unlink every asset matching ``delete_regex``; failures propagate to the host."""

        matched = match_deletions(stats.compilation.assets, self.config.delete_regex)
        for item in matched:
            item.path.unlink()
            self._logger.info("sentry.plugin deleted_local name=%s path=%s", item.name, item.path)
        return matched

    def handle_errors(self, err: BaseException, compilation: Compilation, callback: Callable[[], None]) -> None:
        """Record ``err`` on the compilation and always complete the hook."""

        message = f"{ERROR_PREFIX}: {err}"
        if self._is_suppressed(err):
            compilation.warnings.append(message)
            self._logger.warning("sentry.plugin suppressed_error %s", message)
        else:
            compilation.errors.append(message)
            self._logger.error("sentry.plugin error %s", message, exc_info=err)
        callback()

    # Internal helpers -------------------------------------------------

    def _is_suppressed(self, err: BaseException) -> bool:
        if self.config.suppress_errors:
            return True
        return self.config.suppress_conflict_error and getattr(err, "status_code", None) == CONFLICT_STATUS

    def _run_all(self, fn: Callable[[T], Any], items: Iterable[T]) -> None:
        pending = list(items)
        if not pending:
            return
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(pending))) as executor:
            futures = [executor.submit(fn, item) for item in pending]
            for future in as_completed(futures):
                future.result()

    def _default_client(self, config: ReleaseUploaderConfig) -> SentryReleaseClient:
        return SentryReleaseClient(config, logger=self._logger)


__all__ = ["ReleaseUploader", "ERROR_PREFIX"]
