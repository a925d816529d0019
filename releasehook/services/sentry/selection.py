"""Asset filtering for release uploads and post-build cleanup."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

from .models import UploadFile


def is_selected(name: str, include: re.Pattern[str] | None, exclude: re.Pattern[str] | None) -> bool:
    """Return True when ``name`` matches ``include`` (if set) and not ``exclude`` (if set)."""

    is_included = include.search(name) is not None if include is not None else True
    is_excluded = exclude.search(name) is not None if exclude is not None else False
    return is_included and not is_excluded


def asset_path(asset: Any) -> Path:
    """Return the on-disk path of a host asset (``exists_at`` attribute or mapping key)."""

    if isinstance(asset, Mapping):
        location = asset.get("exists_at") or asset.get("existsAt")
    else:
        location = getattr(asset, "exists_at", None) or getattr(asset, "existsAt", None)
    if location is None:
        raise ValueError(f"Asset {asset!r} has no on-disk location")
    return Path(location)


def select_files(
    assets: Mapping[str, Any],
    include: re.Pattern[str] | None,
    exclude: re.Pattern[str] | None,
) -> list[UploadFile]:
    """Return selected assets in the host's iteration order."""

    return [
        UploadFile(name=name, path=asset_path(asset))
        for name, asset in assets.items()
        if is_selected(name, include, exclude)
    ]


def match_deletions(assets: Mapping[str, Any], pattern: re.Pattern[str]) -> list[UploadFile]:
    return [UploadFile(name=name, path=asset_path(asset)) for name, asset in assets.items() if pattern.search(name)]


__all__ = ["is_selected", "asset_path", "select_files", "match_deletions"]
