from __future__ import annotations

from pathlib import Path

import pytest

from releasehook.core.errors import ConfigError
from releasehook.core.lifecycle import (
    AFTER_EMIT,
    DONE,
    Compilation,
    HookCompiler,
    Stats,
    compilation_from_directory,
)


def test_compilation_from_directory_lists_assets_in_walk_order(build_dir: Path) -> None:
    compilation = compilation_from_directory(build_dir)

    assert list(compilation.assets) == ["app.css", "app.js", "app.js.map", "chunks/vendor.js"]
    assert Path(compilation.assets["chunks/vendor.js"].exists_at) == build_dir / "chunks" / "vendor.js"
    assert compilation.errors == []
    assert compilation.warnings == []


def test_compilation_hash_tracks_content(build_dir: Path) -> None:
    first = compilation_from_directory(build_dir).hash
    assert compilation_from_directory(build_dir).hash == first

    (build_dir / "app.js").write_text("console.log('changed');", encoding="utf-8")
    assert compilation_from_directory(build_dir).hash != first
    assert compilation_from_directory(build_dir, build_hash="abc123").hash == "abc123"


def test_compilation_from_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        compilation_from_directory(tmp_path / "missing")


def test_hook_compiler_runs_handlers_in_order() -> None:
    compiler = HookCompiler()
    seen: list[str] = []

    def after_emit(compilation: Compilation, callback) -> None:
        seen.append(f"emit:{compilation.hash}")
        callback()

    def done(stats: Stats) -> None:
        seen.append(f"done:{stats.compilation.hash}")

    compiler.plugin(AFTER_EMIT, after_emit)
    compiler.plugin(DONE, done)
    stats = compiler.run(Compilation(hash="h1"))

    assert seen == ["emit:h1", "done:h1"]
    assert stats.compilation.hash == "h1"


def test_hook_compiler_reports_missing_callback() -> None:
    compiler = HookCompiler()
    compiler.plugin(AFTER_EMIT, lambda compilation, callback: None)

    assert compiler.run_after_emit(Compilation(hash="h")) is False


def test_hook_compiler_rejects_unknown_event() -> None:
    with pytest.raises(ConfigError):
        HookCompiler().plugin("before-run", lambda *_: None)
