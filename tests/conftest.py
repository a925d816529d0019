from __future__ import annotations

import faulthandler
import json
import socket
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.
socket.setdefaulttimeout(10)


@dataclass
class MockResponse:
    status_code: int = 200
    json_data: Any = None
    text_data: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        if self.json_data is None:
            raise ValueError("JSON body not set")
        return self.json_data

    @property
    def text(self) -> str:
        if self.text_data is not None:
            return self.text_data
        if self.json_data is not None:
            return json.dumps(self.json_data)
        return ""


class FakeSession:
    """Stand-in for ``requests.Session`` answering from per-route queues.

    Routes are keyed by ``(method, url)`` so concurrent requests get
    deterministic answers regardless of scheduling order.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.call_kwargs: list[dict[str, Any]] = []
        self.closed = False
        self._routes: dict[tuple[str, str], list[MockResponse | Exception]] = {}
        self._defaults: dict[tuple[str, str], MockResponse] = {}
        self._lock = threading.Lock()

    def respond(self, method: str, url: str, status_code: int = 200, **body: Any) -> "FakeSession":
        self._routes.setdefault((method, url), []).append(MockResponse(status_code=status_code, **body))
        return self

    def fail(self, method: str, url: str, exc: Exception) -> "FakeSession":
        self._routes.setdefault((method, url), []).append(exc)
        return self

    def always(self, method: str, url: str, status_code: int = 200, **body: Any) -> "FakeSession":
        self._defaults[(method, url)] = MockResponse(status_code=status_code, **body)
        return self

    def request(self, method: str, url: str, **kwargs: Any) -> MockResponse:
        files = kwargs.get("files") or {}
        uploaded = {key: value[1].read() for key, value in files.items()}
        with self._lock:
            self.calls.append((method, url))
            self.call_kwargs.append({**kwargs, "uploaded": uploaded})
            queued = self._routes.get((method, url))
            if queued:
                action = queued.pop(0)
            elif (method, url) in self._defaults:
                action = self._defaults[(method, url)]
            else:
                raise AssertionError(f"No response queued for {method} {url}")
        if isinstance(action, Exception):
            raise action
        return action

    def calls_for(self, method: str) -> list[str]:
        return [url for call_method, url in self.calls if call_method == method]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """An emitted bundle: two scripts, their maps and a stylesheet."""

    out = tmp_path / "dist"
    (out / "chunks").mkdir(parents=True)
    (out / "app.js").write_text("console.log('app');", encoding="utf-8")
    (out / "app.js.map").write_text('{"version":3}', encoding="utf-8")
    (out / "app.css").write_text("body{}", encoding="utf-8")
    (out / "chunks" / "vendor.js").write_text("/* vendor */", encoding="utf-8")
    return out


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in ("SENTRY_ORG", "SENTRY_PROJECT", "SENTRY_API_KEY", "SENTRY_URL", "RELEASEHOOK_TIMEOUT_SEC"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("RELEASEHOOK_ROOT", str(tmp_path))
