# worker/tests/conftest.py
from __future__ import annotations

# Import/bootstrap so "import worker.app" works when running pytest from repo root
import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest

TESTS_DIR = Path(__file__).resolve().parent  # .../worker/tests
WORKER_DIR = TESTS_DIR.parent  # .../worker
REPO_ROOT = WORKER_DIR.parent  # repo root

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Fast, deterministic test defaults: never talk to the real GitHub
os.environ["GITHUB_API_URL"] = "https://github.invalid/api"
os.environ["GITHUB_TOKEN"] = "test-token"
os.environ["GITHUB_OWNER"] = "club"
os.environ["GITHUB_REPO"] = "images"
os.environ["GITHUB_BRANCH"] = "main"
os.environ["GITHUB_IMAGES_DIR"] = "static/images"
os.environ["IMAGES_RAW_BASE"] = ""
os.environ["WORKER_AUTH_TOKEN"] = ""

from worker.app.services.artifact_repo import UploadFailure  # noqa: E402
from worker.app.telemetry import telemetry  # noqa: E402

RAW_BASE = "https://raw.test/club/images"


class FakeArtifactRepository:
    """
    In-memory artifact repository.

    Records every create_object call; payloads listed in `fail_payloads`
    are rejected with the given message. `delay` yields to the event loop
    before answering so sibling uploads interleave.
    """

    def __init__(
        self,
        fail_payloads: Optional[Set[str]] = None,
        message: str = "Bad credentials",
        delay: float = 0.0,
    ):
        self.fail_payloads = set(fail_payloads or ())
        self.message = message
        self.delay = delay
        self.calls: List[Dict[str, str]] = []
        self.objects: Dict[str, str] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    def object_path(self, filename: str) -> str:
        return f"static/images/{filename}"

    def public_url(self, filename: str) -> str:
        return f"{RAW_BASE}/{filename}"

    async def create_object(self, path: str, content_b64: str, message: str) -> Dict[str, Any]:
        self.calls.append({"path": path, "content": content_b64, "message": message})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if content_b64 in self.fail_payloads:
                await asyncio.sleep(0)
                raise UploadFailure(self.message, filename=path, status_code=401)
            await asyncio.sleep(self.delay)
            self.objects[path] = content_b64
            return {"content": {"path": path}}
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_repo() -> FakeArtifactRepository:
    return FakeArtifactRepository()


@pytest.fixture
def make_fake_repo():
    return FakeArtifactRepository


@pytest.fixture
def counter_ids():
    """Deterministic id factory: img0, img1, ..."""

    def _factory():
        n = 0

        def _next() -> str:
            nonlocal n
            value = f"img{n}"
            n += 1
            return value

        return _next

    return _factory


@pytest.fixture(autouse=True)
def telemetry_log_dir(tmp_path, monkeypatch):
    """Keep the shared telemetry log out of the working directory."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    monkeypatch.setattr(telemetry, "_log_dir", log_dir)
    monkeypatch.setattr(telemetry, "_log_file", log_dir / "worker.jsonl")
    return log_dir
