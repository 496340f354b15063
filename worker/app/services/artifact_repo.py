# worker/app/services/artifact_repo.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from worker.app.config import github_raw_base, settings
from worker.app.services.markdown_images import UploadTask

log = logging.getLogger(__name__)


class UploadFailure(Exception):
    """A single image upload was rejected or never reached the repository."""

    def __init__(self, message: str, filename: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.status_code = status_code


class ArtifactRepository(Protocol):
    async def create_object(self, path: str, content_b64: str, message: str) -> Dict[str, Any]:
        ...

    def object_path(self, filename: str) -> str:
        ...

    def public_url(self, filename: str) -> str:
        ...


def _error_message(response: httpx.Response) -> str:
    """
    Pull the human-readable reason out of a failed response.

    GitHub answers with {"message": "..."}; anything else falls back to the
    raw body, then the status line.
    """
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    except ValueError:
        pass
    text = (response.text or "").strip()
    return text or f"HTTP {response.status_code}"


class GitHubContentsRepository:
    """
    Writes files through the GitHub contents API.

    One PUT per object: /repos/{owner}/{repo}/contents/{images_dir}/{filename}
    with a base64 body and a commit message. The file is then served from
    `raw_base/filename`.
    """

    def __init__(
        self,
        *,
        token: str,
        owner: str,
        repo: str,
        images_dir: str = "static/images",
        branch: Optional[str] = None,
        api_url: str = "https://api.github.com",
        raw_base: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.images_dir = images_dir.strip("/")
        self.branch = branch or None
        self.api_url = api_url.rstrip("/")
        self.raw_base = (
            raw_base.rstrip("/")
            if raw_base
            else github_raw_base(owner, repo, branch or "main", self.images_dir)
        )
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubContentsRepository":
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"token {self.token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def object_path(self, filename: str) -> str:
        return f"{self.images_dir}/{filename}" if self.images_dir else filename

    def public_url(self, filename: str) -> str:
        return f"{self.raw_base}/{filename}"

    async def create_object(self, path: str, content_b64: str, message: str) -> Dict[str, Any]:
        if self._client is None:
            raise RuntimeError("GitHubContentsRepository used outside 'async with'")

        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{path}"
        payload: Dict[str, Any] = {"message": message, "content": content_b64}
        if self.branch:
            payload["branch"] = self.branch

        try:
            response = await self._client.put(url, json=payload)
        except httpx.HTTPError as e:
            raise UploadFailure(f"Network error: {e}", filename=path) from e

        if not response.is_success:
            raise UploadFailure(
                _error_message(response),
                filename=path,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return {}


def github_repository_from_settings(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GitHubContentsRepository:
    return GitHubContentsRepository(
        token=settings.GITHUB_TOKEN,
        owner=settings.GITHUB_OWNER,
        repo=settings.GITHUB_REPO,
        images_dir=settings.GITHUB_IMAGES_DIR,
        branch=settings.GITHUB_BRANCH,
        api_url=settings.GITHUB_API_URL,
        raw_base=settings.images_raw_base,
        timeout=settings.HTTP_TIMEOUT_MS / 1000.0,
        transport=transport,
    )


async def upload_image(repo: ArtifactRepository, task: UploadTask) -> str:
    """
    Upload one distinct image and return its public address.

    Raises:
        UploadFailure: the create request failed (non-2xx or transport error)
    """
    filename = task.filename
    await repo.create_object(
        repo.object_path(filename),
        task.payload,
        f"Update image: {filename}",
    )
    url = repo.public_url(filename)
    log.debug("[artifact_repo] uploaded %s -> %s", filename, url)
    return url
