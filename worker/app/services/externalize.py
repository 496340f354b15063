# worker/app/services/externalize.py
"""
Move inline base64 images out of article markdown.

Runs extract -> dedupe -> concurrent upload -> rewrite. The result is
all-or-nothing: if any upload fails the caller gets PipelineAbort and
must not persist the article. Objects that did upload stay in the
repository.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from worker.app.services.artifact_repo import (
    ArtifactRepository,
    UploadFailure,
    upload_image,
)
from worker.app.services.markdown_images import (
    UploadTask,
    iter_embedded_images,
    plan_uploads,
    rewrite_markdown,
)
from worker.app.telemetry import telemetry
from worker.app.utils.ids import new_image_id

log = logging.getLogger(__name__)


class PipelineAbort(Exception):
    """At least one image upload failed; the submission must stop."""

    def __init__(self, message: str, failures: Sequence[UploadFailure] = ()):
        super().__init__(message)
        self.message = message
        self.failures = list(failures)


@dataclass
class ExternalizeResult:
    content: str
    embeddings: int = 0
    uploaded: int = 0


async def resolve_uploads(
    repo: ArtifactRepository, tasks: Sequence[UploadTask]
) -> Dict[str, str]:
    """
    Upload every task concurrently and wait for all of them.

    Returns payload -> public address once every upload succeeded. If any
    failed, raises PipelineAbort carrying the first failure (in task order)
    after all siblings have finished; nothing in flight is cancelled.
    """
    if not tasks:
        return {}

    outcomes = await asyncio.gather(
        *(upload_image(repo, task) for task in tasks),
        return_exceptions=True,
    )

    failures: List[UploadFailure] = []
    for task, outcome in zip(tasks, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            if not isinstance(outcome, UploadFailure):
                outcome = UploadFailure(
                    str(outcome) or type(outcome).__name__,
                    filename=repo.object_path(task.filename),
                )
            log.warning("[externalize] upload failed for %s: %s", task.filename, outcome)
            failures.append(outcome)

    uploaded = len(tasks) - len(failures)
    telemetry.increment("images_uploaded_total", uploaded)
    if failures:
        telemetry.increment("uploads_failed_total", len(failures))
        first = failures[0]
        raise PipelineAbort(first.message, failures) from first

    return {task.payload: url for task, url in zip(tasks, outcomes)}


async def externalize_markdown(
    text: str,
    repo: ArtifactRepository,
    id_factory: Callable[[], str] = new_image_id,
) -> ExternalizeResult:
    """
    Upload each distinct inline image once and point the markdown at it.

    Raises:
        PipelineAbort: any single upload failed
    """
    images = list(iter_embedded_images(text))
    if not images:
        return ExternalizeResult(content=text)

    tasks = plan_uploads(images, id_factory=id_factory)
    log.info(
        "[externalize] %d embedded image(s), %d distinct upload(s)",
        len(images),
        len(tasks),
    )

    resolved = await resolve_uploads(repo, tasks)
    return ExternalizeResult(
        content=rewrite_markdown(text, resolved),
        embeddings=len(images),
        uploaded=len(tasks),
    )


__all__ = [
    "PipelineAbort",
    "ExternalizeResult",
    "resolve_uploads",
    "externalize_markdown",
]
