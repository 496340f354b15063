# worker/app/routers/articles.py
from __future__ import annotations

import logging
import time
import uuid
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from worker.app.config import settings
from worker.app.dependencies.auth import current_user_id, require_auth
from worker.app.models import ArticleCreateIn, ArticleOut, ArticleUpdateIn, SubmitOut
from worker.app.routers.status import record_submit_summary
from worker.app.services.article_store import (
    ArticleNotFound,
    ArticleStore,
    get_article_store,
)
from worker.app.services.artifact_repo import (
    ArtifactRepository,
    github_repository_from_settings,
)
from worker.app.services.externalize import (
    ExternalizeResult,
    PipelineAbort,
    externalize_markdown,
)
from worker.app.telemetry import telemetry
from worker.app.utils.ids import new_article_id, new_image_id

log = logging.getLogger(__name__)
router = APIRouter(prefix="/articles", tags=["articles"])


async def get_artifact_repository() -> AsyncIterator[ArtifactRepository]:
    """One GitHub client per request; tests override this dependency."""
    async with github_repository_from_settings() as repo:
        yield repo


def _image_id() -> str:
    return new_image_id(settings.IMAGE_ID_LENGTH)


async def _externalize_or_fail(
    request_id: str,
    action: str,
    article_id: Optional[str],
    content: str,
    repo: ArtifactRepository,
    start_time: float,
) -> ExternalizeResult | JSONResponse:
    """
    Run the image pipeline for a submission. On failure log, count, and
    return the error response the caller must hand back without writing.
    """
    try:
        return await externalize_markdown(content, repo, id_factory=_image_id)
    except PipelineAbort as e:
        duration_ms = int((time.time() - start_time) * 1000)
        log.warning("[articles/%s] image upload failed: %s", action, e.message)
        telemetry.increment("submit_failed")
        telemetry.set_error(e.message)
        telemetry.log_json(
            "submit_failure",
            level="error",
            request_id=request_id,
            action=action,
            article_id=article_id,
            duration_ms=duration_ms,
            status="error",
            error=e.message,
            failed_uploads=len(e.failures),
        )
        record_submit_summary(
            article_id=article_id, action=action, ok=False, error=e.message
        )
        return JSONResponse(
            {"ok": False, "error": "submission failed", "detail": e.message},
            status_code=502,
        )


def _log_submit_success(
    request_id: str,
    action: str,
    article_id: str,
    result: ExternalizeResult,
    start_time: float,
) -> None:
    telemetry.increment("submit_total")
    telemetry.log_json(
        "submit_success",
        level="info",
        request_id=request_id,
        action=action,
        article_id=article_id,
        duration_ms=int((time.time() - start_time) * 1000),
        status="success",
        images_found=result.embeddings,
        images_uploaded=result.uploaded,
    )
    record_submit_summary(
        article_id=article_id,
        action=action,
        ok=True,
        images_found=result.embeddings,
        images_uploaded=result.uploaded,
    )


@router.post("", response_model=SubmitOut)
async def create_article(
    body: ArticleCreateIn,
    _: bool = Depends(require_auth),
    user_id: str = Depends(current_user_id),
    repo: ArtifactRepository = Depends(get_artifact_repository),
    store: ArticleStore = Depends(get_article_store),
):
    """
    Publish a new article.

    • Inline base64 images are uploaded first, one upload per distinct image
    • The article is written only if every upload succeeded
    • The author is always listed first among contributors
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    result = await _externalize_or_fail(
        request_id, "create", None, body.content, repo, start_time
    )
    if isinstance(result, JSONResponse):
        return result

    contributors: List[str] = [user_id]
    for uid in body.contributors:
        if uid and uid not in contributors:
            contributors.append(uid)

    article_id = new_article_id(settings.ARTICLE_ID_LENGTH)
    doc = store.create(
        article_id,
        {
            "title": body.title,
            "content": result.content,
            "author_id": user_id,
            "author_avatar_url": body.author_avatar_url,
            "contributors": contributors,
        },
    )
    _log_submit_success(request_id, "create", article_id, result, start_time)
    return SubmitOut(
        article=ArticleOut(**doc),
        images_found=result.embeddings,
        images_uploaded=result.uploaded,
    )


@router.put("/{article_id}", response_model=SubmitOut)
async def update_article(
    article_id: str,
    body: ArticleUpdateIn,
    _: bool = Depends(require_auth),
    user_id: str = Depends(current_user_id),
    repo: ArtifactRepository = Depends(get_artifact_repository),
    store: ArticleStore = Depends(get_article_store),
):
    """Edit an existing article; same image handling as create, merge write."""
    request_id = str(uuid.uuid4())
    start_time = time.time()

    try:
        store.get(article_id)
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="article not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await _externalize_or_fail(
        request_id, "update", article_id, body.content, repo, start_time
    )
    if isinstance(result, JSONResponse):
        return result

    editors: List[str] = []
    for uid in body.editors:
        if uid and uid not in editors:
            editors.append(uid)

    try:
        doc = store.merge(
            article_id,
            {"title": body.title, "content": result.content, "editors": editors},
        )
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="article not found")

    log.debug("[articles/update] %s edited by %s", article_id, user_id)
    _log_submit_success(request_id, "update", article_id, result, start_time)
    return SubmitOut(
        article=ArticleOut(**doc),
        images_found=result.embeddings,
        images_uploaded=result.uploaded,
    )


@router.get("", response_model=List[ArticleOut])
def list_articles(store: ArticleStore = Depends(get_article_store)):
    return [ArticleOut(**doc) for doc in store.list()]


@router.get("/{article_id}", response_model=ArticleOut)
def get_article(article_id: str, store: ArticleStore = Depends(get_article_store)):
    try:
        return ArticleOut(**store.get(article_id))
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="article not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{article_id}")
def delete_article(
    article_id: str,
    _: bool = Depends(require_auth),
    store: ArticleStore = Depends(get_article_store),
):
    try:
        store.delete(article_id)
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="article not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "id": article_id}
