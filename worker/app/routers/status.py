# worker/app/routers/status.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from worker.app.config import settings
from worker.app.telemetry import telemetry

router = APIRouter()


# --- Minimal in-memory submission summary (updated by articles.py) ----------
class _SubmitState:
    def __init__(self) -> None:
        self._last: Optional[Dict] = None

    def record(
        self,
        *,
        article_id: Optional[str],
        action: str,
        ok: bool,
        images_found: int = 0,
        images_uploaded: int = 0,
        error: Optional[str] = None,
    ) -> None:
        self._last = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "article_id": article_id,
            "action": action,
            "ok": ok,
            "images_found": images_found,
            "images_uploaded": images_uploaded,
            "error": error,
        }

    def summary(self) -> Optional[Dict]:
        return self._last


_submit_state = _SubmitState()


# public helper for articles.py to call once per submission
def record_submit_summary(
    *,
    article_id: Optional[str],
    action: str,
    ok: bool,
    images_found: int = 0,
    images_uploaded: int = 0,
    error: Optional[str] = None,
) -> None:
    _submit_state.record(
        article_id=article_id,
        action=action,
        ok=ok,
        images_found=images_found,
        images_uploaded=images_uploaded,
        error=error,
    )


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/status")
async def status():
    """
    Returns service health + submission counters.
    Adds:
      - artifact_repo: where images are written and served from
      - last_submit_summary: last submission snapshot (if any)
    """
    stats = telemetry.get_stats()
    data = {
        "ok": True,
        "artifact_repo": {
            "owner": settings.GITHUB_OWNER,
            "repo": settings.GITHUB_REPO,
            "branch": settings.GITHUB_BRANCH,
            "images_dir": settings.GITHUB_IMAGES_DIR,
            "raw_base": settings.images_raw_base,
            "token_configured": bool(settings.GITHUB_TOKEN.strip()),
        },
        "articles_dir": settings.ARTICLES_DIR,
        "last_submit_summary": _submit_state.summary(),
        "uptime_s": stats["uptime_s"],
        "submit_total": stats["submit_total"],
        "submit_failed": stats["submit_failed"],
        "images_uploaded_total": stats["images_uploaded_total"],
        "uploads_failed_total": stats["uploads_failed_total"],
        "last_error": stats["last_error"],
    }
    return JSONResponse(data)
