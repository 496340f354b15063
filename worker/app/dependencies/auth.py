# worker/app/dependencies/auth.py
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request
from fastapi.security import HTTPBearer
from ..config import settings

log = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def require_auth(request: Request) -> bool:
    """
    Dependency that requires authentication for protected routes.
    If WORKER_AUTH_TOKEN is not set, authentication is disabled.
    """
    if not settings.WORKER_AUTH_TOKEN or settings.WORKER_AUTH_TOKEN.strip() == "":
        return True

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=401, detail={"ok": False, "error": "unauthorized"}
        )

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0] != "Bearer":
        raise HTTPException(
            status_code=401, detail={"ok": False, "error": "unauthorized"}
        )

    if parts[1] != settings.WORKER_AUTH_TOKEN.strip():
        log.debug("[auth] bearer token mismatch")
        raise HTTPException(
            status_code=401, detail={"ok": False, "error": "unauthorized"}
        )

    return True


def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    The signed-in user, as forwarded by the front end's auth layer.
    Submissions without one are rejected (login required).
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=401, detail={"ok": False, "error": "login required"}
        )
    return x_user_id.strip()
