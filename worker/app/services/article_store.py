# worker/app/services/article_store.py
from __future__ import annotations

import json
import logging
import os
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from worker.app.config import settings

log = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class ArticleNotFound(Exception):
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArticleStore:
    """
    File-backed article documents: one <id>.json per article.

    Timestamps are assigned here (server side), never taken from callers.
    Writes go to a temp file and are swapped in with os.replace.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, article_id: str) -> Path:
        if not _SAFE_ID.match(article_id or ""):
            raise ValueError(f"invalid article id: {article_id!r}")
        return self.root / f"{article_id}.json"

    def _write(self, path: Path, doc: Dict[str, Any]) -> None:
        tmp = path.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)

    def _read(self, path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def create(self, article_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        path = self._path(article_id)
        doc = {**fields, "id": article_id, "created_at": _now_iso()}
        with self._lock:
            if path.exists():
                raise ValueError(f"article already exists: {article_id}")
            self._write(path, doc)
        log.info("[article_store] created %s", article_id)
        return doc

    def merge(self, article_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given fields, keep the rest, stamp updated_at."""
        path = self._path(article_id)
        with self._lock:
            if not path.exists():
                raise ArticleNotFound(article_id)
            doc = self._read(path)
            doc.update(fields)
            doc["id"] = article_id
            doc["updated_at"] = _now_iso()
            self._write(path, doc)
        log.info("[article_store] updated %s", article_id)
        return doc

    def get(self, article_id: str) -> Dict[str, Any]:
        path = self._path(article_id)
        if not path.exists():
            raise ArticleNotFound(article_id)
        return self._read(path)

    def list(self) -> List[Dict[str, Any]]:
        """All articles, newest created_at first."""
        docs = []
        for p in self.root.glob("*.json"):
            try:
                docs.append(self._read(p))
            except (OSError, ValueError) as e:
                log.warning("[article_store] skipping unreadable %s: %s", p.name, e)
        docs.sort(key=lambda d: d.get("created_at") or "", reverse=True)
        return docs

    def delete(self, article_id: str) -> None:
        path = self._path(article_id)
        with self._lock:
            if not path.exists():
                raise ArticleNotFound(article_id)
            path.unlink()
        log.info("[article_store] deleted %s", article_id)


# single process -> reuse store
_store: Optional[ArticleStore] = None


def get_article_store() -> ArticleStore:
    global _store
    if _store is None:
        _store = ArticleStore(settings.ARTICLES_DIR)
    return _store
