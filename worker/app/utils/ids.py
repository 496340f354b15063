"""Random identifiers for uploaded images and articles.

  * new_image_id() -> short url-safe id used as the uploaded file's base name
  * new_article_id() -> id for a newly created article document
  * image_filename(image_id, subtype) -> '<id>.<subtype>' (DEFAULT_IMAGE_SUBTYPE when unknown)

Ids use the nanoid alphabet (A-Za-z0-9_-) drawn from `secrets`, so a
10-char id carries ~60 bits of randomness.
"""

from __future__ import annotations

import secrets

from worker.app.config import settings

ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
DEFAULT_SIZE = 10


def _random_id(size: int) -> str:
    if size <= 0:
        raise ValueError(f"id size must be positive, got {size}")
    return "".join(secrets.choice(ALPHABET) for _ in range(size))


def new_image_id(size: int = DEFAULT_SIZE) -> str:
    return _random_id(size)


def new_article_id(size: int = DEFAULT_SIZE) -> str:
    return _random_id(size)


def image_filename(image_id: str, subtype: str | None = None) -> str:
    ext = (subtype or "").strip() or settings.DEFAULT_IMAGE_SUBTYPE
    return f"{image_id}.{ext}"


__all__ = [
    "ALPHABET",
    "new_image_id",
    "new_article_id",
    "image_filename",
]
