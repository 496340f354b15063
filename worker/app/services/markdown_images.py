# worker/app/services/markdown_images.py
"""
Inline base64 images in article markdown.

Three pure, synchronous steps used by the externalize pipeline:

- iter_embedded_images(text): find `![alt](data:image/<subtype>;base64,<payload>)`
- plan_uploads(images): one UploadTask per distinct payload
- rewrite_markdown(text, resolved): swap each embedding for `![alt](<url>)`
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Mapping

from worker.app.utils.ids import image_filename, new_image_id

log = logging.getLogger(__name__)

# alt may not contain ']', payload runs up to the first ')'
EMBEDDED_IMAGE_RE = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\(data:image/(?P<subtype>[a-zA-Z]+);base64,(?P<payload>[^)]+)\)"
)


@dataclass(frozen=True)
class EmbeddedImage:
    alt: str
    subtype: str
    payload: str
    original: str
    start: int
    end: int


@dataclass(frozen=True)
class UploadTask:
    payload: str
    subtype: str
    image_id: str

    @property
    def filename(self) -> str:
        return image_filename(self.image_id, self.subtype)


def _to_image(m: re.Match) -> EmbeddedImage:
    return EmbeddedImage(
        alt=m.group("alt"),
        subtype=m.group("subtype"),
        payload=m.group("payload"),
        original=m.group(0),
        start=m.start(),
        end=m.end(),
    )


def iter_embedded_images(text: str) -> Iterator[EmbeddedImage]:
    """Yield embedded images left to right. Each call starts a fresh scan."""
    for m in EMBEDDED_IMAGE_RE.finditer(text or ""):
        yield _to_image(m)


def plan_uploads(
    images: Iterable[EmbeddedImage],
    id_factory: Callable[[], str] = new_image_id,
) -> List[UploadTask]:
    """
    Collapse embeddings into one UploadTask per distinct payload.

    Payloads are compared as plain strings; alt text and position do not
    matter. Tasks keep the order in which each payload first appears, and
    take their subtype from that first occurrence.
    """
    tasks: Dict[str, UploadTask] = {}
    for image in images:
        if image.payload in tasks:
            continue
        tasks[image.payload] = UploadTask(
            payload=image.payload,
            subtype=image.subtype,
            image_id=id_factory(),
        )
    return list(tasks.values())


def rewrite_markdown(text: str, resolved: Mapping[str, str]) -> str:
    """
    Replace every embedded image with a link to its uploaded address.

    Text outside the embeddings is copied unchanged. An embedding whose
    payload has no address in `resolved` is left as it was.
    """
    if not text:
        return text

    def _sub(m: re.Match) -> str:
        url = resolved.get(m.group("payload"))
        if url is None:
            log.warning(
                "[markdown_images] no address for embedded image at %d; left inline",
                m.start(),
            )
            return m.group(0)
        return f"![{m.group('alt')}]({url})"

    return EMBEDDED_IMAGE_RE.sub(_sub, text)


__all__ = [
    "EMBEDDED_IMAGE_RE",
    "EmbeddedImage",
    "UploadTask",
    "iter_embedded_images",
    "plan_uploads",
    "rewrite_markdown",
]
