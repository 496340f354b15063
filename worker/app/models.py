# worker/app/models.py
from typing import List, Optional

from pydantic import BaseModel, Field


class ArticleCreateIn(BaseModel):
    title: str
    content: str = ""
    author_avatar_url: Optional[str] = None
    contributors: List[str] = Field(default_factory=list)


class ArticleUpdateIn(BaseModel):
    title: str
    content: str = ""
    editors: List[str] = Field(default_factory=list)


class ArticleOut(BaseModel):
    id: str
    title: str
    content: str
    author_id: Optional[str] = None
    author_avatar_url: Optional[str] = None
    contributors: List[str] = Field(default_factory=list)
    editors: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SubmitOut(BaseModel):
    ok: bool = True
    article: ArticleOut
    images_found: int = 0
    images_uploaded: int = 0
