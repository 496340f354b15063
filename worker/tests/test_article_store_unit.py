import time

import pytest

from worker.app.services.article_store import ArticleNotFound, ArticleStore


@pytest.fixture
def store(tmp_path):
    return ArticleStore(tmp_path / "articles")


class TestArticleStore:
    def test_create_and_get(self, store):
        doc = store.create("abc123", {"title": "T", "content": "body", "author_id": "u1"})
        assert doc["id"] == "abc123"
        assert doc["created_at"]
        assert store.get("abc123") == doc

    def test_create_twice_rejected(self, store):
        store.create("abc", {"title": "T"})
        with pytest.raises(ValueError, match="already exists"):
            store.create("abc", {"title": "T2"})

    def test_merge_keeps_other_fields(self, store):
        store.create("abc", {"title": "T", "content": "old", "author_id": "u1"})
        doc = store.merge("abc", {"title": "T2", "content": "new", "editors": ["u2"]})
        assert doc["author_id"] == "u1"
        assert doc["content"] == "new"
        assert doc["editors"] == ["u2"]
        assert doc["updated_at"]
        assert store.get("abc")["title"] == "T2"

    def test_merge_missing(self, store):
        with pytest.raises(ArticleNotFound):
            store.merge("nope", {"title": "x"})

    def test_get_missing(self, store):
        with pytest.raises(ArticleNotFound):
            store.get("nope")

    def test_invalid_id(self, store):
        with pytest.raises(ValueError):
            store.get("../etc/passwd")

    def test_list_newest_first(self, store):
        store.create("first", {"title": "1"})
        time.sleep(0.01)
        store.create("second", {"title": "2"})
        assert [d["id"] for d in store.list()] == ["second", "first"]

    def test_delete(self, store):
        store.create("abc", {"title": "T"})
        store.delete("abc")
        with pytest.raises(ArticleNotFound):
            store.get("abc")
        with pytest.raises(ArticleNotFound):
            store.delete("abc")
