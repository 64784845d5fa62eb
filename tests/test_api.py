"""Tests for API functionality."""

from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from thicket.adapters.idgen import UuidId
from thicket.adapters.memory_storage import MemoryStorage
from thicket.adapters.yaml_codec import MarkdownNoteCodec, YamlFrontmatter
from thicket.api.app import create_app
from thicket.config import StoreConfig, ThicketConfig
from thicket.core.store import NoteStore
from thicket.runtime import wire


@pytest.fixture
def runtime():
    """Create a runtime over an in-memory store."""
    store = NoteStore(MemoryStorage(), MarkdownNoteCodec(YamlFrontmatter()), UuidId())
    config = ThicketConfig(store=StoreConfig(root=Path("unused")))
    rt = wire(store, config)
    rt.daily.today = lambda: date(2024, 3, 5)
    return rt


@pytest.fixture
def client(runtime):
    return TestClient(create_app(runtime))


def create(client, title, content="", tags=()):
    response = client.post("/notes", json={"title": title, "content": content, "tags": list(tags)})
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client):
    """Test /health endpoint."""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["notes"] == 0


def test_note_crud(client):
    """Test create, read, update and delete through the API."""
    note = create(client, "Alpha", "hello", ["x"])
    assert note["tags"] == ["x"]
    assert note["created"] == note["updated"]

    response = client.get(f"/notes/{note['id']}")
    assert response.status_code == 200
    assert response.json()["content"] == "hello"

    response = client.patch(f"/notes/{note['id']}", json={"title": "Alpha 2"})
    assert response.status_code == 200
    assert response.json()["title"] == "Alpha 2"
    assert response.json()["created"] == note["created"]

    assert client.delete(f"/notes/{note['id']}").status_code == 204
    assert client.get(f"/notes/{note['id']}").status_code == 404
    assert client.get("/notes").json() == []


def test_unknown_note_is_404(client):
    """Test missing notes map to 404 with a message."""
    response = client.patch("/notes/nope", json={"title": "x"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Note nope not found"


def test_note_links_and_html(client):
    """Test a note reports resolved and missing references."""
    beta = create(client, "Beta")
    alpha = create(client, "Alpha", "See [[Beta]] and [[Nowhere]]")

    data = client.get(f"/notes/{alpha['id']}").json()

    assert data["links"] == [
        {"title": "Beta", "id": beta["id"], "exists": True},
        {"title": "Nowhere", "id": None, "exists": False},
    ]
    assert "note-link-exists" in data["html"]
    assert "note-link-missing" in data["html"]


def test_backlinks_and_graph(client):
    """Test backlinks and graph endpoints for the Alpha/Beta pair."""
    beta = create(client, "Beta", "no links")
    alpha = create(client, "Alpha", "See [[Beta]]")

    backlinks = client.get(f"/notes/{beta['id']}/backlinks").json()
    assert [b["source"] for b in backlinks] == [alpha["id"]]
    assert backlinks[0]["context"] == "See [[Beta]]"

    graph = client.get("/graph").json()
    assert len(graph["edges"]) == 1
    assert {n["connections"] for n in graph["nodes"]} == {1}
    assert {n["tier"] for n in graph["nodes"]} == {"low"}


def test_tags_endpoint(client):
    """Test tag counts over the collection."""
    create(client, "One", tags=["a", "b"])
    create(client, "Two", tags=["a"])

    assert client.get("/tags").json() == [
        {"tag": "a", "count": 2},
        {"tag": "b", "count": 1},
    ]
    assert len(client.get("/tags", params={"limit": 1}).json()) == 1


def test_daily_endpoint_idempotent(client):
    """Test POST /daily returns the same note twice."""
    first = client.post("/daily").json()
    second = client.post("/daily").json()

    assert first["id"] == second["id"]
    assert first["title"] == "2024-03-05"


def test_search_session(client):
    """Test query, tag selection, history and clearing."""
    create(client, "Project plan", "deadline", ["work", "urgent"])
    create(client, "Grocery list", "milk eggs", ["home"])
    create(client, "Work retro", "went well", ["work"])

    assert client.get("/search").json()["count"] == 3

    client.put("/search/query", json={"query": "milk"})
    data = client.get("/search").json()
    assert [r["title"] for r in data["results"]] == ["Grocery list"]

    client.post("/search/clear")
    state = client.post("/search/tags/work").json()
    assert state["selected_tags"] == ["work"]
    client.post("/search/tags/urgent")
    data = client.get("/search").json()
    assert [r["title"] for r in data["results"]] == ["Project plan"]

    state = client.delete("/search/tags/urgent").json()
    assert state["selected_tags"] == ["work"]

    client.post("/search/history", json={"query": "milk"})
    client.post("/search/history", json={"query": "plan"})
    assert client.get("/search/history").json() == ["plan", "milk"]
    state = client.post("/search/history/select", json={"query": "milk"}).json()
    assert state["query"] == "milk"
    assert state["history"] == ["milk", "plan"]

    state = client.post("/search/clear").json()
    assert state["query"] == ""
    assert state["selected_tags"] == []
    assert state["history"] == ["milk", "plan"]


def test_search_sort_and_validation(client):
    """Test sorting by title and rejecting an inverted date range."""
    create(client, "beta")
    create(client, "Alpha")

    data = client.get("/search", params={"sort": "title", "order": "asc"}).json()
    assert [r["title"] for r in data["results"]] == ["Alpha", "beta"]

    response = client.get(
        "/search",
        params={"start": "2024-02-01T00:00:00Z", "end": "2024-01-01T00:00:00Z"},
    )
    assert response.status_code == 400


def test_suggestions_and_popular_tags(client):
    """Test autocomplete suggestions and popular tags."""
    create(client, "Grocery list", tags=["home", "shopping"])
    create(client, "Home repairs", tags=["home"])

    assert client.get("/search/suggestions", params={"q": "#sho"}).json() == ["#shopping"]
    assert client.get("/search/popular-tags").json() == ["home", "shopping"]
