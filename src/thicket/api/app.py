"""FastAPI application for the thicket local JSON API."""

from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..core.backlinks import backlink_contexts
from ..core.graph import graph_to_dict
from ..core.model import Note
from ..errors import ImmutableFieldError, NoteNotFoundError
from ..render import HtmlLinkRenderer
from ..runtime import Runtime
from ..search.refine import SortKey, SortOrder, refine


class NoteCreate(BaseModel):
    title: str
    content: str = ""
    tags: list[str] = []


class NoteUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


class QueryBody(BaseModel):
    query: str


def note_to_dict(note: Note, with_content: bool = False) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": note.id,
        "title": note.title,
        "tags": list(note.tags),
        "created": note.created_at.isoformat() if note.created_at else None,
        "updated": note.updated_at.isoformat() if note.updated_at else None,
    }
    if with_content:
        out["content"] = note.content
    return out


def create_app(runtime: Runtime, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime with store, garden and daily scheduler
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Thicket API",
        description="Local JSON API for a thicket note garden",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    store = runtime.store
    garden = runtime.garden
    search = garden.search
    renderer = HtmlLinkRenderer()

    @app.exception_handler(NoteNotFoundError)
    async def not_found(request: Request, exc: NoteNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ImmutableFieldError)
    async def immutable(request: Request, exc: ImmutableFieldError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    def get_note_or_404(note_id: str) -> Note:
        note = store.get_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__, "notes": len(store)}

    @app.get("/notes")
    async def list_notes() -> list[dict[str, Any]]:
        return [note_to_dict(n) for n in store.notes]

    @app.post("/notes", status_code=201)
    async def create_note(body: NoteCreate) -> dict[str, Any]:
        note = store.add(body.title, body.content, body.tags)
        return note_to_dict(note, with_content=True)

    @app.get("/notes/{note_id}")
    async def get_note(note_id: str) -> dict[str, Any]:
        """Note with rendered content and its classified references."""
        note = get_note_or_404(note_id)
        tokens = list(garden.references(note))
        out = note_to_dict(note, with_content=True)
        out["html"] = renderer.render(note.content, tokens)
        out["links"] = [
            {"title": t.raw_text, "id": t.resolved_note_id, "exists": t.exists}
            for t in tokens
        ]
        return out

    @app.patch("/notes/{note_id}")
    async def update_note(note_id: str, body: NoteUpdate) -> dict[str, Any]:
        fields = body.model_dump(exclude_unset=True, exclude_none=True)
        note = store.update(note_id, **fields)
        return note_to_dict(note, with_content=True)

    @app.delete("/notes/{note_id}", status_code=204)
    async def delete_note(note_id: str) -> None:
        store.delete(note_id)

    @app.get("/notes/{note_id}/backlinks")
    async def backlinks(
        note_id: str,
        context: int = Query(2, description="Context lines", ge=0),
    ) -> list[dict[str, Any]]:
        """Notes referencing this one, most recently updated first."""
        note = get_note_or_404(note_id)
        return [
            {
                "source": c.source.id,
                "title": c.source.title,
                "start": c.range.start,
                "end": c.range.end,
                "context": c.context,
            }
            for c in backlink_contexts(note, store.notes, context=context)
        ]

    @app.get("/graph")
    async def graph() -> dict[str, Any]:
        return graph_to_dict(garden.graph)

    @app.get("/tags")
    async def tags(limit: int | None = Query(None, ge=1)) -> list[dict[str, Any]]:
        counts = garden.tag_counts
        if limit is not None:
            counts = counts[:limit]
        return [{"tag": tc.tag, "count": tc.count} for tc in counts]

    @app.post("/daily")
    async def daily() -> dict[str, Any]:
        """Today's daily note, created if missing."""
        return note_to_dict(runtime.daily.ensure_today(), with_content=True)

    # Search session
    def search_state() -> dict[str, Any]:
        return {
            "query": search.query,
            "selected_tags": search.selected_tags,
            "history": search.history,
            "has_active_filters": search.has_active_filters,
        }

    @app.get("/search")
    async def run_search(
        sort: SortKey = Query(SortKey.RELEVANCE),
        order: SortOrder = Query(SortOrder.DESC),
        start: datetime | None = Query(None, description="Created on or after"),
        end: datetime | None = Query(None, description="Created on or before"),
        limit: int = Query(50, le=500, ge=1),
    ) -> dict[str, Any]:
        """Results for the current query and tag selection."""
        if start is not None and end is not None and start.timestamp() > end.timestamp():
            raise HTTPException(status_code=400, detail="start is after end")
        results = refine(search.results(), start=start, end=end, by=sort, order=order)
        out = search_state()
        out["count"] = len(results)
        out["results"] = [note_to_dict(n) for n in results[:limit]]
        return out

    @app.put("/search/query")
    async def set_query(body: QueryBody) -> dict[str, Any]:
        search.set_query(body.query)
        return search_state()

    @app.post("/search/tags/{tag}")
    async def select_tag(tag: str) -> dict[str, Any]:
        search.select_tag(tag)
        return search_state()

    @app.delete("/search/tags/{tag}")
    async def remove_tag(tag: str) -> dict[str, Any]:
        search.remove_tag(tag)
        return search_state()

    @app.post("/search/clear")
    async def clear() -> dict[str, Any]:
        search.clear_all()
        return search_state()

    @app.get("/search/history")
    async def history() -> list[str]:
        return search.history

    @app.post("/search/history")
    async def commit_query(body: QueryBody) -> list[str]:
        search.add_to_history(body.query)
        return search.history

    @app.post("/search/history/select")
    async def select_history(body: QueryBody) -> dict[str, Any]:
        search.select_from_history(body.query)
        return search_state()

    @app.get("/search/suggestions")
    async def suggestions(q: str = Query(..., description="Partial input")) -> list[str]:
        return search.get_search_suggestions(q)

    @app.get("/search/popular-tags")
    async def popular_tags(limit: int = Query(10, ge=1)) -> list[str]:
        return search.get_popular_tags(limit)

    return app
