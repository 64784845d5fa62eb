from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

NoteId = str


@dataclass
class Note:
    id: NoteId
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Range:
    start: int  # character offsets into the note content
    end: int


@dataclass(frozen=True)
class ReferenceToken:
    raw_text: str  # trimmed text between [[ and ]], original casing
    resolved_note_id: NoteId | None = None
    range: Range | None = None

    @property
    def exists(self) -> bool:
        return self.resolved_note_id is not None


@dataclass
class GraphNode:
    id: NoteId
    title: str
    index: int
    connection_count: int
    x: float
    y: float
    size: float


@dataclass(frozen=True)
class GraphEdge:
    source: NoteId
    target: NoteId
    strength: int  # rendering weight only, 1..5
    emphasized: bool

    @property
    def id(self) -> str:
        return f"{self.source}-{self.target}"


@dataclass
class Graph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def node(self, note_id: NoteId) -> GraphNode | None:
        for n in self.nodes:
            if n.id == note_id:
                return n
        return None

    def neighbors(self, note_id: NoteId) -> list[NoteId]:
        out: list[NoteId] = []
        for e in self.edges:
            if e.source == note_id:
                out.append(e.target)
            elif e.target == note_id:
                out.append(e.source)
        return out

    def orphans(self) -> list[GraphNode]:
        return [n for n in self.nodes if n.connection_count == 0]


class VisualTier(str, enum.Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class TagCount:
    tag: str
    count: int
