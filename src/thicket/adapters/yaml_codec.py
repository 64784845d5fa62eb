import io
import re
from datetime import date, datetime, timezone
from typing import Any

import yaml

from ..core.model import Note
from ..core.ports import FrontmatterCodec, NoteCodec

_FM = re.compile(r"^\s*---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)", re.DOTALL)
_HEADING = re.compile(r"^#{1,6}\s+(.+)$")


class YamlFrontmatter(FrontmatterCodec):
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        fm = yaml.safe_load(io.StringIO(m.group(1))) or {}
        if not isinstance(fm, dict):
            raise ValueError("frontmatter is not a mapping")
        body = text[m.end() :]
        return (fm, body)

    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"


def parse_timestamp(value: Any) -> datetime | None:
    """
    Rehydrate a stored timestamp.

    Accepts ISO-8601 strings (what we write) and the datetime/date values YAML
    produces for unquoted timestamps. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    else:
        raise ValueError(f"not a timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _clean_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split()
    tags: list[str] = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _fallback_title(body: str, id: str) -> str:
    # First heading, then first non-empty line, then the id
    for line in body.splitlines():
        m = _HEADING.match(line.strip())
        if m:
            return m.group(1).strip()
    for line in body.splitlines():
        if line.strip():
            return line.strip()
    return id


class MarkdownNoteCodec(NoteCodec):
    def __init__(self, fm: YamlFrontmatter):
        self.fm = fm

    def decode_file(self, text: str, id: str) -> Note:
        meta, body = self.fm.decode(text)
        title = meta.get("title")
        created = parse_timestamp(meta.get("created"))
        updated = parse_timestamp(meta.get("updated")) or created
        if created is not None and updated is not None and updated < created:
            updated = created
        return Note(
            # filename remains the source of truth for the id
            id=id,
            title=str(title) if title is not None else _fallback_title(body, id),
            content=body,
            tags=_clean_tags(meta.get("tags")),
            created_at=created,
            updated_at=updated,
        )

    def encode_file(self, note: Note) -> str:
        meta: dict[str, Any] = {
            "id": note.id,
            "title": note.title,
            "tags": list(note.tags),
        }
        if note.created_at is not None:
            meta["created"] = note.created_at.isoformat()
        if note.updated_at is not None:
            meta["updated"] = note.updated_at.isoformat()
        return self.fm.encode(meta) + note.content
