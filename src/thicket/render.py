"""Link markup for note content."""

import html
from collections.abc import Iterable

from .core.model import ReferenceToken
from .core.ports import Renderer


class HtmlLinkRenderer(Renderer):
    """
    Replace each [[Title]] with a span.

    Resolved references become `note-link-exists` spans carrying the target
    id; unresolved ones become `note-link-missing` spans carrying the
    attempted title so a client can offer to create that note. Everything
    else is HTML-escaped.
    """

    def render(self, text: str, tokens: Iterable[ReferenceToken]) -> str:
        out: list[str] = []
        pos = 0
        for tok in tokens:
            if tok.range is None:
                continue
            out.append(html.escape(text[pos : tok.range.start]))
            out.append(self.render_token(tok))
            pos = tok.range.end
        out.append(html.escape(text[pos:]))
        return "".join(out)

    def render_token(self, tok: ReferenceToken) -> str:
        label = html.escape(tok.raw_text)
        if tok.exists:
            nid = html.escape(tok.resolved_note_id or "", quote=True)
            return f'<span class="note-link note-link-exists" data-note-id="{nid}">{label}</span>'
        title = html.escape(tok.raw_text, quote=True)
        return f'<span class="note-link note-link-missing" data-note-title="{title}">{label}</span>'
