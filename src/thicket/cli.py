"""CLI for thicket - linked notes with backlinks, a graph and fuzzy search."""

import argparse
import json
import platform
import sys
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from . import __version__
from .api.app import note_to_dict
from .config import load_config
from .core.backlinks import backlink_contexts
from .core.graph import graph_to_dict, graph_to_dot, visual_tier
from .core.model import Note
from .daily import daily_notes, describe_day, recent_daily_notes
from .errors import ThicketError
from .logging_setup import setup_logging
from .render import HtmlLinkRenderer
from .runtime import build_runtime
from .search.refine import SortKey, SortOrder, refine


def _lookup(rt: Any, ref: str) -> Note | None:
    """A note by id, falling back to a case-insensitive title match."""
    return rt.store.get_by_id(ref) or rt.store.get_by_title(ref)


def _not_found(ref: str) -> int:
    print(f"Note {ref} not found", file=sys.stderr)
    return 1


def _parse_tags(values: list[str] | None) -> list[str]:
    tags: list[str] = []
    for value in values or []:
        tags.extend(t.strip().lstrip("#") for t in value.split(",") if t.strip())
    return tags


def _day_start(text: str) -> datetime:
    return datetime.combine(date.fromisoformat(text), time.min)


def _day_end(text: str) -> datetime:
    return datetime.combine(date.fromisoformat(text), time.max)


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a new note."""
    content = args.content
    if content == "-":
        content = sys.stdin.read()
    note = rt.store.add(args.title, content or "", _parse_tags(args.tag))
    if args.json:
        print(json.dumps(note_to_dict(note, with_content=True), indent=2))
    elif not args.quiet:
        print(note.id)
    return 0


def cmd_show(args: argparse.Namespace, rt: Any) -> int:
    """Print a note and classify its references."""
    note = _lookup(rt, args.ref)
    if note is None:
        return _not_found(args.ref)

    tokens = list(rt.garden.references(note))
    if args.json:
        out = note_to_dict(note, with_content=True)
        out["links"] = [
            {"title": t.raw_text, "id": t.resolved_note_id, "exists": t.exists}
            for t in tokens
        ]
        print(json.dumps(out, indent=2))
        return 0

    if args.html:
        print(HtmlLinkRenderer().render(note.content, tokens))
        return 0

    print(f"# {note.title}")
    if note.tags:
        print(" ".join(f"#{t}" for t in note.tags))
    print()
    print(note.content)
    if tokens and not args.quiet:
        print("\nLinks:")
        for t in tokens:
            marker = t.resolved_note_id if t.exists else "missing"
            print(f"  [[{t.raw_text}]] -> {marker}")
    return 0


def cmd_edit(args: argparse.Namespace, rt: Any) -> int:
    """Change title, content or tags of a note."""
    note = _lookup(rt, args.ref)
    if note is None:
        return _not_found(args.ref)

    fields: dict[str, Any] = {}
    if args.title is not None:
        fields["title"] = args.title
    if args.content is not None:
        fields["content"] = sys.stdin.read() if args.content == "-" else args.content
    if args.append is not None:
        base = fields.get("content", note.content)
        sep = "\n" if base and not base.endswith("\n") else ""
        fields["content"] = f"{base}{sep}{args.append}"
    if args.tag is not None:
        fields["tags"] = _parse_tags(args.tag)
    if args.add_tag or args.remove_tag:
        tags = list(fields.get("tags", note.tags))
        tags.extend(t for t in _parse_tags(args.add_tag) if t not in tags)
        drop = set(_parse_tags(args.remove_tag))
        fields["tags"] = [t for t in tags if t not in drop]

    if not fields:
        print("Nothing to change", file=sys.stderr)
        return 1

    updated = rt.store.update(note.id, **fields)
    if not args.quiet:
        print(f"Updated {updated.id}")
    return 0


def cmd_rm(args: argparse.Namespace, rt: Any) -> int:
    """Delete a note."""
    note = _lookup(rt, args.ref)
    if note is None:
        return _not_found(args.ref)

    if not args.yes:
        response = input(f"Delete note {note.title!r} ({note.id})? [y/N] ")
        if response.lower() not in ("y", "yes"):
            print("Aborted")
            return 0

    backlinks = rt.garden.backlinks(note)
    rt.store.delete(note.id)
    if not args.quiet:
        print(f"Deleted {note.id}")
        if backlinks:
            print(f"{len(backlinks)} note(s) still link to {note.title!r}")
    return 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List notes."""
    if args.orphans:
        ids = {n.id for n in rt.garden.graph.orphans()}
        notes = [n for n in rt.store.notes if n.id in ids]
    else:
        notes = rt.store.notes

    if args.format == "json" or args.json:
        print(json.dumps([note_to_dict(n) for n in notes], indent=2))
    elif args.with_titles:
        for n in notes:
            print(f"{n.id}\t{n.title}")
    else:
        for n in notes:
            print(n.id)
    return 0


def cmd_find(args: argparse.Namespace, rt: Any) -> int:
    """Fuzzy search with tag filters, date range and sorting."""
    search = rt.garden.search
    if args.threshold is not None:
        search.set_threshold(args.threshold)
    search.set_query(args.query or "")
    for tag in _parse_tags(args.tag):
        search.select_tag(tag)
    if args.query:
        search.add_to_history(args.query)

    start = _day_start(args.date_from) if args.date_from else None
    end = _day_end(args.date_to) if args.date_to else None
    results = refine(search.results(), start=start, end=end, by=args.sort, order=args.order)
    results = results[: args.limit]

    if args.json:
        print(json.dumps([note_to_dict(n) for n in results], indent=2))
    else:
        for n in results:
            tags = " ".join(f"#{t}" for t in n.tags)
            print(f"{n.id}\t{n.title}\t{tags}".rstrip())
    return 0


def cmd_resolve(args: argparse.Namespace, rt: Any) -> int:
    """Resolve a title to a note id."""
    note = rt.store.get_by_title(args.text)
    if note is not None:
        print(note.id)
        return 0

    if not args.quiet:
        print(f"No exact match for '{args.text}'. Candidates:", file=sys.stderr)
        search = rt.garden.search
        search.set_query(args.text)
        for n in search.results()[:10]:
            print(f"  {n.id}\t{n.title}", file=sys.stderr)
    return 2


def cmd_backlinks(args: argparse.Namespace, rt: Any) -> int:
    """Show notes linking to a note, with context."""
    note = _lookup(rt, args.ref)
    if note is None:
        return _not_found(args.ref)

    contexts = backlink_contexts(note, rt.store.notes, context=args.context)
    if args.json:
        output = [
            {
                "source": c.source.id,
                "title": c.source.title,
                "start": c.range.start,
                "end": c.range.end,
                "context": c.context,
            }
            for c in contexts
        ]
        print(json.dumps(output, indent=2))
        return 0

    for c in contexts:
        if not args.quiet:
            print(f"\n{c.source.title} ({c.source.id}):")
        for line in c.context.splitlines():
            print(f"  {line}")
    return 0


def cmd_graph(args: argparse.Namespace, rt: Any) -> int:
    """Export graph data."""
    graph = rt.garden.graph
    if args.dot:
        print(graph_to_dot(graph))
    elif args.summary:
        print(f"Notes: {len(graph.nodes)}")
        print(f"Links: {len(graph.edges)}")
        print(f"Orphans: {len(graph.orphans())}")
        for node in sorted(graph.nodes, key=lambda n: n.connection_count, reverse=True)[:10]:
            tier = visual_tier(node.connection_count).value
            print(f"  {node.connection_count:>3}  {node.title}  [{tier}]")
    else:
        print(json.dumps(graph_to_dict(graph), indent=2))
    return 0


def cmd_tags(args: argparse.Namespace, rt: Any) -> int:
    """Tag usage counts."""
    counts = rt.garden.tag_counts[: args.limit]
    if args.json:
        print(json.dumps([{"tag": tc.tag, "count": tc.count} for tc in counts], indent=2))
    else:
        for tc in counts:
            print(f"{tc.count}\t{tc.tag}")
    return 0


def cmd_daily(args: argparse.Namespace, rt: Any) -> int:
    """Open today's daily note, creating it if needed."""
    if args.recent:
        today = rt.daily.today()
        for n in recent_daily_notes(rt.store.notes, today):
            label = describe_day(date.fromisoformat(n.title), today)
            print(f"{n.id}\t{n.title}\t{label}")
        return 0
    if args.list:
        for n in daily_notes(rt.store.notes):
            print(f"{n.id}\t{n.title}")
        return 0

    existed = rt.daily.today_note() is not None
    note = rt.daily.ensure_today()
    if args.json:
        print(json.dumps(note_to_dict(note, with_content=True), indent=2))
    elif not args.quiet:
        print(note.id)
        if not existed:
            print(f"Created daily note {note.title}", file=sys.stderr)
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch the store for changes and reload."""
    from .watch import watch_store

    return watch_store(
        rt,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app

    app = create_app(rt, enable_cors=args.cors)
    print(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


def version_string() -> str:
    return (
        f"thicket {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.platform()}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thicket", description="Thicket CLI"
    )
    parser.add_argument(
        "--version", action="version", version=version_string()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/thicket.toml, store/thicket.toml)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Path to note store directory (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # new command
    parser_new = subparsers.add_parser("new", help="Create a new note")
    parser_new.add_argument("title", help="Note title")
    parser_new.add_argument(
        "--content", default="", help="Note content ('-' reads stdin)"
    )
    parser_new.add_argument(
        "--tag", action="append", help="Tag (repeatable or comma-separated)"
    )

    # show command
    parser_show = subparsers.add_parser("show", help="Print a note and its links")
    parser_show.add_argument("ref", help="Note ID or title")
    parser_show.add_argument(
        "--html", action="store_true", help="Render content with link markup"
    )

    # edit command
    parser_edit = subparsers.add_parser("edit", help="Change a note")
    parser_edit.add_argument("ref", help="Note ID or title")
    parser_edit.add_argument("--title", help="New title")
    parser_edit.add_argument("--content", help="New content ('-' reads stdin)")
    parser_edit.add_argument("--append", help="Append a line to the content")
    parser_edit.add_argument(
        "--tag", action="append", help="Replace tags (repeatable or comma-separated)"
    )
    parser_edit.add_argument(
        "--add-tag", dest="add_tag", action="append", help="Add a tag"
    )
    parser_edit.add_argument(
        "--remove-tag", dest="remove_tag", action="append", help="Remove a tag"
    )

    # rm command
    parser_rm = subparsers.add_parser("rm", help="Delete a note")
    parser_rm.add_argument("ref", help="Note ID or title")
    parser_rm.add_argument("--yes", action="store_true", help="Skip confirmation")

    # ls command
    parser_ls = subparsers.add_parser("ls", help="List notes, newest first")
    parser_ls.add_argument(
        "--orphans", action="store_true", help="Show notes with no links"
    )
    parser_ls.add_argument(
        "--with-titles", dest="with_titles", action="store_true",
        help="Print id and title (tab-separated)"
    )
    parser_ls.add_argument(
        "--format", choices=["json"], help="Output format (json)"
    )

    # find command
    parser_find = subparsers.add_parser("find", help="Fuzzy search")
    parser_find.add_argument(
        "query", nargs="?", default="", help="Search text; #tag filters by tag"
    )
    parser_find.add_argument(
        "--tag", action="append", help="Require tag (repeatable, AND)"
    )
    parser_find.add_argument(
        "--sort", choices=[k.value for k in SortKey], default=SortKey.RELEVANCE.value,
        help="Sort key (default: relevance)"
    )
    parser_find.add_argument(
        "--order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value,
        help="Sort direction (default: desc)"
    )
    parser_find.add_argument(
        "--from", dest="date_from", help="Created on or after YYYY-MM-DD"
    )
    parser_find.add_argument(
        "--to", dest="date_to", help="Created on or before YYYY-MM-DD"
    )
    parser_find.add_argument(
        "--limit", type=int, default=50, help="Maximum results (default: 50)"
    )
    parser_find.add_argument(
        "--threshold", type=float, default=None,
        help="Fuzzy threshold, 0 exact to 1 loose (overrides config)"
    )

    # resolve command
    parser_resolve = subparsers.add_parser("resolve", help="Resolve a title to a note ID")
    parser_resolve.add_argument("text", help="Title to resolve")

    # backlinks command
    parser_backlinks = subparsers.add_parser(
        "backlinks", help="Show notes linking here, with context"
    )
    parser_backlinks.add_argument("ref", help="Note ID or title")
    parser_backlinks.add_argument(
        "--context", type=int, default=2, help="Context lines around link (default: 2)"
    )

    # graph command
    parser_graph = subparsers.add_parser("graph", help="Export graph data")
    parser_graph.add_argument(
        "--dot", action="store_true", help="Output in DOT format for Graphviz"
    )
    parser_graph.add_argument(
        "--summary", action="store_true", help="Print counts and best connected notes"
    )

    # tags command
    parser_tags = subparsers.add_parser("tags", help="Tag usage counts")
    parser_tags.add_argument(
        "--limit", type=int, default=20, help="Maximum tags (default: 20)"
    )

    # daily command
    parser_daily = subparsers.add_parser("daily", help="Today's daily note")
    parser_daily.add_argument(
        "--recent", action="store_true", help="List daily notes from the past week"
    )
    parser_daily.add_argument(
        "--list", action="store_true", help="List all daily notes"
    )

    # watch command
    parser_watch = subparsers.add_parser("watch", help="Watch store for changes")
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=150,
        help="Debounce window in milliseconds (default: 150)"
    )

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument(
        "--host", default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8765,
        help="Port to bind to (default: 8765)"
    )
    parser_serve.add_argument(
        "--cors", action="store_true",
        help="Enable CORS (default: false)"
    )

    return parser


HANDLERS = {
    "new": cmd_new,
    "show": cmd_show,
    "edit": cmd_edit,
    "rm": cmd_rm,
    "ls": cmd_ls,
    "find": cmd_find,
    "resolve": cmd_resolve,
    "backlinks": cmd_backlinks,
    "graph": cmd_graph,
    "tags": cmd_tags,
    "daily": cmd_daily,
    "watch": cmd_watch,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(config_path=args.config, store_path=args.store)
        setup_logging(args.log_level or config.log.level, config.log.file)
        rt = build_runtime(store_path=args.store, config=config)
    except ThicketError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    handler = HANDLERS.get(args.cmd)
    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = handler(args, rt)
    except (ThicketError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
