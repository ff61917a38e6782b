"""CLI for building, querying and inspecting search index artifacts."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

import orjson
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from docs_search.config import Settings
from docs_search.observability import configure_logging
from docs_search.search.engine import SearchEngine
from docs_search.search.errors import ConfigError, MalformedIndexError
from docs_search.search.index import Document, IndexBuilder, SearchIndex
from docs_search.search.schema import create_default_schema
from docs_search.search.storage import read_index, save_index


logger = logging.getLogger(__name__)

BREADCRUMB_SEPARATOR = " » "


def _parse_boost(value: str) -> tuple[str, float]:
    name, sep, raw = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Expected FIELD=BOOST, got {value!r}")
    try:
        return name.strip(), float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Boost for '{name}' is not a number: {raw!r}") from None


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-search",
        description="Build and query elasticlunr-compatible documentation search indexes",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build an index artifact from a JSON list of pages")
    build.add_argument("pages", type=Path, help="JSON file holding a list of {url, title, body, breadcrumbs}")
    build.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Artifact path; a .js suffix writes the window.search wrapper (default: DOCS_SEARCH_INDEX_PATH)",
    )
    build.add_argument("--no-save-docs", action="store_true", help="Do not store document text in the artifact")
    build.add_argument(
        "--boost",
        type=_parse_boost,
        action="append",
        default=[],
        metavar="FIELD=BOOST",
        help="Override a field boost (repeatable)",
    )
    build.set_defaults(handler=_run_build)

    query = subparsers.add_parser("query", help="Run a query against an index artifact")
    query.add_argument("index", type=Path, help="Path to searchindex.json or searchindex.js")
    query.add_argument("text", help="Free-text query")
    query.add_argument("--bool", dest="combine_with", type=str.upper, choices=["AND", "OR"], default=None)
    query.add_argument("--no-expand", action="store_true", help="Disable prefix expansion")
    query.add_argument("--limit", type=int, default=None, help="Maximum number of results")
    query.add_argument(
        "--field",
        dest="fields",
        action="append",
        default=None,
        metavar="NAME",
        help="Restrict the search to a field (repeatable)",
    )
    query.add_argument("--json", action="store_true", help="Emit one JSON object per hit")
    query.set_defaults(handler=_run_query)

    inspect = subparsers.add_parser("inspect", help="Summarize an index artifact")
    inspect.add_argument("index", type=Path, help="Path to searchindex.json or searchindex.js")
    inspect.add_argument("--json", action="store_true", help="Emit the summary as JSON")
    inspect.set_defaults(handler=_run_inspect)
    return parser


def _page_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return BREADCRUMB_SEPARATOR.join(str(part) for part in value)
    return str(value)


def load_pages(path: Path) -> list[Document]:
    """Read a JSON list of page objects into documents with dense ids."""

    payload = orjson.loads(Path(path).read_bytes())
    if not isinstance(payload, list):
        raise ConfigError(f"{path} must contain a JSON list of page objects")
    documents: list[Document] = []
    for position, page in enumerate(payload):
        if not isinstance(page, dict):
            raise ConfigError(f"Page {position} in {path} is not an object")
        fields = {name: _page_text(value) for name, value in page.items() if name not in ("id", "url")}
        documents.append(Document(id=position, url=_page_text(page.get("url")), fields=fields))
    return documents


def _run_build(args: argparse.Namespace, settings: Settings) -> int:
    output: Path = args.output or settings.index_path
    schema = create_default_schema(save_documents=not args.no_save_docs, name=output.stem)
    schema = schema.with_boosts({**settings.field_boosts(), **dict(args.boost)})

    builder = IndexBuilder(schema)
    builder.add_documents(load_pages(args.pages))
    index = builder.build()
    save_index(index, output, settings.search_options())
    sys.stdout.write(f"Indexed {index.document_count} pages into {output}\n")
    return 0


def _run_query(args: argparse.Namespace, settings: Settings) -> int:
    loaded = read_index(args.index)
    updates: dict[str, Any] = {
        "highlight": "plain" if not args.json and settings.highlight == "html" else settings.highlight,
        "normalize_field_length": settings.normalize_field_length,
    }
    if args.combine_with:
        updates["combine_with"] = args.combine_with
    if args.no_expand:
        updates["expand"] = False
    if args.limit is not None:
        updates["limit"] = args.limit
    if args.fields:
        updates["fields"] = tuple(args.fields)
    options = loaded.options.with_updates(**updates)

    response = SearchEngine(loaded.index, options=options).search(args.text)
    if args.json:
        for hit in response.results:
            sys.stdout.write(orjson.dumps(hit.model_dump(), option=orjson.OPT_SORT_KEYS).decode("utf-8") + "\n")
        return 0

    console = Console()
    if not response.results:
        console.print(f"No results for {args.text!r}", markup=False)
        return 0
    table = Table(title=Text(f"{len(response)} result(s) for {args.text!r}"))
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Title", no_wrap=True)
    table.add_column("URL")
    table.add_column("Teaser", overflow="fold")
    for rank, hit in enumerate(response.results, start=1):
        table.add_row(str(rank), f"{hit.score:.4f}", Text(hit.title), Text(hit.url), Text(hit.teaser))
    console.print(table)
    return 0


def summarize_index(index: SearchIndex) -> dict[str, Any]:
    return {
        "name": index.name,
        "documents": index.document_count,
        "fields": {
            name: {
                "boost": index.schema.get_boost(name),
                "vocabulary": index.vocabulary_size(name),
                "average_length": round(index.field_stats[name].average_length, 3) if name in index.field_stats else 0.0,
            }
            for name in index.field_names
        },
        "pipeline": list(index.schema.pipeline),
        "ref": index.schema.ref,
        "stored_documents": index.schema.save_documents,
        "version": index.version,
    }


def _run_inspect(args: argparse.Namespace, settings: Settings) -> int:
    summary = summarize_index(read_index(args.index).index)
    if args.json:
        sys.stdout.write(orjson.dumps(summary, option=orjson.OPT_SORT_KEYS).decode("utf-8") + "\n")
        return 0

    console = Console()
    console.print(
        f"Index '{summary['name']}': {summary['documents']} documents, "
        f"pipeline {summary['pipeline']}, version {summary['version']}",
        markup=False,
    )
    table = Table()
    table.add_column("Field")
    table.add_column("Boost", justify="right")
    table.add_column("Vocabulary", justify="right")
    table.add_column("Avg length", justify="right")
    for name, info in summary["fields"].items():
        table.add_row(name, f"{info['boost']:g}", str(info["vocabulary"]), f"{info['average_length']:.1f}")
    console.print(table)
    return 0


def _configure_logging(settings: Settings) -> None:
    if logging.getLogger().handlers:
        return
    configure_logging(settings.log_level, settings.json_logs)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        logger.error("Invalid DOCS_SEARCH_* settings: %s", exc)
        return 1
    _configure_logging(settings)

    try:
        return args.handler(args, settings)
    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        return 1
    except MalformedIndexError as exc:
        logger.error("Invalid index artifact: %s", exc)
        return 1
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    except orjson.JSONDecodeError as exc:
        logger.error("Invalid JSON input: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
