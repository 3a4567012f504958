from __future__ import annotations

import argparse
import json
import sys
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .config import CatalogPaths, resolve_paths
from .dictionary import (
    LoadError,
    ParseError,
    SourceNotFoundError,
    load_dictionary,
    merge_entries,
    prune_kana_only,
    save_dictionary,
)
from .gaps import DEFAULT_MIN_COUNT, GapReport, count_term_occurrences, find_gaps, find_unread_records
from .indexer import enrich_records, set_debug_logging
from .kana import is_kana_only
from .logging_utils import build_uvicorn_log_config
from .matcher import SearchIndex
from .records import load_records, save_records
from .web import WebConfig, create_app


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("cardyomi")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"cardyomi {__version__}",
    )


def _add_path_options(parser: argparse.ArgumentParser, *, cards: bool = True) -> None:
    parser.add_argument(
        "--data-dir",
        help="Directory holding cards.json and kana-dictionary.json (env: CARDYOMI_DATA_DIR, default: ./data).",
    )
    if cards:
        parser.add_argument(
            "--cards",
            help="Card data file (env: CARDYOMI_CARDS_FILE).",
        )
    parser.add_argument(
        "--dictionary",
        help="Reading dictionary file (env: CARDYOMI_DICTIONARY_FILE).",
    )


def _paths_from_args(args: argparse.Namespace) -> CatalogPaths:
    return resolve_paths(
        getattr(args, "data_dir", None),
        cards=getattr(args, "cards", None),
        dictionary=getattr(args, "dictionary", None),
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi",
        description=(
            "Reading index maintenance for the card catalog. Commands: enrich, gaps, audit, "
            "terms, search, dict, web."
        ),
    )
    _add_version_flag(ap)
    return ap


def build_enrich_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi enrich",
        description="Recompute the kana reading index of every card from the dictionary.",
    )
    _add_version_flag(ap)
    _add_path_options(ap)
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute readings and report changes without writing the card file.",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Print every reading that changes.",
    )
    return ap


def build_gaps_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi gaps",
        description="List keywords that appear in cards but have no dictionary reading.",
    )
    _add_version_flag(ap)
    _add_path_options(ap)
    ap.add_argument(
        "--min-count",
        type=int,
        default=DEFAULT_MIN_COUNT,
        help="Only report keywords found in at least this many cards (default: %(default)s). Use 1 for all.",
    )
    ap.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Rows to print (default: %(default)s). The JSON output is never truncated.",
    )
    ap.add_argument(
        "-o",
        "--output",
        help="Write the full report as JSON to this path.",
    )
    return ap


def build_audit_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi audit",
        description="List card names that need a reading but have an empty kana field.",
    )
    _add_version_flag(ap)
    ap.add_argument("--data-dir", help="Directory holding cards.json (env: CARDYOMI_DATA_DIR).")
    ap.add_argument("--cards", help="Card data file (env: CARDYOMI_CARDS_FILE).")
    return ap


def build_terms_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi terms",
        description="Count how many cards mention each term (case-insensitive).",
    )
    _add_version_flag(ap)
    ap.add_argument("terms", nargs="+", help="Terms to look for, e.g. Myth Promise Advent.")
    ap.add_argument("--data-dir", help="Directory holding cards.json (env: CARDYOMI_DATA_DIR).")
    ap.add_argument("--cards", help="Card data file (env: CARDYOMI_CARDS_FILE).")
    return ap


def build_search_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi search",
        description="Search card names the same way the card browser does.",
    )
    _add_version_flag(ap)
    ap.add_argument("query", help="Query text; hiragana, katakana, kanji and Latin all work.")
    ap.add_argument("--data-dir", help="Directory holding cards.json (env: CARDYOMI_DATA_DIR).")
    ap.add_argument("--cards", help="Card data file (env: CARDYOMI_CARDS_FILE).")
    ap.add_argument(
        "--explain",
        action="store_true",
        help="Show which match path (raw, loose, reading) hit for each card.",
    )
    return ap


def build_dict_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi dict",
        description="Reading dictionary maintenance.",
    )
    _add_version_flag(ap)
    subparsers = ap.add_subparsers(dest="dict_cmd")

    merge = subparsers.add_parser(
        "merge",
        help="Merge reviewed key/reading pairs from a JSON file into the dictionary.",
    )
    merge.add_argument("additions", help="JSON object of key/reading pairs.")
    merge.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing readings instead of keeping them.",
    )
    _add_path_options(merge, cards=False)

    prune = subparsers.add_parser(
        "prune",
        help="Remove entries whose key is already pure kana.",
    )
    _add_path_options(prune, cards=False)

    stats = subparsers.add_parser(
        "stats",
        help="Show dictionary size and key composition.",
    )
    _add_path_options(stats, cards=False)
    return ap


def build_web_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cardyomi web",
        description="Serve the card search API for the browser front end.",
    )
    _add_version_flag(ap)
    _add_path_options(ap)
    ap.add_argument("--host", default="127.0.0.1", help="Bind host (default: %(default)s).")
    ap.add_argument("--port", type=int, default=8765, help="Bind port (default: %(default)s).")
    ap.add_argument(
        "--live-index",
        action="store_true",
        help="Recompute readings from the dictionary at startup instead of trusting the card file.",
    )
    return ap


class _EnrichProgress:
    def __init__(self, total: int) -> None:
        self.console = Console(stderr=True)
        self.enabled = total > 0 and self.console.is_terminal
        self.progress: Progress | None = None
        self.task_id = None
        if not self.enabled:
            return
        self.progress = Progress(
            TextColumn("{task.description}", justify="left"),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[detail]}", justify="left"),
            console=self.console,
            transient=False,
        )
        self.progress.start()
        self.task_id = self.progress.add_task("Enriching cards", total=total, detail="")

    @staticmethod
    def _truncate(text: str, width: int = 24) -> str:
        text = text.strip()
        if len(text) <= width:
            return text
        return text[: max(0, width - 1)] + "…"

    def handle(self, event: dict[str, object]) -> None:
        if self.progress is None or self.task_id is None:
            return
        if event.get("event") == "record":
            name = event.get("name")
            detail = self._truncate(name) if isinstance(name, str) else ""
            self.progress.update(self.task_id, advance=1, detail=detail)
        elif event.get("event") == "done":
            self.progress.update(self.task_id, detail="done")

    def close(self) -> None:
        if self.progress is not None:
            self.progress.stop()


def _run_enrich(args: argparse.Namespace) -> int:
    set_debug_logging(bool(args.debug))
    paths = _paths_from_args(args)
    try:
        dictionary = load_dictionary(paths.dictionary)
        records = load_records(paths.cards)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    progress = _EnrichProgress(len(records))
    try:
        summary = enrich_records(records, dictionary, progress=progress.handle)
    finally:
        progress.close()
    if args.dry_run:
        print(f"Dry run: {summary.changed} of {summary.total} card(s) would change.")
    else:
        save_records(records, paths.cards)
        print(f"Enriched {summary.total} card(s) ({summary.changed} changed) in {paths.cards}")
    if summary.empty:
        print(f"{summary.empty} card(s) have no reading. Run `cardyomi gaps` to find missing keys.")
    return 0


def _print_gap_table(report: GapReport, limit: int) -> None:
    console = Console()
    table = Table(title=f"Keywords without a reading ({len(report)})")
    table.add_column("Keyword")
    table.add_column("Cards", justify="right")
    for entry in report.entries[: max(0, limit)]:
        table.add_row(entry.word, str(entry.count))
    console.print(table)


def _run_gaps(args: argparse.Namespace) -> int:
    paths = _paths_from_args(args)
    try:
        dictionary = load_dictionary(paths.dictionary)
        records = load_records(paths.cards)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    report = find_gaps(records, dictionary)
    view = report.worth_curating(args.min_count) if args.min_count > 1 else report
    print(f"Cards analysed: {report.total_records}")
    print(f"Unique candidate keywords: {report.total_candidates}")
    print(f"Keywords without a reading: {len(report)}")
    if view is not report:
        print(f"Found in {args.min_count}+ cards: {len(view)}")
    if view.entries:
        _print_gap_table(view, args.limit)
    if args.output:
        output_path = Path(args.output).expanduser()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(view.to_payload(), ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"Report saved to {output_path}")
    return 0


def _run_audit(args: argparse.Namespace) -> int:
    paths = _paths_from_args(args)
    try:
        records = load_records(paths.cards)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    unread = find_unread_records(records)
    total = sum(item.count for item in unread)
    print(f"Cards needing a reading but missing kana: {total}")
    print(f"Unique names missing: {len(unread)}")
    for item in unread:
        print(f"{item.name} (count: {item.count}, example: {item.example_id})")
    return 0


def _run_terms(args: argparse.Namespace) -> int:
    paths = _paths_from_args(args)
    try:
        records = load_records(paths.cards)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    found = count_term_occurrences(records, args.terms)
    if not found:
        print("None of the terms appear in the card data.")
        return 0
    for term, count in found:
        print(f"{term}\t{count}")
    return 0


def _run_search(args: argparse.Namespace) -> int:
    paths = _paths_from_args(args)
    try:
        records = load_records(paths.cards)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    hits = SearchIndex(records).search_with_results(args.query)
    for record, result in hits:
        if args.explain:
            labels = [
                label
                for label, hit in (("raw", result.raw), ("loose", result.loose), ("reading", result.reading))
                if hit
            ]
            print(f"{record.id}\t{record.name}\t{','.join(labels) or '-'}")
        else:
            print(f"{record.id}\t{record.name}")
    print(f"{len(hits)} card(s) matched.", file=sys.stderr)
    return 0


def _load_additions(path: Path) -> dict[str, str]:
    if not path.exists():
        raise SourceNotFoundError(f"Additions file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Failed to parse additions file: {path}") from exc
    if not isinstance(raw, dict):
        raise ParseError(f"{path.name} must contain a JSON object of key/reading pairs.")
    additions: dict[str, str] = {}
    for key, reading in raw.items():
        if not key or not isinstance(reading, str):
            raise ParseError(f"{path.name}: invalid entry {key!r}.")
        additions[key] = reading
    return additions


def _run_dict(args: argparse.Namespace) -> int:
    if not args.dict_cmd:
        raise SystemExit("A dict subcommand is required. Use --help for options.")
    paths = _paths_from_args(args)

    if args.dict_cmd == "merge":
        try:
            dictionary = load_dictionary(paths.dictionary)
            additions = _load_additions(Path(args.additions).expanduser())
        except LoadError as exc:
            raise SystemExit(str(exc)) from exc
        result = merge_entries(dictionary, additions, overwrite=args.overwrite)
        if result.changed:
            save_dictionary(result.dictionary, paths.dictionary)
        print(f"Added {len(result.added)}, replaced {len(result.replaced)}, kept {len(result.kept)}.")
        print(f"Dictionary now has {len(result.dictionary)} entries.")
        return 0

    if args.dict_cmd == "prune":
        try:
            dictionary = load_dictionary(paths.dictionary)
        except LoadError as exc:
            raise SystemExit(str(exc)) from exc
        pruned, removed = prune_kana_only(dictionary)
        for key in removed:
            print(f"Removing: {key}")
        if removed:
            save_dictionary(pruned, paths.dictionary)
        print(f"Removed {len(removed)} kana-only entr{'y' if len(removed) == 1 else 'ies'}.")
        print(f"Remaining entries: {len(pruned)}")
        return 0

    if args.dict_cmd == "stats":
        try:
            dictionary = load_dictionary(paths.dictionary)
        except LoadError as exc:
            raise SystemExit(str(exc)) from exc
        kana_keys = sum(1 for key in dictionary if is_kana_only(key))
        longest = max((len(key) for key in dictionary), default=0)
        print(f"Entries: {len(dictionary)}")
        print(f"Kana-only keys: {kana_keys}")
        print(f"Longest key: {longest} character(s)")
        return 0

    raise SystemExit(f"Unknown dict subcommand: {args.dict_cmd}")


def _run_web(args: argparse.Namespace) -> None:
    paths = _paths_from_args(args)
    config = WebConfig(
        cards_path=paths.cards,
        dictionary_path=paths.dictionary if args.live_index else None,
    )
    try:
        app = create_app(config)
    except LoadError as exc:
        raise SystemExit(str(exc)) from exc
    print(f"Serving {len(app.state.catalog.records)} card(s) from {config.cards_path}")
    print(f"Search URL: http://{args.host}:{args.port}/api/search?q=")
    print("Press Ctrl+C to stop.\n")
    uvicorn.run(app, host=args.host, port=args.port, log_config=build_uvicorn_log_config())


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "enrich":
        return _run_enrich(build_enrich_parser().parse_args(argv[1:]))
    if argv and argv[0] == "gaps":
        return _run_gaps(build_gaps_parser().parse_args(argv[1:]))
    if argv and argv[0] == "audit":
        return _run_audit(build_audit_parser().parse_args(argv[1:]))
    if argv and argv[0] == "terms":
        return _run_terms(build_terms_parser().parse_args(argv[1:]))
    if argv and argv[0] == "search":
        return _run_search(build_search_parser().parse_args(argv[1:]))
    if argv and argv[0] == "dict":
        return _run_dict(build_dict_parser().parse_args(argv[1:]))
    if argv and argv[0] == "web":
        _run_web(build_web_parser().parse_args(argv[1:]))
        return 0

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    parser.parse_args(argv)
    raise SystemExit(f"Unknown command: {argv[0]}")


if __name__ == "__main__":
    raise SystemExit(main())
