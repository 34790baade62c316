from __future__ import annotations

import argparse
import sys
import time
from importlib import metadata
from pathlib import Path

import tomllib
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .library import StoryLibrary
from .logging_utils import build_uvicorn_log_config, set_debug_logging
from .mora import parse_pitch, segment, split_mora
from .stories import VIEW_ADDED, VIEW_RANK, days_since
from .sync import (
    StoryServiceClient,
    StoryServiceError,
    StoryServiceUnavailableError,
    default_service_url,
)
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
    __version__ = metadata.version("yomi")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"yomi {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print debug messages for service requests and sync decisions.",
    )


def _add_service_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of the story service (default: $YOMI_SERVICE_URL or {default_service_url()}).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Request timeout in seconds (default: 10).",
    )


def build_list_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi list",
        description="List stories from the story service in drill or newest-first order.",
    )
    _add_common_flags(ap)
    _add_service_flags(ap)
    ap.add_argument(
        "--view",
        choices=[VIEW_RANK, VIEW_ADDED],
        default=VIEW_RANK,
        help="'rank' (default) orders by rank then staleness; 'added' shows newest first.",
    )
    return ap


def build_segment_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi segment",
        description="Split a kana reading around its pitch-accent drop.",
    )
    _add_common_flags(ap)
    ap.add_argument("reading", help="Kana reading, e.g. きょう")
    ap.add_argument(
        "--pitch",
        help="Dictionary pitch data 'drop[,rise]', e.g. 1 or 2,3. Omit for unknown pitch.",
    )
    return ap


def build_web_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi web",
        description="Serve the story list and word lookups in the browser.",
    )
    _add_common_flags(ap)
    _add_service_flags(ap)
    ap.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface for the web server (default: 127.0.0.1).",
    )
    ap.add_argument(
        "--port",
        type=int,
        default=2047,
        help="Port for the web server (default: 2047).",
    )
    ap.add_argument(
        "--view",
        choices=[VIEW_RANK, VIEW_ADDED],
        default=VIEW_RANK,
        help="Default story order when the page does not ask for one.",
    )
    ap.add_argument(
        "--no-refresh-after-update",
        action="store_true",
        help="Do not refetch the story list after each successful update.",
    )
    ap.add_argument(
        "--no-access-log",
        action="store_true",
        help="Silence the per-request access log.",
    )
    return ap


def _client_from_args(args: argparse.Namespace) -> StoryServiceClient:
    return StoryServiceClient(args.service_url, timeout=args.timeout)


def _run_list(args: argparse.Namespace, console: Console) -> int:
    client = _client_from_args(args)
    library = StoryLibrary(client)
    try:
        library.refresh()
    except (StoryServiceUnavailableError, StoryServiceError) as exc:
        raise SystemExit(str(exc)) from exc
    finally:
        client.close()

    stories = library.ordered(args.view)
    if not stories:
        console.print("No stories yet.")
        return 0
    now = int(time.time())
    table = Table(title=f"Stories ({args.view})")
    table.add_column("ID", justify="right")
    table.add_column("Rank", justify="right")
    table.add_column("Countdown", justify="right")
    table.add_column("Read", justify="right")
    table.add_column("Days since read", justify="right")
    table.add_column("Title")
    for story in stories:
        last_read = str(days_since(story.date_last_read, now)) if story.date_last_read else "-"
        table.add_row(
            str(story.id),
            str(story.rank),
            str(story.countdown),
            str(story.read_count),
            last_read,
            story.title,
        )
    console.print(table)
    return 0


def _run_segment(args: argparse.Namespace, console: Console) -> int:
    pitch = parse_pitch(args.pitch)
    pre_drop, drop, post_drop = segment(args.reading, pitch)
    console.print(f"mora: {' '.join(split_mora(args.reading))}", markup=False)
    if pitch is None:
        console.print(f"{args.reading}﹖ (pitch unknown)", markup=False)
        return 0
    console.print(f"{escape(pre_drop)}[bold]{escape(drop)}[/bold]{escape(post_drop)}", highlight=False)
    console.print(f"pre-drop: {pre_drop!r}  drop: {drop!r}  post-drop: {post_drop!r}", markup=False)
    return 0


def _run_web(args: argparse.Namespace, console: Console) -> int:
    config = WebConfig(
        service_url=args.service_url or default_service_url(),
        timeout=args.timeout,
        default_view=args.view,
        refresh_after_update=not args.no_refresh_after_update,
    )
    app = create_app(config)
    console.print(f"Story service: {config.service_url}")
    console.print(f"Web URL: http://{args.host}:{args.port}/")
    console.print("Press Ctrl+C to stop.\n")
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_config=build_uvicorn_log_config(
            debug=args.debug,
            access_log=not args.no_access_log,
        ),
    )
    return 0


_COMMANDS = {
    "list": (build_list_parser, _run_list),
    "segment": (build_segment_parser, _run_segment),
    "web": (build_web_parser, _run_web),
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yomi",
        description="Japanese reading study helper. Commands: list, segment, web.",
    )
    ap.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"yomi {__version__}",
    )
    ap.add_argument("command", choices=sorted(_COMMANDS), help="Command to run.")
    return ap


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] in _COMMANDS:
        build, run = _COMMANDS[argv[0]]
        args = build().parse_args(argv[1:])
        set_debug_logging(args.debug)
        return run(args, Console())

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    parser.parse_args(argv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
