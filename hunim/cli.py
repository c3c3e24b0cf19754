from __future__ import annotations

import argparse
import sys
import time
from functools import partial
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import CONFIG_NAME
from .errors import HunimError
from .pipeline import build_site
from .scaffold import health_report, new_site
from .server import DEFAULT_HOST, DEFAULT_PORT, POLL_INTERVAL, run_server

COMMANDS = ("build", "server", "newsite", "health", "version")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hunim", description="Static site generator for HTML and Markdown sources.")
    parser.add_argument("command", nargs="?", default="build", choices=COMMANDS, help="Command to run.")
    parser.add_argument("name", nargs="?", default="", help="Site name for newsite.")
    parser.add_argument("--root", default=".", help="Project directory containing hunim.toml and src/.")
    parser.add_argument(
        "--config",
        default=CONFIG_NAME,
        help="Config file under --root (.toml, .yaml or .json).",
    )
    parser.add_argument(
        "-D",
        "--build-drafts",
        "--buildDrafts",
        dest="build_drafts",
        action="store_true",
        help="Include pages marked draft: true.",
    )
    parser.add_argument("--dev", action="store_true", help="Inject the live-reload script into pages.")
    parser.add_argument(
        "--watch",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Rebuild when sources change (server only).",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="Address the dev server binds to.")
    parser.add_argument("--port", default=DEFAULT_PORT, type=int, help="Port the dev server binds to.")
    parser.add_argument("--interval", default=POLL_INTERVAL, type=float, help="Seconds between change checks.")
    parser.add_argument(
        "--build-workers",
        default=0,
        type=int,
        help="Number of worker threads for the embedded renderer (0 = auto).",
    )
    return parser


def run_build(args: argparse.Namespace) -> None:
    start = time.perf_counter()
    result = build_site(
        Path(args.root),
        build_drafts=args.build_drafts,
        reload=args.dev,
        workers=args.build_workers,
        config_name=args.config,
    )
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Converted {result.converted} markdown files, {len(result.sitemap_urls)} sitemap URLs.")


def run_health(args: argparse.Namespace) -> None:
    for label, ok, detail in health_report(Path(args.root), args.config):
        print(f"{label} ({detail})" if ok else f"{label} ({detail}) [missing]")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "version":
            print(__version__)
        elif args.command == "health":
            run_health(args)
        elif args.command == "newsite":
            site = new_site(Path(args.root), args.name)
            print(f"Created new site in: {site}")
        elif args.command == "server":
            rebuild = partial(
                build_site,
                Path(args.root),
                build_drafts=args.build_drafts,
                reload=args.dev,
                workers=args.build_workers,
                config_name=args.config,
            )
            run_server(
                Path(args.root),
                rebuild,
                host=args.host,
                port=args.port,
                watch=args.watch,
                interval=args.interval,
            )
        else:
            run_build(args)
    except HunimError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("")
        return 1
    return 0
