"""Command line interface.

Commands:
- build: translate, render, write the sitemap and check links
- translate: only bring translated documents up to date
- check-links: validate the links of an existing output tree
- serve: build, then serve the output tree and rebuild on changes

Exit codes: 0 success, 1 fatal build error, 2 broken links.
"""

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import List, Optional

from mdbuilder import __version__
from mdbuilder.config import CONFIG_FILE_NAME, BuilderConfig, load_config
from mdbuilder.core.exceptions import BrokenLinksError, BuildError
from mdbuilder.logger import LOG_MODES, configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_BUILD_ERROR = 1
EXIT_BROKEN_LINKS = 2

DEFAULT_PORT = 4173


def _load(args: argparse.Namespace) -> BuilderConfig:
    config = load_config(args.config)
    configure_logging(args.log_mode or config.log_mode, config.log_file)
    if getattr(args, "clean", False):
        config = dataclasses.replace(config, clean=True)
    return config


def cmd_build(args: argparse.Namespace) -> int:
    from mdbuilder.site.builder import SiteBuilder

    config = _load(args)
    SiteBuilder(config).build(
        refresh_translations=args.refresh_translations,
        skip_link_check=True if args.skip_link_check else None,
    )
    return EXIT_OK


def cmd_translate(args: argparse.Namespace) -> int:
    from mdbuilder.translation.manager import TranslationManager

    config = _load(args)
    result = TranslationManager(config).ensure_translations(refresh=args.refresh)
    logger.info(f"{len(result.written)} translated, {result.skipped} up to date")
    return EXIT_OK


def cmd_check_links(args: argparse.Namespace) -> int:
    from mdbuilder.site.links import validate_links

    if args.root is not None:
        configure_logging(args.log_mode or "info")
        root = args.root
    else:
        root = _load(args).output_dir
    validate_links(root)
    return EXIT_OK


def cmd_serve(args: argparse.Namespace) -> int:
    from mdbuilder.site.builder import SiteBuilder
    from mdbuilder.web import create_app
    from mdbuilder.web.tasks import ContentWatcher, RebuildCoordinator

    config = _load(args)
    builder = SiteBuilder(config)
    try:
        builder.build(refresh_translations=args.refresh_translations)
    except BuildError as e:
        logger.error(f"Initial build failed: {e}")

    coordinator = RebuildCoordinator(builder)
    watcher = None
    if not args.no_watch:
        watcher = ContentWatcher(config, coordinator, debounce=args.debounce)
        watcher.start()

    app = create_app(config, coordinator)
    logger.info(f"Serving {config.output_dir} at http://{args.host}:{args.port}")
    try:
        app.run(host=args.host, port=args.port, debug=False, use_reloader=False)
    finally:
        if watcher is not None:
            watcher.stop()
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdbuilder", description="Multi-language static site builder")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: ./{CONFIG_FILE_NAME})",
    )
    parser.add_argument("--log-mode", choices=LOG_MODES, default=None, help="Override the configured log mode")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the site")
    build.add_argument("--refresh-translations", action="store_true", help="Re-translate all documents")
    build.add_argument("--skip-link-check", action="store_true", help="Do not validate links")
    build.add_argument("--clean", action="store_true", help="Empty the output directory first")
    build.set_defaults(func=cmd_build)

    translate = subparsers.add_parser("translate", help="Update translated documents only")
    translate.add_argument("--refresh", action="store_true", help="Re-translate all documents")
    translate.set_defaults(func=cmd_translate)

    check = subparsers.add_parser("check-links", help="Validate links in the output tree")
    check.add_argument("--root", type=Path, default=None, help="Output root (default: configured output_dir)")
    check.set_defaults(func=cmd_check_links)

    serve = subparsers.add_parser("serve", help="Build, serve and rebuild on changes")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT)
    serve.add_argument("--no-watch", action="store_true", help="Do not watch for changes")
    serve.add_argument("--debounce", type=float, default=0.2, help="Seconds to wait for further file changes before rebuilding")
    serve.add_argument("--refresh-translations", action="store_true", help="Re-translate all documents first")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except BrokenLinksError as e:
        logger.error(str(e))
        return EXIT_BROKEN_LINKS
    except BuildError as e:
        logger.error(str(e))
        return EXIT_BUILD_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
