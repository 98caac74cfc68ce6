"""Command-line interface for embedframe."""

from __future__ import annotations

import argparse
import sys
import time

from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import EmbedFrameException


if TYPE_CHECKING:
    from .bundler import BundlePaths


def main(argv: list[str] | None = None) -> int:
    """Run the main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="embedframe",
        description="Single-file iframe widget bundling and embed tools",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # bundle command
    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Inline the compiled script into the HTML shell",
    )
    bundle_parser.add_argument(
        "--dist",
        "-d",
        type=str,
        default=None,
        help="Build output directory (uses config default)",
    )
    bundle_parser.add_argument(
        "--watch",
        "-w",
        action="store_true",
        help="Rebundle whenever the build outputs change",
    )

    # embed command
    embed_parser = subparsers.add_parser(
        "embed",
        help="Print the host page snippet for embedding the widget",
    )
    embed_parser.add_argument("--widget-url", required=True, help="URL of iframe-app.html")
    embed_parser.add_argument("--host-url", required=True, help="URL of the host page")
    embed_parser.add_argument(
        "--iframe-id",
        default="embedframe-widget",
        help="Id of the iframe element (default: embedframe-widget)",
    )

    # runtime command
    runtime_parser = subparsers.add_parser(
        "runtime",
        help="Print the widget runtime script",
    )
    runtime_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    # config command
    subparsers.add_parser(
        "config",
        help="Show the effective configuration",
    )

    args = parser.parse_args(argv)

    from .config import get_settings
    from .log import configure

    handlers = {
        "bundle": handle_bundle,
        "embed": handle_embed,
        "runtime": handle_runtime,
        "config": handle_config,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        configure(get_settings().log, debug_enabled=args.debug)
        return handler(args)
    except EmbedFrameException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def handle_bundle(args: argparse.Namespace) -> int:
    """Handle the bundle command.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments.

    Returns
    -------
    int
        Exit code.
    """
    from .bundler import BundlePaths, bundle
    from .config import get_settings

    settings = get_settings()
    # A production build without a build id must not produce an artifact
    settings.build.require_valid()

    bundle_settings = settings.bundle
    if args.dist is not None:
        bundle_settings = bundle_settings.model_copy(update={"dist_dir": args.dist})
    paths = BundlePaths.from_settings(bundle_settings)

    if args.watch:
        return _watch(paths, bundle_settings.watch_debounce_ms)

    result = bundle(paths)
    print(f"Wrote {result.output} ({result.output_bytes} bytes, sha256 {result.sha256})")
    print(f"Moved original shell to {result.backup}")
    return 0


def _watch(paths: BundlePaths, debounce_ms: int) -> int:
    from .watcher import BundleWatcher

    watcher = BundleWatcher(
        paths,
        debounce_ms=debounce_ms,
        on_bundle=lambda result: print(f"Wrote {result.output} ({result.output_bytes} bytes)"),
    )
    watcher.start()
    print(f"Watching {paths.shell.parent} (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\nWatcher stopped.")
    finally:
        watcher.stop()
    return 0


def handle_embed(args: argparse.Namespace) -> int:
    """Handle the embed command."""
    from .config import get_settings
    from .scripts import build_embed_html

    param = get_settings().widget.host_url_param
    print(build_embed_html(args.widget_url, args.host_url, args.iframe_id, param=param), end="")
    return 0


def handle_runtime(args: argparse.Namespace) -> int:
    """Handle the runtime command."""
    from .config import get_settings
    from .scripts import build_widget_runtime_js

    settings = get_settings()
    script = build_widget_runtime_js(settings.build, settings.widget)

    if args.output:
        Path(args.output).write_text(script, encoding="utf-8")
        print(f"Runtime written to {args.output}")
    else:
        print(script)
    return 0


def handle_config(args: argparse.Namespace) -> int:  # pylint: disable=unused-argument
    """Handle the config command."""
    from .config import get_settings

    print(get_settings().to_display(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
