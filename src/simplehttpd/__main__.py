"""
=============================================================================
SIMPLEHTTPD CLI ENTRY POINT
=============================================================================

    # Serve ~/public_html (or the current directory) on [::]:8001
    python -m simplehttpd

    # Serve ./site on IPv4 localhost, port 8080
    python -m simplehttpd -d ./site -l 127.0.0.1 -p 8080

    # Per-user directories: /~alice/ → ~alice/public_html/
    python -m simplehttpd -u

    # Per-user directories under ~alice/www/ instead
    python -m simplehttpd -u -U www

    # Show dotfiles, handle connections one at a time
    python -m simplehttpd -a -w 0

=============================================================================
WHERE SETTINGS COME FROM
=============================================================================

    command-line flag  >  SIMPLEHTTPD_* environment variable  >  default

MIME types: built-in table, then /etc/mime.types, then ~/.mime.types,
then each -m file in order. Later entries win.

=============================================================================
"""

import argparse
import dataclasses
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .core import ListenerError
from .http.mime_types import SYSTEM_MIME_FILES, load_mime_types
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simplehttpd",
        description="Minimal static file HTTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  simplehttpd                          # Serve ~/public_html or . on port 8001
  simplehttpd -d ./site -p 8080        # Custom root and port
  simplehttpd -l 0.0.0.0               # IPv4 only, all interfaces
  simplehttpd -u                       # Enable /~user/ directories
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "-d", "--docroot",
        metavar="PATH",
        help="Document root (default: ~/public_html if it exists, else .)"
    )

    parser.add_argument(
        "-a", "--all",
        action="store_true",
        help="Show dotfiles in directory listings"
    )

    parser.add_argument(
        "-i", "--index",
        action="append",
        metavar="NAME",
        help="Index file name, repeatable (default: index.html, index.htm)"
    )

    parser.add_argument(
        "-m", "--mime-types",
        action="append",
        default=[],
        metavar="FILE",
        help="Extra mime.types file, repeatable"
    )

    # ─────────────────────────────────────────────────────────────────────
    # USERDIR
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "-u", "--userdir",
        action="store_true",
        help="Serve /~user/ from each user's home directory"
    )

    parser.add_argument(
        "-U", "--userdir-suffix",
        metavar="NAME",
        help="Directory inside the home directory (default: public_html)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "-l", "--listen",
        metavar="ADDR",
        help="Address to bind to; contains ':' for IPv6 (default: ::)"
    )

    parser.add_argument(
        "-p", "--port",
        type=int,
        help="Port to listen on (default: 8001)"
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        help="Worker threads, 0 = handle connections one by one (default: 3)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # HARDENING / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Refuse targets whose real path is outside the serving root"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic logging level (default: INFO)"
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"simplehttpd {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Layer command-line flags over the environment-based config.

    Raises:
        ValueError: For bad environment values (e.g. SIMPLEHTTPD_PORT=abc).
    """
    config = ServerConfig.from_env()
    overrides = {}

    if args.docroot is not None:
        overrides["document_root"] = args.docroot
    if args.all:
        overrides["hide_dotfiles"] = False
    if args.index:
        overrides["index_files"] = tuple(args.index)
    if args.userdir:
        overrides["userdir_enabled"] = True
    if args.userdir_suffix is not None:
        overrides["userdir_suffix"] = args.userdir_suffix
    if args.listen is not None:
        overrides["host"] = args.listen
    if args.port is not None:
        overrides["port"] = args.port
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.strict:
        overrides["strict_paths"] = True
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    overrides["mime_types"] = load_mime_types([*SYSTEM_MIME_FILES, *args.mime_types])

    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the server until interrupted.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 on a bad
        configuration or a listening socket that cannot be set up.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"simplehttpd: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except ListenerError as e:
        print(f"{e.stage}: {e.strerror} [{e.errno}]", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
