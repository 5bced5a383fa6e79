"""
=============================================================================
MIME TYPE TABLE
=============================================================================

Maps file extensions to the Content-Type sent with a file.

=============================================================================
WHERE THE TABLE COMES FROM
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │                    TABLE LAYERS (lowest first)                     │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  1. DEFAULT_MIME_TYPES     built into this module                  │
    │  2. /etc/mime.types        system-wide table, if readable          │
    │  3. ~/.mime.types          per-user table, if readable             │
    │  4. --mime-types FILE      anything passed on the command line     │
    │                                                                     │
    │  Later layers override earlier ones, extension by extension.       │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

A mime.types file is a list of lines:

    # comment
    text/html                   html htm
    application/x-tar           tar tgz

The first word is the type, every following word an extension that maps
to it. Blank lines, comments and lines starting with a space are skipped.

=============================================================================
EXTENSIONS
=============================================================================

The extension is whatever follows the LAST dot of the file name:

    report.html     → "html"
    archive.tar.gz  → "gz"   (handled specially, see get_content_type)
    README          → None   (no dot, no extension)
    .profile        → "profile"

Lookups are case-sensitive: "PNG" and "png" are different keys.

=============================================================================
"""

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Extensions are stored WITHOUT the leading dot.
#
# =============================================================================

DEFAULT_MIME_TYPES = {
    "css": "text/css",
    "gif": "image/gif",
    "htm": "text/html",
    "html": "text/html",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "js": "text/javascript",
    "m4a": "audio/mp4",
    "m4v": "video/mp4",
    "mp4": "application/mp4",
    "oga": "audio/ogg",
    "ogg": "audio/ogg",
    "ogv": "video/ogg",
    "ogm": "application/ogg",
    "png": "image/png",
    "tgz": "application/x-tar",
}

# Sent for files whose extension is missing or unknown
DEFAULT_MIME_TYPE = "text/plain"

# Files the command line loads on top of DEFAULT_MIME_TYPES
SYSTEM_MIME_FILES = ("/etc/mime.types", "~/.mime.types")

GZIP_EXTENSION = "gz"


# =============================================================================
# LOADING
# =============================================================================

def parse_mime_types(lines: Iterable[str]) -> dict[str, str]:
    """
    Parse the lines of a mime.types file.

    Args:
        lines: Raw lines (with or without trailing newlines).

    Returns:
        Dictionary of extension → type.

    Examples:
        >>> parse_mime_types(["text/html html htm", "# note", ""])
        {'html': 'text/html', 'htm': 'text/html'}
    """
    table: dict[str, str] = {}
    for line in lines:
        line = line.rstrip()
        if not line or line[0] == " " or line[0] == "#":
            continue
        mime_type, *extensions = line.split()
        for ext in extensions:
            table[ext] = mime_type
    return table


def load_mime_types(
    paths: Iterable[str | Path],
    base: Optional[Mapping[str, str]] = None,
) -> Mapping[str, str]:
    """
    Build a read-only MIME table from one or more mime.types files.

    Missing or unreadable files are skipped. A server with only the
    built-in table is still a working server.

    Args:
        paths: Files to read, in order. "~" is expanded.
        base: Starting table. Defaults to DEFAULT_MIME_TYPES.

    Returns:
        Immutable mapping of extension → type.
    """
    table = dict(DEFAULT_MIME_TYPES if base is None else base)

    for path in paths:
        path = os.path.expanduser(str(path))
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as fh:
                entries = parse_mime_types(fh)
        except OSError as e:
            logger.debug(f"Skipping MIME types file {path}: {e}")
            continue
        logger.debug(f"Loaded {len(entries)} MIME types from {path}")
        table.update(entries)

    return MappingProxyType(table)


def default_mime_types() -> Mapping[str, str]:
    """Get a read-only copy of the built-in table."""
    return MappingProxyType(dict(DEFAULT_MIME_TYPES))


# =============================================================================
# LOOKUP
# =============================================================================

def get_extension(filename: str | Path) -> Optional[str]:
    """
    Get the extension of a file name (text after the last dot).

    Returns None when the base name has no dot at all.
    """
    name = os.path.basename(str(filename))
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1]


def get_content_type(
    path: str | Path,
    table: Mapping[str, str],
    default: str = DEFAULT_MIME_TYPE,
) -> Tuple[str, Optional[str]]:
    """
    Get the Content-Type (and Content-Encoding, if any) for a file.

    =========================================================================
    GZIP SPECIAL CASE
    =========================================================================

    A pre-compressed file is served as-is with Content-Encoding: gzip,
    and the type is taken from the extension BEFORE ".gz":

        page.html.gz  → ("text/html", "gzip")
        bundle.tgz    → ("application/x-tar", None)
        data.gz       → ("text/plain", "gzip")

    =========================================================================

    Args:
        path: File path or name.
        table: Extension → type mapping.
        default: Type for unknown extensions.

    Returns:
        (content_type, content_encoding) where content_encoding is None
        unless the file is gzip-compressed.
    """
    name = os.path.basename(str(path))
    extension = get_extension(name)
    encoding = None

    if extension == GZIP_EXTENSION:
        encoding = "gzip"
        extension = get_extension(name[: -len(GZIP_EXTENSION) - 1])

    if extension is None:
        return default, encoding

    return table.get(extension, default), encoding
