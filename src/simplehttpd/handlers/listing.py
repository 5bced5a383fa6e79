"""
=============================================================================
DIRECTORY LISTINGS
=============================================================================

Builds the auto-generated index page for a directory with no index file.

=============================================================================
TWO STEPS: LIST, THEN RENDER
=============================================================================

    list_directory("/srv/www/docs", hide_dotfiles=True)
        │
        │   readdir → "..", "b.txt", "img", "a.txt", ".git", "latest"
        │   drop "." and (when hiding) dotfiles other than ".."
        │   classify by what the entry (or its link target) is
        │   sort each group on its own
        ▼
    DirectoryListing(
        directories=["..", "img", "latest"],     "latest" → "img" (symlink)
        files=["a.txt", "b.txt"],
    )
        │
        ▼
    render_listing(listing, "/docs/")  →  HTML bytes

Directories always come first. ".." is always present (even at the
document root) and is labelled "(parent directory)".

Errors on a single entry (unreadable link, failed stat) only drop that
entry's annotation. The listing as a whole only fails if the directory
itself cannot be read.

=============================================================================
"""

import html
import os
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote_plus

from ..core.connection import LINE_ENCODING
from ..resolver import follow_symlink


PARENT_ENTRY = ".."
PARENT_LABEL = "(parent directory)"


@dataclass
class ListingEntry:
    """
    One row of a listing.

    Attributes:
        name: Entry name inside the directory.
        link_target: Raw readlink() result when the entry is a symlink.
        size: Size in bytes (files only), None if unknown or zero.
    """
    name: str
    link_target: Optional[str] = None
    size: Optional[int] = None


@dataclass
class DirectoryListing:
    """Directories and files of one directory, each sorted by name."""
    directories: List[ListingEntry] = field(default_factory=list)
    files: List[ListingEntry] = field(default_factory=list)


def _read_link(path: str) -> Optional[str]:
    if not os.path.islink(path):
        return None
    try:
        return os.readlink(path) or None
    except OSError:
        return None


def _file_size(path: str) -> Optional[int]:
    try:
        return os.path.getsize(path) or None
    except OSError:
        return None


def list_directory(path: str, hide_dotfiles: bool = True, max_hops: int = 32) -> DirectoryListing:
    """
    Enumerate and classify the entries of a directory.

    Args:
        path: Directory to list.
        hide_dotfiles: Skip names starting with "." (".." is always kept).
        max_hops: Symlink hop limit used when classifying links.

    Returns:
        DirectoryListing with both groups sorted by code point.

    Raises:
        OSError: If the directory itself cannot be read.
    """
    names = [PARENT_ENTRY] + os.listdir(path)
    directories = []
    files = []

    for name in names:
        if hide_dotfiles and name.startswith(".") and name != PARENT_ENTRY:
            continue

        entry_path = os.path.join(path, name)
        entry = ListingEntry(name=name, link_target=_read_link(entry_path))

        if os.path.isdir(entry_path) or os.path.isdir(follow_symlink(entry_path, max_hops)):
            directories.append(entry)
        else:
            entry.size = _file_size(entry_path)
            files.append(entry)

    directories.sort(key=lambda e: e.name)
    files.sort(key=lambda e: e.name)

    return DirectoryListing(directories=directories, files=files)


# =============================================================================
# RENDERING
# =============================================================================

_PAGE_HEAD = """\
<!DOCTYPE html>
<html>
<head>
\t<meta http-equiv="Content-Type" content="text/html; charset=utf-8" />
\t<title>index: {title}</title>
\t<style type="text/css">
\ta {{ font-family: monospace; text-decoration: none; }}
\t.symlink, .size {{ color: gray; }}
\tfooter {{ font-size: smaller; color: gray; }}
\t</style>
</head>
<body>
<h1>{title}</h1>
<ul>
"""

_PAGE_TAIL = """\
</ul>
<hr/>
<footer><p>{footer}</p></footer>
</body>
</html>
"""


def _symlink_note(entry: ListingEntry) -> str:
    if not entry.link_target:
        return ""
    return f' <span class="symlink">→ {html.escape(entry.link_target)}</span>'


def render_entry(entry: ListingEntry, is_directory: bool) -> str:
    """Render one <li> line."""
    anchor = quote_plus(os.fsencode(entry.name))

    if is_directory:
        label = PARENT_LABEL if entry.name == PARENT_ENTRY else html.escape(entry.name)
        text = f'<a href="{anchor}/">{label}/</a>' + _symlink_note(entry)
    else:
        text = f'<a href="{anchor}">{html.escape(entry.name)}</a>' + _symlink_note(entry)
        if entry.size:
            text += f' <span class="size">({entry.size})</span>'

    return f"\t<li>{text}</li>\n"


def _request_text(request_path: str) -> str:
    """Turn request bytes carried as latin-1 text back into UTF-8 text."""
    try:
        raw = request_path.encode(LINE_ENCODING)
    except UnicodeEncodeError:
        return request_path
    return raw.decode("utf-8", errors="surrogateescape")


def render_listing(listing: DirectoryListing, request_path: str, footer: str = "simplehttpd") -> bytes:
    """
    Render a listing as an HTML page.

    Args:
        listing: Output of list_directory().
        request_path: Path as requested, one character per request byte
                      (used, escaped, as the title).
        footer: Text for the page footer.

    Returns:
        UTF-8 encoded page. Undecodable file names are passed through
        byte for byte.
    """
    title = html.escape(_request_text(request_path))
    parts = [_PAGE_HEAD.format(title=title)]
    parts.extend(render_entry(entry, True) for entry in listing.directories)
    parts.extend(render_entry(entry, False) for entry in listing.files)
    parts.append(_PAGE_TAIL.format(footer=html.escape(footer)))
    return "".join(parts).encode("utf-8", errors="surrogateescape")
