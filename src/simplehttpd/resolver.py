"""
=============================================================================
PATH RESOLUTION
=============================================================================

Maps a raw request path to a filesystem target and decides what kind of
response it gets.

=============================================================================
THE PIPELINE
=============================================================================

    "/docs/../img/a%20b.png?size=2"
        │
        ├──► 1. must start with "/"               else 400
        ├──► 2. split off the query               "/docs/../img/a%20b.png"
        ├──► 3. percent-decode                    "/docs/../img/a b.png"
        ├──► 4. collapse dot segments             "/docs/img/a b.png"
        ├──► 5. userdir rewrite (/~user/...)
        ├──► 6. join to the root                  "/srv/www/docs/img/a b.png"
        ├──► 7. directory without "/"             301 to path + "/"
        ├──► 8. directory → first index file
        ├──► 9. follow symlinks (32 hops max)
        └──► 10. classify                         200 / 403 / 404

=============================================================================
SECURITY: THE DOT-SEGMENT COLLAPSE IS TEXTUAL
=============================================================================

Step 4 does NOT compute what ".." would mean on disk. It repeatedly
replaces every "/../" and "/./" with "/" and trims a trailing "/.." or
"/." by one level:

    /a/../b      → /a/b        (".." is dropped, not applied!)
    /../../etc   → /etc
    /a/..        → /a/
    /a/./b/.     → /a/b/

Because the collapse runs on the VIRTUAL path, before the root is
prepended, a ".." can never climb out of the root through the request
path itself. It is still not a containment proof: symlinks inside the
root can point anywhere, and odd inputs may survive the collapse.
strict_paths adds the real check:

    realpath(target) must be inside realpath(root)   else 403

A target that does not exist is left to classification (404) so the
answer for a missing path is the same with or without strict_paths.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import unquote_to_bytes

try:
    import pwd
except ImportError:  # not available on Windows
    pwd = None

from .config import ServerConfig
from .core.connection import LINE_ENCODING
from .http.mime_types import get_content_type
from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

DIRECTORY_CONTENT_TYPE = "text/html"


class TargetKind(Enum):
    """What the request handler should do with a resolved target."""
    FILE = "file"            # Stream the file
    DIRECTORY = "directory"  # Render a listing
    REDIRECT = "redirect"    # 301 to location
    ERROR = "error"          # Error page with status


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Result of resolving one request path.

    Attributes:
        kind: Which response branch to take.
        status: Status code for the response.
        path: Filesystem path the decision was made on. Set for every
              kind except a 400 on a path without a leading "/".
        content_type: Content-Type for FILE and DIRECTORY.
        content_encoding: "gzip" for pre-compressed files, else None.
        location: Redirect target for REDIRECT.
    """

    kind: TargetKind
    status: int
    path: Optional[str] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    location: Optional[str] = None


# =============================================================================
# PATH HELPERS
# =============================================================================

def split_query(raw_path: str) -> Tuple[str, str]:
    """Split "/a?b=c" into ("/a", "b=c") at the first "?"."""
    path, _, query = raw_path.partition("?")
    return path, query


def percent_decode(path: str) -> str:
    """
    Decode %XX escapes and "+" (form encoding) into a filesystem path.

    The request path arrives as latin-1 text (one character per byte).
    Decoding works on those bytes, and the result is turned into a str
    the same way the OS turns file names into str (os.fsdecode), so a
    UTF-8 name like "caf%C3%A9" finds the file "café".
    """
    try:
        raw = path.encode(LINE_ENCODING)
    except UnicodeEncodeError:
        raw = path.encode("utf-8")
    raw = raw.replace(b"+", b" ")
    return os.fsdecode(unquote_to_bytes(raw))


def collapse_dot_segments(path: str) -> str:
    """
    Remove "." and ".." segments textually.

    See the module docstring: this is a string rewrite, ".." is dropped
    rather than applied. Runs until nothing changes.

    Examples:
        >>> collapse_dot_segments("/a/../b")
        '/a/b'
        >>> collapse_dot_segments("/a/b/..")
        '/a/b/'
    """
    while True:
        before = path

        while "/../" in path:
            path = path.replace("/../", "/")
        while "/./" in path:
            path = path.replace("/./", "/")
        while path.endswith("/.."):
            path = path[:-2]
        while path.endswith("/."):
            path = path[:-1]

        if path == before:
            return path


def join_root(root: str, path: str) -> str:
    """Join an absolute virtual path onto a root directory."""
    return root.rstrip("/") + "/" + path.lstrip("/")


def user_home(username: str) -> Optional[str]:
    """Home directory of a local user, None if unknown or not a valid name."""
    if pwd is None or not username:
        return None
    try:
        return pwd.getpwnam(username).pw_dir
    except (KeyError, ValueError):
        # ValueError: embedded NUL
        return None


def follow_symlink(path: str, max_hops: int = 32) -> str:
    """
    Follow a chain of symbolic links to its end.

    Relative link targets are taken relative to the link's directory.
    After max_hops links, or if a link cannot be read, the current link
    path is returned as-is. This never fails.
    """
    hops = 0
    while os.path.islink(path):
        if hops >= max_hops:
            logger.debug(f"Symlink hop limit ({max_hops}) reached at {path}")
            return path
        try:
            target = os.readlink(path)
        except OSError:
            return path
        hops += 1

        if not target.startswith("/"):
            target = os.path.dirname(path) + "/" + target
        path = target

    return path


def is_within(path: str, base: str) -> bool:
    """True if the real path of path is base or lies below it."""
    try:
        real_path = os.path.realpath(path)
        real_base = os.path.realpath(base)
    except ValueError:
        return False  # embedded NUL
    return os.path.commonpath([real_path, real_base]) == real_base


# =============================================================================
# RESOLVER
# =============================================================================

class PathResolver:
    """
    Resolves request paths against one ServerConfig.

    Stateless apart from the read-only config, so a single instance is
    shared by all worker threads.

    Usage:
        resolver = PathResolver(config)
        target = resolver.resolve("/docs/")
        if target.kind is TargetKind.FILE:
            ...
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    def resolve(self, raw_path: str) -> ResolvedTarget:
        """
        Resolve a request path (as sent, still encoded) to a target.

        Args:
            raw_path: Path token from the request line.

        Returns:
            ResolvedTarget describing the response to send.
        """
        # ─────────────────────────────────────────────────────────────────
        # VIRTUAL PATH: validate, decode, collapse
        # ─────────────────────────────────────────────────────────────────
        if not raw_path.startswith("/"):
            return ResolvedTarget(TargetKind.ERROR, HTTPStatus.BAD_REQUEST)

        request_path, _ = split_query(raw_path)
        virtual_path = collapse_dot_segments(percent_decode(request_path))

        # ─────────────────────────────────────────────────────────────────
        # FILESYSTEM PATH
        # ─────────────────────────────────────────────────────────────────
        base, fs_path = self.map_to_filesystem(virtual_path)

        if os.path.isdir(fs_path) and not request_path.endswith("/"):
            return ResolvedTarget(
                TargetKind.REDIRECT,
                HTTPStatus.MOVED_PERMANENTLY,
                path=fs_path,
                location=request_path + "/",
            )

        if os.path.isdir(fs_path):
            fs_path = self._find_index(fs_path)

        fs_path = follow_symlink(fs_path, self.config.max_symlink_hops)

        if self.config.strict_paths and os.path.lexists(fs_path) and not is_within(fs_path, base):
            logger.warning(f"Path escapes {base}: {raw_path} -> {fs_path}")
            return ResolvedTarget(TargetKind.ERROR, HTTPStatus.FORBIDDEN, path=fs_path)

        return self._classify(fs_path)

    def map_to_filesystem(self, virtual_path: str) -> Tuple[str, str]:
        """
        Pick the serving root for a collapsed path and join onto it.

        /~alice/notes.txt  →  <alice's home>/<userdir_suffix>/notes.txt
        anything else      →  <document_root>/...

        An unknown user, or one without the userdir directory, falls back
        to the document root with the path taken literally.

        Returns:
            (root, filesystem path)
        """
        root = self.config.document_root

        if self.config.userdir_enabled and virtual_path.startswith("/~"):
            username, _, remainder = virtual_path[2:].lstrip("/").partition("/")
            home = user_home(username)
            if home is not None:
                user_root = join_root(home, self.config.userdir_suffix)
                if os.path.isdir(user_root):
                    return user_root, join_root(user_root, remainder)
            logger.debug(f"No userdir for {username!r}, using document root")

        return root, join_root(root, virtual_path)

    def _find_index(self, directory: str) -> str:
        """First configured index file that is a regular file, else the directory."""
        for name in self.config.index_files:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                return candidate
        return directory

    def _classify(self, fs_path: str) -> ResolvedTarget:
        """Turn the final filesystem path into a response decision."""
        exists = os.path.exists(fs_path)

        if exists and not os.access(fs_path, os.R_OK):
            return ResolvedTarget(TargetKind.ERROR, HTTPStatus.FORBIDDEN, path=fs_path)

        if os.path.isdir(fs_path):
            return ResolvedTarget(
                TargetKind.DIRECTORY,
                HTTPStatus.OK,
                path=fs_path,
                content_type=DIRECTORY_CONTENT_TYPE,
            )

        if os.path.isfile(fs_path):
            content_type, encoding = get_content_type(fs_path, self.config.mime_types)
            return ResolvedTarget(
                TargetKind.FILE,
                HTTPStatus.OK,
                path=fs_path,
                content_type=content_type,
                content_encoding=encoding,
            )

        if exists:
            # Device, socket, FIFO...
            return ResolvedTarget(TargetKind.ERROR, HTTPStatus.FORBIDDEN, path=fs_path)

        return ResolvedTarget(TargetKind.ERROR, HTTPStatus.NOT_FOUND, path=fs_path)
