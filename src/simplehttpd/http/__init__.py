"""
HTTP protocol pieces.

    status_codes   codes and reason phrases
    mime_types     extension → Content-Type
    request        request line and raw header lines
    response       ResponseWriter

Only the two leaf modules are re-exported here; config imports this
package, so request and response (which need core) are imported by
their module paths.
"""

from .status_codes import HTTPStatus, reason_phrase
from .mime_types import get_content_type, load_mime_types, default_mime_types

__all__ = [
    "HTTPStatus",
    "reason_phrase",
    "get_content_type",
    "load_mime_types",
    "default_mime_types",
]
