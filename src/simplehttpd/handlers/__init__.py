"""
=============================================================================
HANDLERS MODULE
=============================================================================

    RequestHandler      reads one request, picks a branch, closes
    StaticFileHandler   200 responses for files and directories
    listing             builds and renders directory indexes

=============================================================================
"""

from .request_handler import RequestHandler
from .static import StaticFileHandler
from .listing import DirectoryListing, list_directory, render_listing

__all__ = [
    "RequestHandler",
    "StaticFileHandler",
    "DirectoryListing",
    "list_directory",
    "render_listing",
]
