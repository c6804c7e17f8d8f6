"""
Kimtex ERP Navigation Service
Blueprint registry and shared request helpers.
"""

from flask import current_app, g

from kimtex_nav.services.directory_service import DirectoryGateway


def get_directory() -> DirectoryGateway:
    """Directory gateway bound to the app's query cache, one per request."""
    directory = getattr(g, "_directory", None)
    if directory is None:
        directory = DirectoryGateway(current_app.extensions["query_cache"])
        g._directory = directory
    return directory
