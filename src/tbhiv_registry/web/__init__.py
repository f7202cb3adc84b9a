"""Web module.

This module provides the Flask HTTP surface for import, export and listing.
"""

from tbhiv_registry.web.app import create_app, run_server

__all__ = ["create_app", "run_server"]
