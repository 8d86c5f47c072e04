"""
API route modules.

Import all route modules here for easy access.
"""

from media_catalog.api.routes import media

__all__ = ["media"]
