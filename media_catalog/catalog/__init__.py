"""
Generic catalog machinery.

One repository, service and router implementation, parameterised by an
EntityFamily descriptor per media type (see catalog.families).
"""

from media_catalog.catalog.families import FAMILIES, get_family
from media_catalog.catalog.family import EntityFamily, MatchMode

__all__ = ["EntityFamily", "MatchMode", "FAMILIES", "get_family"]
