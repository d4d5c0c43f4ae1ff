"""
scout: a schema-free item collection with background refresh and
case-insensitive property search.

Quick start:
    from scout import Scouter

    sc = Scouter()
    sc.start()
    for match in sc.find_by_value("red"):
        print(match.item.name, match.name)
"""

from .api import Scouter
from .errors import NotLoadedError, ScoutError, SyncError
from .index import PropertyIndex, build_property_index
from .types import Item, PropertyMatch, RefreshResult

__version__ = "0.1.0"

__all__ = [
    "Scouter",
    "Item",
    "PropertyMatch",
    "PropertyIndex",
    "RefreshResult",
    "build_property_index",
    "ScoutError",
    "NotLoadedError",
    "SyncError",
]
