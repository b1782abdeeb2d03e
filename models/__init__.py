"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.wardrobe_item import MalformedRecordError, WardrobeItem, from_raw_metadata

__all__ = ["WardrobeItem", "MalformedRecordError", "from_raw_metadata"]
