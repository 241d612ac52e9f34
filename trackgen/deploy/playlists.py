"""Auto-playlist assignment: add a catalog entry to the collections mapped to its style x mood."""

from __future__ import annotations

import logging

from trackgen.catalog.base import Catalog
from trackgen.presets import PresetConfig, style_mood_key
from trackgen.schemas.models import PlaylistAssignment

logger = logging.getLogger(__name__)


def assign_to_playlists(
    catalog: Catalog,
    presets: PresetConfig,
    entry_id: str,
    style: str | None,
    mood: str | None,
) -> PlaylistAssignment:
    """Append the entry to every mapped public collection it is not already in.

    Never raises; an internal failure returns ``success=False`` with whatever
    was added before it happened.
    """
    result = PlaylistAssignment()
    if not style and not mood:
        return result

    key = style_mood_key(style, mood)
    try:
        collection_ids = presets.collections_for(style, mood)
        if not collection_ids:
            logger.debug("No playlist mapping for %s", key)
            return result

        public = [c for c in catalog.get_collections(collection_ids) if c.is_public]
        for collection in public:
            if catalog.is_member(collection.id, entry_id):
                continue
            position = (catalog.max_position(collection.id) or 0) + 1
            catalog.append_to_collection(collection.id, entry_id, position)
            result.count += 1
            result.names.append(collection.name)
        if result.count:
            logger.info("Added %s to playlists: %s", entry_id, ", ".join(result.names))
    except Exception as e:
        logger.error("Playlist assignment for %s (%s) failed: %s", entry_id, key, e)
        result.success = False
    return result
