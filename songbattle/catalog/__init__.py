"""
Catalog module for bringing tracks into the collection.
"""

from songbattle.catalog.importer import (
    ImportSummary, parse_track, load_catalog_file, import_tracks
)

__all__ = ['ImportSummary', 'parse_track', 'load_catalog_file', 'import_tracks']
