"""
Export module for writing rankings out as playlists.
"""

from songbattle.export.playlist import (
    PlaylistExporter, PlaylistInfo, RECOMMENDED_LIMITS,
    validate_export_limit, recommended_limit,
)

__all__ = [
    'PlaylistExporter',
    'PlaylistInfo',
    'RECOMMENDED_LIMITS',
    'validate_export_limit',
    'recommended_limit',
]
