"""
Shared constants and configuration for Song Battle.
"""

from songbattle.utils.config import SongBattleConfig

__all__ = ['SongBattleConfig']
