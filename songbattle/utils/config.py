"""
Runtime configuration for Song Battle.

Values come from environment variables and are overridden by command line
flags in the entry scripts. Rating and matchmaking constants live in
``songbattle.utils.constants`` and are deliberately not configurable.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_DATA_DIR = "data"
DEFAULT_LEADERBOARD_SIZE = 10

ENV_DATA_DIR = "SONGBATTLE_DATA_DIR"
ENV_SEED = "SONGBATTLE_SEED"
ENV_AVOID_RECENT = "SONGBATTLE_AVOID_RECENT"
ENV_EXPORT_DIR = "SONGBATTLE_EXPORT_DIR"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class SongBattleConfig:
    """Configuration shared by the terminal and web front ends."""
    data_dir: str = DEFAULT_DATA_DIR
    seed: Optional[int] = None
    avoid_recent: bool = False
    export_dir: Optional[str] = None
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE

    def __post_init__(self):
        if not self.export_dir:
            self.export_dir = str(Path(self.data_dir) / "exports")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "SongBattleConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            SongBattleConfig with unset values left at their defaults

        Raises:
            ValueError: If SONGBATTLE_SEED is not an integer
        """
        environ = os.environ if environ is None else environ

        seed = environ.get(ENV_SEED)
        if seed is not None and seed.strip():
            try:
                seed = int(seed)
            except ValueError:
                raise ValueError(f"{ENV_SEED} must be an integer, got {seed!r}")
        else:
            seed = None

        avoid_recent = environ.get(ENV_AVOID_RECENT, "").strip().lower() in _TRUE_VALUES

        return cls(
            data_dir=environ.get(ENV_DATA_DIR) or DEFAULT_DATA_DIR,
            seed=seed,
            avoid_recent=avoid_recent,
            export_dir=environ.get(ENV_EXPORT_DIR) or None,
        )
