"""
Constants for the Song Battle rating and matchmaking engine.
"""

APP_NAME = "Song Battle"
APP_VERSION = "1.0.0"
DB_NAME = "songbattle.db"

# Elo
INITIAL_ELO = 1200
ELO_SCALE = 400.0

# K-factor tiers, keyed on the track's total battles before the duel
MAX_K = 32  # fewer than NEW_TRACK_THRESHOLD battles
MID_K = 24  # between the two thresholds
MIN_K = 16  # EXPERIENCED_TRACK_THRESHOLD battles or more
NEW_TRACK_THRESHOLD = 10
EXPERIENCED_TRACK_THRESHOLD = 30

# Matchmaking
ELO_RANGE = 100               # acceptable Elo difference for a balanced duel
EXPLORATION_RATE = 0.15       # chance of an exploration duel in a mature pool
MIN_BATTLES_FOR_BALANCE = 5   # below this a track is "underplayed"
UNDERPLAYED_MAJORITY = 0.5    # share of underplayed tracks that forces exploration
RECENT_OPPONENTS_LIMIT = 3

# Match quality thresholds (absolute Elo difference)
QUALITY_PERFECT = 25
QUALITY_EXCELLENT = 50
QUALITY_GOOD = ELO_RANGE
QUALITY_AVERAGE = 200

# Duel outcomes
OUTCOME_LEFT = "left"
OUTCOME_RIGHT = "right"
OUTCOME_DRAW = "draw"
OUTCOME_SKIP = "skip"
OUTCOME_NAMES = [OUTCOME_LEFT, OUTCOME_RIGHT, OUTCOME_DRAW, OUTCOME_SKIP]

# Meta keys
META_APP_VERSION = "app_version"
META_LAST_IMPORT = "last_import"
META_LAST_EXPORT = "last_export"

# Export
MAX_EXPORT_LIMIT = 1000
EXPORT_FORMATS = ["json", "m3u"]
