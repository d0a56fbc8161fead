#!/usr/bin/env python3
"""
Main script to rank a music collection through duels in the terminal.

Usage:
    python main.py [--data-dir DIR] [--import FILE] [--seed N] [--top N]

Examples:
    python main.py --import top_tracks.json   # Import tracks, then start dueling
    python main.py --top 20                   # Print the top 20 and exit
    python main.py --seed 42 --avoid-recent   # Reproducible pairings
"""
import argparse
import logging
import random
import sys

from songbattle.utils.config import SongBattleConfig
from songbattle.utils.constants import APP_NAME, APP_VERSION, META_APP_VERSION
from songbattle.ranking.elo import EloEngine
from songbattle.ranking.errors import InsufficientDataError
from songbattle.ranking.matchmaker import Matchmaker
from songbattle.ranking.models import Outcome
from songbattle.ranking.storage import RatingStorage
from songbattle.ranking.display import (
    format_audio_features, format_leaderboard, format_match, format_elo_change,
    format_preview, format_stats,
)
from songbattle.catalog.importer import load_catalog_file, import_tracks

# Keyboard input -> duel outcome
OUTCOME_KEYS = {
    '1': Outcome.LEFT,
    '2': Outcome.RIGHT,
    'd': Outcome.DRAW,
    's': Outcome.SKIP,
}

HELP_TEXT = ("[1] left wins  [2] right wins  [d] draw  [s] skip  "
             "[r] ranking  [i] stats  [a] audio  [q] quit")


def parse_args(argv=None):
    """Parse command line arguments."""
    env = SongBattleConfig.from_env()

    parser = argparse.ArgumentParser(
        description=f'{APP_NAME} - rank your music through pairwise duels.'
    )
    parser.add_argument(
        '--data-dir',
        type=str, default=env.data_dir,
        help=f'Directory holding the database (default: {env.data_dir})'
    )
    parser.add_argument(
        '--import', dest='import_file',
        type=str, default=None,
        help='Import tracks from a catalog JSON file before starting'
    )
    parser.add_argument(
        '--seed',
        type=int, default=env.seed,
        help='Random seed for reproducible pairings'
    )
    parser.add_argument(
        '--avoid-recent',
        action='store_true', default=env.avoid_recent,
        help="Avoid each track's last opponents in balanced duels"
    )
    parser.add_argument(
        '--top',
        type=int, default=None,
        help='Print the top N tracks and exit'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--version',
        action='version', version=f'{APP_NAME} v{APP_VERSION}'
    )

    return parser.parse_args(argv)


def run_import(storage: RatingStorage, path: str):
    """Import a catalog file and report what was added."""
    tracks = load_catalog_file(path)
    summary = import_tracks(storage, tracks, source=path)
    print(f"Imported {summary.added_count} tracks ({summary.skipped_count} already present)")


def play_duel(engine: EloEngine, matchmaker: Matchmaker, leaderboard_size: int = 10) -> bool:
    """
    Run a single duel.

    Returns:
        False when the user asked to quit
    """
    left, right = matchmaker.next_match()
    quality = matchmaker.match_quality(left, right)

    print()
    print(format_match(left, right, quality))
    print(format_preview(
        engine.simulate_outcome(left.track_id, right.track_id, Outcome.LEFT),
        engine.simulate_outcome(left.track_id, right.track_id, Outcome.RIGHT),
    ))

    while True:
        choice = input(f"{HELP_TEXT}\n> ").strip().lower()

        if choice == 'q':
            return False
        if choice == 'r':
            print(format_leaderboard(engine.current_ranking(leaderboard_size)))
            continue
        if choice == 'i':
            print(format_stats(engine.get_stats(), matchmaker.get_matchmaking_stats()))
            continue
        if choice == 'a':
            print(format_audio_features(left.track))
            print(format_audio_features(right.track))
            continue
        if choice in OUTCOME_KEYS:
            break
        print(f"Unknown choice: {choice!r}")

    result = engine.process_outcome(left.track_id, right.track_id, OUTCOME_KEYS[choice])
    if result.outcome is Outcome.SKIP:
        print("Skipped.")
    else:
        print(format_elo_change(result.left, left.track.name))
        print(format_elo_change(result.right, right.track.name))
    return True


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    config = SongBattleConfig(
        data_dir=args.data_dir, seed=args.seed, avoid_recent=args.avoid_recent
    )
    storage = RatingStorage(config.data_dir)
    storage.set_meta(META_APP_VERSION, APP_VERSION)

    if args.import_file:
        try:
            run_import(storage, args.import_file)
        except (OSError, ValueError) as e:
            print(f"Error: could not import {args.import_file}: {e}")
            return 1

    engine = EloEngine(storage)

    if args.top is not None:
        if args.top < 1:
            print("Error: --top must be at least 1")
            return 1
        print(format_leaderboard(engine.current_ranking(args.top), title=f"TOP {args.top}"))
        return 0

    matchmaker = Matchmaker(
        storage,
        rng=random.Random(config.seed),
        avoid_recent=config.avoid_recent
    )

    print(f"{APP_NAME} v{APP_VERSION}")
    try:
        while play_duel(engine, matchmaker, config.leaderboard_size):
            pass
    except InsufficientDataError as e:
        print(f"Error: {e}")
        print("Import tracks first: python main.py --import tracks.json")
        return 1
    except (KeyboardInterrupt, EOFError):
        print()

    size = config.leaderboard_size
    print(format_leaderboard(engine.current_ranking(size), title=f"TOP {size}"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
