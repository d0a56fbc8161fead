#!/usr/bin/env python3
"""
Export the Song Battle ranking as a playlist file.

Usage:
    python scripts/export_playlist.py --top 50 --format m3u

Examples:
    # Top 25 as JSON
    python scripts/export_playlist.py --size small

    # Everything rated between 1250 and 1400
    python scripts/export_playlist.py --min-elo 1250 --max-elo 1400 --name "Solid picks"

    # A hand-picked selection, in order
    python scripts/export_playlist.py --tracks 12 4 31 --format m3u
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from songbattle.utils.config import SongBattleConfig
from songbattle.utils.constants import EXPORT_FORMATS
from songbattle.ranking.storage import RatingStorage
from songbattle.export.playlist import (
    PlaylistExporter, RECOMMENDED_LIMITS, recommended_limit
)


def parse_args():
    """Parse command line arguments."""
    env = SongBattleConfig.from_env()

    parser = argparse.ArgumentParser(
        description='Export the Song Battle ranking as a playlist.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Playlist sizes:
  small   25 tracks
  medium  50 tracks
  large   100 tracks
  max     500 tracks
'''
    )

    selection = parser.add_mutually_exclusive_group(required=True)
    selection.add_argument(
        '--top', '-n',
        type=int,
        help='Export the top N tracks (1-1000)'
    )
    selection.add_argument(
        '--size',
        choices=sorted(RECOMMENDED_LIMITS),
        help='Export a recommended number of top tracks'
    )
    selection.add_argument(
        '--min-elo',
        type=int,
        help='Lower Elo bound (requires --max-elo)'
    )
    selection.add_argument(
        '--tracks',
        type=int, nargs='+',
        help='Track ids to export, in order'
    )

    parser.add_argument(
        '--max-elo',
        type=int, default=None,
        help='Upper Elo bound for --min-elo'
    )
    parser.add_argument(
        '--name',
        type=str, default='',
        help='Playlist name (generated if not specified)'
    )
    parser.add_argument(
        '--format', '-f',
        choices=EXPORT_FORMATS, default='json',
        help='Output format (default: json)'
    )
    parser.add_argument(
        '--data-dir',
        type=str, default=env.data_dir,
        help=f'Directory holding the database (default: {env.data_dir})'
    )
    parser.add_argument(
        '--output-dir', '-o',
        type=str, default=None,
        help='Directory for the playlist file (default: <data-dir>/exports)'
    )

    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.min_elo is not None and args.max_elo is None:
        print("Error: --min-elo requires --max-elo")
        return 1

    config = SongBattleConfig(data_dir=args.data_dir, export_dir=args.output_dir)
    exporter = PlaylistExporter(RatingStorage(config.data_dir), output_dir=config.export_dir)

    try:
        if args.tracks:
            info = exporter.export_custom(args.tracks, name=args.name, fmt=args.format)
        elif args.min_elo is not None:
            info = exporter.export_by_elo_range(
                args.min_elo, args.max_elo, name=args.name, fmt=args.format
            )
        else:
            limit = args.top if args.top is not None else recommended_limit(args.size)
            info = exporter.export_top_tracks(limit, name=args.name, fmt=args.format)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(info.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
