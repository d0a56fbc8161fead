"""
Web interface module for Song Battle.

Provides FastAPI-based web server for:
- Serving the next duel with its projected rating changes
- Recording duel outcomes
- Browsing the ranking, statistics and duel history
- Exporting playlists
"""
