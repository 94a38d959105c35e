"""Upstream source adapters.

Each adapter normalizes one slow external source into a record:
GoodreadsShelfAdapter (public RSS shelf feed) and SpotifyPlaybackAdapter
(player API with refresh-token credentials).
"""

from src.providers.source.goodreads_provider import GoodreadsShelfAdapter
from src.providers.source.spotify_provider import SpotifyPlaybackAdapter

__all__ = ["GoodreadsShelfAdapter", "SpotifyPlaybackAdapter"]
