"""Normalized source observations ("records") published to consumers.

Each source adapter turns its upstream payload into one of the frozen
Pydantic v2 models below.  A record carries two kinds of fields:

- **identity fields** -- the subset whose change is material for caching
  (``title``/``author`` of the current book, ``track_id``/``is_playing`` of
  the playback item).  Only these are compared by the equality policies in
  ``src/services/equality.py``.
- **display fields** -- cover art, links, album names.  Upstream churns these
  freely (CDN URLs rotate, image sizes change), so they never trigger a
  cache write on their own.

Records serialize to the exact JSON shapes the frontends already consume,
via :meth:`to_public`.  The ``kind`` field is a discriminator used only to
round-trip records through the cache store; it is stripped from public
output.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Reading list (RSS shelf feed)
# ---------------------------------------------------------------------------

class Book(BaseModel):
    """A single book on a reading-list shelf."""

    model_config = ConfigDict(frozen=True)

    title: str                  # identity
    author: str                 # identity
    cover: str = ""             # Large cover image URL
    link: str = ""              # Review / book page URL


class ShelfRecord(BaseModel):
    """Snapshot of a shelf: the book being read now and the one before it.

    Identity is the ``current`` book's title and author.  ``previous`` is
    display-only: a change further down the shelf is not worth a write.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["reading_list"] = "reading_list"
    current: Book
    previous: Book | None = None

    def identity_key(self) -> tuple[str, str]:
        return (self.current.title, self.current.author)

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"kind"})


# ---------------------------------------------------------------------------
# Playback (music / podcast player)
# ---------------------------------------------------------------------------

class PlaybackRecord(BaseModel):
    """The item a music player is playing now, or played most recently.

    ``is_playing`` is part of the identity: pausing or resuming the same
    track is a user-visible change and must be surfaced.  The public JSON
    uses the camelCase keys the player widget already reads
    (``trackId``, ``isPlaying``, ``albumArt``, ``songUrl``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["playback"] = "playback"
    track_id: str = Field(alias="trackId")
    is_playing: bool = Field(alias="isPlaying")
    title: str = "Unknown Title"
    artist: str = "Unknown Artist"
    album: str = "Unknown Album"
    album_art: str = Field(default="", alias="albumArt")
    song_url: str = Field(default="", alias="songUrl")
    type: Literal["track", "episode"] = "track"

    def identity_key(self) -> tuple[str, bool]:
        return (self.track_id, self.is_playing)

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"kind"})


# The discriminator lets a stored CacheEntry deserialize into the right
# record class without the store knowing which source it belongs to.
Record = Annotated[Union[ShelfRecord, PlaybackRecord], Field(discriminator="kind")]
