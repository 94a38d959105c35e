"""Spotify playback adapter implementing ISourceAdapter.

Publishes what the account owner is listening to.  The "currently
playing" endpoint is queried first; only when it reports nothing active
(HTTP 204, an empty body, or no ``item``) does the adapter fall back to
the single most recent entry of the play history.  Both paths normalize
into the same :class:`PlaybackRecord`, distinguished by ``is_playing``.

Music tracks and podcast episodes have different payload shapes
(``artists``/``album`` vs ``show``/``images``); both are mapped onto the
same record fields.

Credentials are a long-lived refresh token plus client id/secret.  The
short-lived access token is cached in-process until shortly before it
expires, so a poll normally costs one or two API calls rather than three.

Any failure anywhere in the active -> recent sequence is raised as a
``FetchError``.  The adapter never returns ``None`` to mean "I failed";
that is what lets the caching core stale-serve consistently.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

import httpx

from src.interfaces.source_adapter import ISourceAdapter
from src.models.records import PlaybackRecord
from src.utils.errors import FetchError, ParseError
from src.utils.logging import get_logger

_TOKEN_ENDPOINT = "https://accounts.spotify.com/api/token"
_NOW_PLAYING_ENDPOINT = "https://api.spotify.com/v1/me/player/currently-playing"
_RECENTLY_PLAYED_ENDPOINT = "https://api.spotify.com/v1/me/player/recently-played"
_TOKEN_EXPIRY_MARGIN = 60.0  # seconds shaved off expires_in
_DEFAULT_TOKEN_LIFETIME = 3600


def _first_image_url(images: list[dict[str, Any]] | None) -> str:
    if not images:
        return ""
    return images[0].get("url") or ""


class SpotifyPlaybackAdapter(ISourceAdapter):
    """Source adapter for the Spotify Web API player endpoints.

    Parameters
    ----------
    http_client:
        Shared async HTTP client.
    client_id, client_secret:
        Spotify application credentials (HTTP Basic on the token endpoint).
    refresh_token:
        Refresh token granted with the ``user-read-currently-playing`` and
        ``user-read-recently-played`` scopes.
    clock:
        Monotonic clock used for access-token expiry.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http = http_client
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._clock = clock
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "spotify"

    # -- ISourceAdapter implementation -----------------------------------------

    async def fetch_latest(self) -> PlaybackRecord | None:
        access_token = await self._get_access_token()

        record = await self._get_now_playing(access_token)
        if record is None:
            self._logger.info("spotify_nothing_active_trying_recent")
            record = await self._get_recently_played(access_token)

        if record is not None:
            self._logger.info(
                "spotify_playback_fetched",
                track_id=record.track_id,
                title=record.title,
                is_playing=record.is_playing,
                type=record.type,
            )
        return record

    # -- Credentials -----------------------------------------------------------

    async def _get_access_token(self) -> str:
        """Return a cached access token, refreshing it when close to expiry."""
        if self._access_token and self._clock() < self._token_expires_at:
            return self._access_token

        try:
            response = await self._http.post(
                _TOKEN_ENDPOINT,
                data={"grant_type": "refresh_token", "refresh_token": self._refresh_token},
                auth=(self._client_id, self._client_secret),
            )
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"Token request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            self._logger.error("spotify_token_refresh_failed", status=response.status_code)
            raise FetchError(
                message=f"Failed to get access token: {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        payload = self._parse_json(response.text, "token")
        access_token = payload.get("access_token")
        if not access_token:
            raise ParseError(
                message="Token response has no access_token",
                provider_name=self.get_provider_name(),
            )

        expires_in = payload.get("expires_in") or _DEFAULT_TOKEN_LIFETIME
        self._access_token = access_token
        self._token_expires_at = self._clock() + max(float(expires_in) - _TOKEN_EXPIRY_MARGIN, 0.0)
        self._logger.info("spotify_token_refreshed", expires_in=expires_in)
        return access_token

    # -- Player endpoints ------------------------------------------------------

    async def _get(self, url: str, access_token: str, params: dict[str, Any]) -> httpx.Response:
        try:
            response = await self._http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"Spotify request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 401:
            # Revoked or expired early; force a refresh on the next poll.
            self._access_token = None
        return response

    async def _get_now_playing(self, access_token: str) -> PlaybackRecord | None:
        response = await self._get(
            _NOW_PLAYING_ENDPOINT, access_token, {"additional_types": "episode"}
        )
        if response.status_code == 204:
            return None
        if response.status_code != 200:
            self._logger.error("spotify_now_playing_http_error", status=response.status_code)
            raise FetchError(
                message=f"Spotify API error: {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        if not response.text or not response.text.strip():
            self._logger.warning("spotify_now_playing_empty_body")
            return None

        data = self._parse_json(response.text, "currently-playing")
        item = data.get("item")
        if not item:
            self._logger.warning(
                "spotify_now_playing_no_item",
                currently_playing_type=data.get("currently_playing_type"),
            )
            return None

        playing_type = data.get("currently_playing_type") or item.get("type")
        return self._record_from_item(
            item, is_playing=bool(data.get("is_playing")), playing_type=playing_type
        )

    async def _get_recently_played(self, access_token: str) -> PlaybackRecord | None:
        response = await self._get(_RECENTLY_PLAYED_ENDPOINT, access_token, {"limit": 1})
        if response.status_code != 200:
            self._logger.error("spotify_recently_played_http_error", status=response.status_code)
            raise FetchError(
                message=f"Spotify recently-played error: {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        data = self._parse_json(response.text, "recently-played")
        items = data.get("items") or []
        if not items:
            self._logger.warning("spotify_no_recent_items")
            return None

        item = items[0].get("track") or items[0].get("episode")
        if not item:
            return None
        return self._record_from_item(item, is_playing=False, playing_type=item.get("type"))

    # -- Normalization ---------------------------------------------------------

    @staticmethod
    def _record_from_item(
        item: dict[str, Any], *, is_playing: bool, playing_type: str | None
    ) -> PlaybackRecord:
        """Map a track or episode object onto a PlaybackRecord."""
        is_episode = playing_type == "episode" or (
            playing_type is None and not item.get("artists")
        )

        if is_episode:
            show = item.get("show") or {}
            artist = show.get("name") or "Unknown Podcast"
            album = show.get("name") or "Unknown Show"
            album_art = _first_image_url(item.get("images")) or _first_image_url(
                show.get("images")
            )
        else:
            names = [a.get("name") for a in item.get("artists") or [] if a.get("name")]
            artist = ", ".join(names) or "Unknown Artist"
            album_info = item.get("album") or {}
            album = album_info.get("name") or "Unknown Album"
            album_art = _first_image_url(album_info.get("images"))

        return PlaybackRecord(
            # Local files have no id; their uri is still stable.
            track_id=item.get("id") or item.get("uri") or "",
            is_playing=is_playing,
            title=item.get("name") or "Unknown Title",
            artist=artist,
            album=album,
            album_art=album_art,
            song_url=(item.get("external_urls") or {}).get("spotify") or "",
            type="episode" if is_episode else "track",
        )

    def _parse_json(self, text: str, what: str) -> dict[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            self._logger.error("spotify_invalid_json", endpoint=what, preview=text[:200])
            raise ParseError(
                message=f"Invalid JSON response from Spotify ({what})",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(data, dict):
            raise ParseError(
                message=f"Unexpected JSON shape from Spotify ({what})",
                provider_name=self.get_provider_name(),
            )
        return data
