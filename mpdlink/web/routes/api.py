"""
REST API Routes for mpdlink.

Read-only resources:
- /api/status, /api/current-song, /api/stats
- /api/playlist (current queue), /api/playlists (stored playlists)
- /api/library, /api/search, /api/find

Actions:
- /api/playback, /api/seek, /api/volume, /api/playlist, /api/options

Every endpoint connects the session first if needed. MPD errors are mapped
to HTTP responses by the exception handlers installed in WebServer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException

from mpdlink.core.models import SearchField, Song

if TYPE_CHECKING:
    from mpdlink.client import MpdClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])

UNKNOWN_ALBUM = "Unknown Album"

PLAYBACK_ACTIONS = ("play", "pause", "stop", "next", "previous")
PLAYLIST_ACTIONS = ("add", "delete", "clear")
OPTION_NAMES = ("repeat", "random", "single", "consume")

# Reference set during route registration
_client: MpdClient | None = None


def register_api_routes(app, client: MpdClient) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        client: MpdClient the routes operate on
    """
    global _client
    _client = client
    app.include_router(router)


async def _connected_client() -> MpdClient:
    """Get the client, connecting its session if it is not connected yet."""
    if _client is None:
        raise HTTPException(status_code=503, detail="Server not initialized")
    await _client.connect()
    return _client


def _songs_payload(songs: list[Song]) -> dict[str, Any]:
    return {"count": len(songs), "songs": [song.to_dict() for song in songs]}


def group_by_album(songs: list[Song]) -> dict[str, list[dict[str, Any]]]:
    """Group songs by album name, in first-seen order."""
    albums: dict[str, list[dict[str, Any]]] = {}
    for song in songs:
        albums.setdefault(song.album or UNKNOWN_ALBUM, []).append(song.to_dict())
    return albums


def _require_int(body: dict[str, Any], key: str) -> int:
    value = body.get(key)
    if isinstance(value, bool) or value is None:
        raise HTTPException(status_code=400, detail=f"'{key}' is required and must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=400, detail=f"'{key}' must be an integer, got {value!r}"
        ) from None


def _parse_flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "on", "yes"):
            return True
        if lowered in ("0", "false", "off", "no"):
            return False
    raise HTTPException(status_code=400, detail=f"'{name}' must be a boolean, got {value!r}")


# =============================================================================
# Resources
# =============================================================================


@router.get("/api/status")
async def get_status() -> dict[str, Any]:
    """Get the current playback status."""
    client = await _connected_client()
    status = await client.status()
    return status.to_dict()


@router.get("/api/current-song")
async def get_current_song() -> dict[str, Any]:
    """Get the current song."""
    client = await _connected_client()
    song = await client.current_song()
    if song is None:
        return {"message": "No song playing"}
    return {**song.to_dict(), "display_title": song.display_title}


@router.get("/api/stats")
async def get_stats() -> dict[str, Any]:
    """Get daemon and database statistics."""
    client = await _connected_client()
    stats = await client.stats()
    return stats.to_dict()


@router.get("/api/playlist")
async def get_playlist() -> dict[str, Any]:
    """Get the songs in the current queue."""
    client = await _connected_client()
    return _songs_payload(await client.playlist_info())


@router.get("/api/playlists")
async def get_playlists() -> dict[str, Any]:
    """List stored playlists."""
    client = await _connected_client()
    playlists = await client.list_playlists()
    return {
        "count": len(playlists),
        "playlists": [entry.to_dict() for entry in playlists],
    }


@router.get("/api/library")
async def get_library(path: str = "") -> dict[str, Any]:
    """List all songs in the database, optionally below a path."""
    client = await _connected_client()
    return _songs_payload(await client.list_all_info(path or None))


def _search_args(type: str, query: str) -> SearchField:
    if not type or not query:
        raise HTTPException(status_code=400, detail="Search type and query are required")
    try:
        return SearchField.parse(type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.get("/api/search")
async def search(type: str = "", query: str = "") -> dict[str, Any]:
    """
    Substring search with fallbacks.

    Artist searches also return the matches grouped by album.
    """
    field = _search_args(type, query)
    client = await _connected_client()
    songs = await client.search(field, query)

    result: dict[str, Any] = {"type": field.value, "query": query, **_songs_payload(songs)}
    if field is SearchField.ARTIST:
        result["albums"] = group_by_album(songs)
    return result


@router.get("/api/find")
async def find(type: str = "", query: str = "") -> dict[str, Any]:
    """Exact-match lookup."""
    field = _search_args(type, query)
    client = await _connected_client()
    songs = await client.find(field, query)
    return {"type": field.value, "query": query, **_songs_payload(songs)}


# =============================================================================
# Actions
# =============================================================================


@router.post("/api/playback")
async def playback_control(body: dict[str, Any]) -> dict[str, Any]:
    """Run a playback action and report the resulting state."""
    action = str(body.get("action", ""))
    if action not in PLAYBACK_ACTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown action: {action}")

    client = await _connected_client()
    if action == "play":
        position = _require_int(body, "position") if body.get("position") is not None else None
        await client.play(position)
    elif action == "pause":
        await client.pause()
    elif action == "stop":
        await client.stop()
    elif action == "next":
        await client.next()
    else:
        await client.previous()

    status = await client.status()
    state = status.state.value if status.state is not None else None
    logger.debug("Playback action %s done, state=%s", action, state)
    return {"action": action, "state": state, "playing": status.is_playing}


@router.post("/api/seek")
async def seek(body: dict[str, Any]) -> dict[str, Any]:
    """Seek within the song at a queue position."""
    position = _require_int(body, "position")
    try:
        time = float(body["time"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=400, detail="'time' is required and must be a number") from None

    client = await _connected_client()
    await client.seek(position, time)
    return {"position": position, "time": time}


@router.post("/api/volume")
async def set_volume(body: dict[str, Any]) -> dict[str, Any]:
    """Set the volume (0-100)."""
    value = body.get("volume")
    try:
        volume = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        volume = float("nan")
    if isinstance(value, bool) or not 0 <= volume <= 100:
        raise HTTPException(status_code=400, detail="Volume must be a number between 0 and 100")

    client = await _connected_client()
    await client.set_volume(volume)
    return {"volume": int(volume)}


@router.post("/api/playlist")
async def playlist_manager(body: dict[str, Any]) -> dict[str, Any]:
    """Add to, delete from, or clear the queue."""
    action = str(body.get("action", ""))
    if action not in PLAYLIST_ACTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown action: {action}")

    if action == "add":
        uri = body.get("uri")
        if not uri:
            raise HTTPException(status_code=400, detail="URI is required for add action")
        client = await _connected_client()
        await client.playlist_add(str(uri))
        return {"action": action, "uri": str(uri)}

    if action == "delete":
        if body.get("position") is None:
            raise HTTPException(status_code=400, detail="Position is required for delete action")
        position = _require_int(body, "position")
        client = await _connected_client()
        await client.playlist_delete(position)
        return {"action": action, "position": position}

    client = await _connected_client()
    await client.playlist_clear()
    return {"action": action}


@router.post("/api/options")
async def playback_options(body: dict[str, Any]) -> dict[str, Any]:
    """Set any of the repeat/random/single/consume flags that are supplied."""
    requested = {
        name: _parse_flag(name, body[name])
        for name in OPTION_NAMES
        if body.get(name) is not None
    }

    client = await _connected_client()
    setters = {
        "repeat": client.set_repeat,
        "random": client.set_random,
        "single": client.set_single,
        "consume": client.set_consume,
    }
    for name, enabled in requested.items():
        await setters[name](enabled)

    return {"changed": requested}
