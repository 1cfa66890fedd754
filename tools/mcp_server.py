# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes every Last.fm tool in core/contracts.py over MCP.  Each tool is
#   a thin wrapper: it forwards its arguments to run_tool(), which drives
#   core.dispatcher and summarises the reply.
#
# HOW IT WORKS (the flow):
#   1. The agent calls a tool by name via MCP (e.g., "love_track")
#   2. FastMCP routes the call to the decorated function below
#   3. run_tool() validates, merges, signs and sends via core/
#   4. The reply is summarised (core/responses.py) and returned as a dict
#
# ARGUMENTS AND DEFAULTS:
#   Optional arguments default to None here, meaning "not supplied".  The
#   REAL defaults live in the contracts, so the wrappers never need to
#   agree with them.
#
# ERRORS:
#   A bad call returns {"error": ..., "error_type": ...} instead of
#   raising.  One malformed call must never take the server down, and the
#   agent can read the error and retry with better arguments.
#
# RUNNING THIS SERVER:
#   a) Standalone:  python -m tools.mcp_server
#   b) Launched by the agent over stdio (agent/scrobbler_agent.py)
# =============================================================================

import json
import logging
import sys
import urllib.parse
import webbrowser
from dataclasses import dataclass
from typing import Optional, Union

from dotenv import load_dotenv
from fastmcp import FastMCP

from core.config import Settings
from core.dispatcher import ToolDispatcher
from core.errors import ConfigurationError, LastFMError, ToolInputError, TransportError
from core.responses import session_from_auth, summarize
from core.transport import LastFMTransport

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT carries the MCP protocol, so everything we log goes to STDERR.
#
#   CYAN   → incoming tool calls (with secrets masked)
#   GREEN  → responses
#   YELLOW → status messages
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

_MASKED_ARGUMENTS = {"password", "session_key", "token"}


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(
        f"{k}={'***' if k in _MASKED_ARGUMENTS else repr(v)}" for k, v in params.items()
    )
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, separators=(',', ':'), ensure_ascii=False)}{_RESET}"
    )
    return result


# =============================================================================
# Session and dispatcher
# =============================================================================
# The core is stateless.  The one thing that outlives a tool call is the
# user's session key, and it lives HERE, in the front-end, and is passed
# into each dispatch explicitly.
# =============================================================================
@dataclass
class SessionState:
    key: Optional[str] = None
    username: Optional[str] = None
    pending_token: Optional[str] = None    # Browser auth awaiting approval

    @property
    def authenticated(self) -> bool:
        return bool(self.key)

    def clear(self) -> None:
        self.key = None
        self.username = None
        self.pending_token = None


_session = SessionState()
_dispatcher: Optional[ToolDispatcher] = None

# Where the user approves a desktop-auth token.
AUTH_URL = "https://www.last.fm/api/auth/"


def get_dispatcher() -> ToolDispatcher:
    """Build the dispatcher on first use from environment settings."""
    global _dispatcher
    if _dispatcher is None:
        load_dotenv()
        settings = Settings.from_env()
        _dispatcher = ToolDispatcher(
            settings.credentials,
            transport=LastFMTransport(timeout=settings.timeout),
            endpoint=settings.api_url,
        )
        if settings.session_key and not _session.key:
            _session.key = settings.session_key
        _log_status(f"Dispatcher ready ({settings.api_url})")
    return _dispatcher


def _call(tool_name: str, supplied: dict, session_key: Optional[str] = None):
    """Dispatch and return (payload, None), or (None, error dict) on failure."""
    try:
        return get_dispatcher().call(tool_name, supplied, session_key=session_key), None
    except (ToolInputError, LastFMError, TransportError) as exc:
        _log_status(f"{type(exc).__name__}: {exc}")
        return None, exc.to_dict()
    except ConfigurationError as exc:
        _log_status(str(exc))
        return None, {
            "error": str(exc),
            "error_type": "configuration_error",
            "hint": "Set LASTFM_API_KEY and LASTFM_SECRET_KEY for the server process.",
        }


def run_tool(tool_name: str, **params) -> dict:
    """Dispatch one tool call and return a summarised result or an error dict."""
    supplied = {k: v for k, v in params.items() if v is not None}
    _log_request(tool_name, **supplied)

    payload, error = _call(tool_name, supplied, session_key=_session.key)
    if error is not None:
        return _log_response(tool_name, error)
    return _log_response(tool_name, summarize(tool_name, payload))


# =============================================================================
# Authentication flows
# =============================================================================
#   browser:  begin_browser_auth  → user approves on last.fm →
#             finish_browser_auth (token exchanged for a session)
#   password: start_session (auth.getMobileSession)
#   existing: use_session_key (verified via user.getInfo)
#
# Session keys never appear in a tool result; only the username does.
# =============================================================================
def _store_session(tool_name: str, payload: dict) -> dict:
    session = session_from_auth(payload)
    if session is None:
        return _log_response(tool_name, {
            "error": "Last.fm did not return a session key.",
            "error_type": "authentication_failed",
        })
    _session.key = session["key"]
    _session.username = session["name"]
    _session.pending_token = None
    _log_status(f"Authenticated as {session['name']}")
    return _log_response(tool_name, summarize(tool_name, payload))


def start_session(username: str, password: str) -> dict:
    """Exchange credentials for a session key and keep it for later writes."""
    _log_request("authenticate_user", username=username, password=password)

    payload, error = _call("authenticate_user", {"username": username, "password": password})
    if error is not None:
        return _log_response("authenticate_user", error)
    return _store_session("authenticate_user", payload)


def begin_browser_auth(auto_open: bool = False) -> dict:
    """Request a token and return the URL where the user approves it.

    With ``auto_open`` the URL is also handed to the system browser.
    """
    _log_request("authenticate_browser", auto_open=auto_open)

    payload, error = _call("authenticate_browser", {})
    if error is not None:
        return _log_response("authenticate_browser", error)

    token = payload.get("token")
    if not isinstance(token, str) or not token:
        return _log_response("authenticate_browser", {
            "error": "Last.fm did not return an authentication token.",
            "error_type": "authentication_failed",
        })
    _session.pending_token = token

    query = urllib.parse.urlencode({"api_key": get_dispatcher().api_key, "token": token})
    auth_url = f"{AUTH_URL}?{query}"
    browser_opened = bool(auto_open) and webbrowser.open(auth_url)

    return _log_response("authenticate_browser", {
        "status": "awaiting_user_authorization",
        "auth_url": auth_url,
        "browser_opened": browser_opened,
        "instructions": [
            "1. Open auth_url in a browser",
            "2. Log in to Last.fm and allow access for this application",
            "3. Then call complete_browser_auth",
        ],
    })


def finish_browser_auth(token: Optional[str] = None) -> dict:
    """Exchange the approved token (the pending one by default) for a session."""
    token = token or _session.pending_token
    _log_request("complete_browser_auth", token=token)

    payload, error = _call("complete_browser_auth", {"token": token})
    if error is not None:
        return _log_response("complete_browser_auth", error)
    return _store_session("complete_browser_auth", payload)


def use_session_key(session_key: str) -> dict:
    """Adopt an existing session key once Last.fm confirms who it belongs to."""
    _log_request("set_session_key", session_key=session_key)
    if not session_key or not session_key.strip():
        return _log_response("set_session_key", {
            "error": "Missing required parameter(s): session_key",
            "error_type": "missing_parameters",
            "missing": ["session_key"],
        })

    key = session_key.strip()
    payload, error = _call("get_session_user", {}, session_key=key)
    if error is not None:
        return _log_response("set_session_key", error)

    user = payload.get("user")
    _session.key = key
    _session.username = user.get("name") if isinstance(user, dict) else None
    _session.pending_token = None
    return _log_response("set_session_key", {"success": True, "username": _session.username})


def end_session() -> dict:
    previous = _session.username
    _session.clear()
    _log_status(f"Logged out ({previous or 'unknown user'})")
    return {"logged_out": True, "previous_user": previous or "unknown"}


def auth_status() -> dict:
    if not _session.authenticated:
        message = "Not authenticated. Use authenticate_browser to log in."
    elif _session.username:
        message = f"Authenticated as {_session.username}"
    else:
        message = "Authenticated but username unavailable"
    return {
        "authenticated": _session.authenticated,
        "username": _session.username,
        "message": message,
    }


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("scrobbler-context")


# =============================================================================
# AUTHENTICATION
# =============================================================================
@mcp.tool()
def authenticate_browser(auto_open: bool = False) -> dict:
    """Start logging the user in to Last.fm through their browser (preferred).

    WHEN TO CALL THIS: When a write tool (scrobble, love, tag) returned an
    "authentication_required" error.  Show the user the returned auth_url,
    wait until they say they've approved access, then call
    complete_browser_auth.  No password ever passes through the chat.

    Args:
        auto_open: Also open auth_url in the browser of the machine running
            this server.
    """
    return begin_browser_auth(auto_open)


@mcp.tool()
def complete_browser_auth(token: Optional[str] = None) -> dict:
    """Finish browser login after the user approved access on last.fm.

    The token from authenticate_browser is remembered, so it normally
    doesn't need to be passed.  If Last.fm answers "token not authorized",
    the user hasn't approved yet.
    """
    return finish_browser_auth(token)


@mcp.tool()
def authenticate_user(username: str, password: str) -> dict:
    """Log in to Last.fm with a username and password.

    Prefer authenticate_browser.  Use this only if the user explicitly gives
    you their credentials.  The session is kept by the server for later
    calls; the password is never stored.

    Returns:
        {"success": true, "username": ...} or an error dict.
    """
    return start_session(username, password)


@mcp.tool()
def set_session_key(session_key: str) -> dict:
    """Use an existing Last.fm session key for write operations."""
    return use_session_key(session_key)


@mcp.tool()
def check_auth_status() -> dict:
    """Report whether write tools (scrobble, love, tag) can be used right now."""
    _log_request("check_auth_status")
    return _log_response("check_auth_status", auth_status())


@mcp.tool()
def logout() -> dict:
    """Forget the current Last.fm session."""
    _log_request("logout")
    return _log_response("logout", end_session())


# =============================================================================
# ALBUMS
# =============================================================================
@mcp.tool()
def search_album(query: str, limit: Optional[int] = None, page: Optional[int] = None) -> dict:
    """Search for albums by name.  Returns at most 10 matches per page."""
    return run_tool("search_album", query=query, limit=limit, page=page)


@mcp.tool()
def get_album_info(
    album: str,
    artist: str,
    autocorrect: Optional[bool] = None,
    user: Optional[str] = None,
    language: Optional[str] = None,
) -> dict:
    """Get detailed information about an album: tracklist, listeners, tags, wiki.

    Args:
        album: Album title (e.g., "OK Computer").
        artist: Album artist (e.g., "Radiohead").
        autocorrect: Let Last.fm fix misspelled names (default: true).
        user: A Last.fm username; adds that user's play count for the album.
        language: ISO 639 code for the wiki text (default: "en").
    """
    return run_tool(
        "get_album_info",
        album=album, artist=artist, autocorrect=autocorrect, user=user, language=language,
    )


@mcp.tool()
def get_album_tags(
    album: str,
    artist: str,
    autocorrect: Optional[bool] = None,
    user: Optional[str] = None,
) -> dict:
    """Get the tags a user has applied to an album."""
    return run_tool("get_album_tags", album=album, artist=artist, autocorrect=autocorrect, user=user)


@mcp.tool()
def get_album_top_tags(album: str, artist: str, autocorrect: Optional[bool] = None) -> dict:
    """Get the most popular tags for an album."""
    return run_tool("get_album_top_tags", album=album, artist=artist, autocorrect=autocorrect)


@mcp.tool()
def add_album_tags(album: str, artist: str, tags: Union[list[str], str]) -> dict:
    """Tag an album (up to 10 tags).  Requires authentication."""
    return run_tool("add_album_tags", album=album, artist=artist, tags=tags)


@mcp.tool()
def remove_album_tag(album: str, artist: str, tag: str) -> dict:
    """Remove one of the user's tags from an album.  Requires authentication."""
    return run_tool("remove_album_tag", album=album, artist=artist, tag=tag)


# =============================================================================
# ARTISTS
# =============================================================================
@mcp.tool()
def search_artist(query: str, limit: Optional[int] = None, page: Optional[int] = None) -> dict:
    """Search for artists by name."""
    return run_tool("search_artist", query=query, limit=limit, page=page)


@mcp.tool()
def get_artist_info(
    name: str,
    autocorrect: Optional[bool] = None,
    user: Optional[str] = None,
    language: Optional[str] = None,
) -> dict:
    """Get an artist's bio, listener counts, tags and similar artists.

    Args:
        name: Artist name.
        autocorrect: Let Last.fm fix misspelled names (default: true).
        user: A Last.fm username; adds that user's play count.
        language: ISO 639 code for the bio (default: "en").
    """
    return run_tool(
        "get_artist_info", name=name, autocorrect=autocorrect, user=user, language=language
    )


@mcp.tool()
def get_similar_artists(
    name: str, limit: Optional[int] = None, autocorrect: Optional[bool] = None
) -> dict:
    """Get artists similar to the given one, most similar first."""
    return run_tool("get_similar_artists", name=name, limit=limit, autocorrect=autocorrect)


@mcp.tool()
def get_artist_correction(artist: str) -> dict:
    """Check whether Last.fm knows an artist under a corrected name."""
    return run_tool("get_artist_correction", artist=artist)


@mcp.tool()
def get_artist_tags(name: str, user: Optional[str] = None, autocorrect: Optional[bool] = None) -> dict:
    """Get the tags a user has applied to an artist."""
    return run_tool("get_artist_tags", name=name, user=user, autocorrect=autocorrect)


@mcp.tool()
def get_artist_top_albums(
    name: str,
    limit: Optional[int] = None,
    page: Optional[int] = None,
    autocorrect: Optional[bool] = None,
) -> dict:
    """Get an artist's most listened albums."""
    return run_tool("get_artist_top_albums", name=name, limit=limit, page=page, autocorrect=autocorrect)


@mcp.tool()
def get_artist_top_tracks(
    name: str,
    limit: Optional[int] = None,
    page: Optional[int] = None,
    autocorrect: Optional[bool] = None,
) -> dict:
    """Get an artist's most listened tracks."""
    return run_tool("get_artist_top_tracks", name=name, limit=limit, page=page, autocorrect=autocorrect)


@mcp.tool()
def add_artist_tags(artist: str, tags: Union[list[str], str]) -> dict:
    """Tag an artist (up to 10 tags).  Requires authentication."""
    return run_tool("add_artist_tags", artist=artist, tags=tags)


@mcp.tool()
def remove_artist_tag(artist: str, tag: str) -> dict:
    """Remove one of the user's tags from an artist.  Requires authentication."""
    return run_tool("remove_artist_tag", artist=artist, tag=tag)


# =============================================================================
# TRACKS
# =============================================================================
@mcp.tool()
def search_track(
    query: str,
    artist: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Search for tracks by title, optionally narrowed to one artist."""
    return run_tool("search_track", query=query, artist=artist, limit=limit, page=page)


@mcp.tool()
def get_track_info(
    track: str,
    artist: str,
    user: Optional[str] = None,
    autocorrect: Optional[bool] = None,
    language: Optional[str] = None,
) -> dict:
    """Get details about a track: album, duration, listeners, tags.

    Pass `user` to also learn whether that user has loved the track and how
    often they've played it.  Autocorrect is OFF by default for this tool.
    """
    return run_tool(
        "get_track_info",
        track=track, artist=artist, user=user, autocorrect=autocorrect, language=language,
    )


@mcp.tool()
def get_similar_tracks(
    track: str,
    artist: str,
    autocorrect: Optional[bool] = None,
    limit: Optional[int] = None,
) -> dict:
    """Get tracks similar to the given one."""
    return run_tool("get_similar_tracks", track=track, artist=artist, autocorrect=autocorrect, limit=limit)


@mcp.tool()
def get_track_correction(track: str, artist: str) -> dict:
    """Check whether Last.fm knows a track under corrected track/artist names."""
    return run_tool("get_track_correction", track=track, artist=artist)


@mcp.tool()
def get_track_tags(
    track: str,
    artist: str,
    autocorrect: Optional[bool] = None,
    user: Optional[str] = None,
) -> dict:
    """Get the tags a user has applied to a track."""
    return run_tool("get_track_tags", track=track, artist=artist, autocorrect=autocorrect, user=user)


@mcp.tool()
def get_track_top_tags(track: str, artist: str, autocorrect: Optional[bool] = None) -> dict:
    """Get the most popular tags for a track."""
    return run_tool("get_track_top_tags", track=track, artist=artist, autocorrect=autocorrect)


@mcp.tool()
def add_track_tags(track: str, artist: str, tags: Union[list[str], str]) -> dict:
    """Tag a track (up to 10 tags).  Requires authentication."""
    return run_tool("add_track_tags", track=track, artist=artist, tags=tags)


@mcp.tool()
def remove_track_tag(track: str, artist: str, tag: str) -> dict:
    """Remove one of the user's tags from a track.  Requires authentication."""
    return run_tool("remove_track_tag", track=track, artist=artist, tag=tag)


# =============================================================================
# USERS
# =============================================================================
@mcp.tool()
def get_user_info(username: str) -> dict:
    """Get a Last.fm user's profile: country, registration date, play count."""
    return run_tool("get_user_info", username=username)


@mcp.tool()
def get_session_user() -> dict:
    """Get the profile of the logged-in user (needs a session)."""
    return run_tool("get_session_user")


@mcp.tool()
def get_user_recent_tracks(
    username: str,
    limit: Optional[int] = None,
    page: Optional[int] = None,
    start_date: Optional[Union[int, str]] = None,
    end_date: Optional[Union[int, str]] = None,
    extended: Optional[bool] = None,
) -> dict:
    """Get a user's recently played tracks, newest first.

    Args:
        username: Last.fm username.
        limit: Tracks per page (default 50).
        page: Page number (default 1).
        start_date / end_date: Restrict to a window.  UNIX seconds or an
            ISO-8601 date such as "2025-01-31".
        extended: Include loved status and full artist data.
    """
    return run_tool(
        "get_user_recent_tracks",
        username=username, limit=limit, page=page,
        start_date=start_date, end_date=end_date, extended=extended,
    )


@mcp.tool()
def get_user_top_artists(
    username: str,
    period: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Get a user's top artists.  period: overall | 7day | 1month | 3month | 6month | 12month."""
    return run_tool("get_user_top_artists", username=username, period=period, limit=limit, page=page)


@mcp.tool()
def get_user_top_tracks(
    username: str,
    period: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Get a user's top tracks.  period: overall | 7day | 1month | 3month | 6month | 12month."""
    return run_tool("get_user_top_tracks", username=username, period=period, limit=limit, page=page)


@mcp.tool()
def get_user_top_albums(
    user: str,
    period: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Get a user's top albums.  period: overall | 7day | 1month | 3month | 6month | 12month."""
    return run_tool("get_user_top_albums", user=user, period=period, limit=limit, page=page)


@mcp.tool()
def get_user_top_tags(username: str, limit: Optional[int] = None) -> dict:
    """Get the tags a user applies most often."""
    return run_tool("get_user_top_tags", username=username, limit=limit)


@mcp.tool()
def get_user_friends(
    user: str,
    recent_tracks: Optional[bool] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Get a user's friends, optionally with what each is listening to."""
    return run_tool("get_user_friends", user=user, recent_tracks=recent_tracks, limit=limit, page=page)


@mcp.tool()
def get_user_loved_tracks(user: str, limit: Optional[int] = None, page: Optional[int] = None) -> dict:
    """Get the tracks a user has loved."""
    return run_tool("get_user_loved_tracks", user=user, limit=limit, page=page)


@mcp.tool()
def get_user_personal_tags_for_artists(
    user: str,
    tag: str,
    tagging_type: Optional[str] = None,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> dict:
    """Get the items a user has tagged with a given personal tag.

    tagging_type picks what kind of item to list: "artist" (default),
    "album" or "track".
    """
    return run_tool(
        "get_user_personal_tags_for_artists",
        user=user, tag=tag, tagging_type=tagging_type, limit=limit, page=page,
    )


# =============================================================================
# SCROBBLING
# =============================================================================
# Every tool in this section WRITES to the user's profile.  They need a
# session (authenticate_user / set_session_key) and are signed.
# =============================================================================
@mcp.tool()
def scrobble_track(
    artist: str,
    track: str,
    timestamp: Optional[Union[int, str]] = None,
    album: Optional[str] = None,
    album_artist: Optional[str] = None,
    track_number: Optional[int] = None,
    duration: Optional[int] = None,
    chosen_by_user: Optional[bool] = None,
    mbid: Optional[str] = None,
) -> dict:
    """Record that the user listened to a track.

    WHEN TO CALL THIS: Only when the user explicitly asks to scrobble.
    Scrobbles are permanent entries in their listening history.

    Args:
        artist: Track artist.
        track: Track title.
        timestamp: When playback STARTED (UNIX seconds or ISO-8601).
            Defaults to now.
        album, album_artist, track_number, duration (seconds), mbid:
            Optional metadata; omitted when not given.
        chosen_by_user: False for radio/recommendation plays.
    """
    return run_tool(
        "scrobble_track",
        artist=artist, track=track, timestamp=timestamp, album=album,
        album_artist=album_artist, track_number=track_number, duration=duration,
        chosen_by_user=chosen_by_user, mbid=mbid,
    )


@mcp.tool()
def scrobble_multiple_tracks(tracks: list[dict]) -> dict:
    """Scrobble up to 50 tracks in one request.

    Each entry takes the same fields as scrobble_track (artist and track
    required).  Larger batches are rejected, not truncated: split them.
    """
    return run_tool("scrobble_multiple_tracks", tracks=tracks)


@mcp.tool()
def update_now_playing(
    artist: str,
    track: str,
    album: Optional[str] = None,
    album_artist: Optional[str] = None,
    track_number: Optional[int] = None,
    duration: Optional[int] = None,
    mbid: Optional[str] = None,
    context: Optional[str] = None,
) -> dict:
    """Show a track as "now playing" on the user's profile.  Does not scrobble."""
    return run_tool(
        "update_now_playing",
        artist=artist, track=track, album=album, album_artist=album_artist,
        track_number=track_number, duration=duration, mbid=mbid, context=context,
    )


@mcp.tool()
def love_track(artist: str, track: str) -> dict:
    """Mark a track as loved by the authenticated user."""
    return run_tool("love_track", artist=artist, track=track)


@mcp.tool()
def unlove_track(artist: str, track: str) -> dict:
    """Remove a track from the authenticated user's loved tracks."""
    return run_tool("unlove_track", artist=artist, track=track)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
