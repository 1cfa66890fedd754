# =============================================================================
# core/contracts.py  —  Tool Contract Registry (the tool catalogue as DATA)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Declares every tool the server exposes: which parameters it requires,
#   which it accepts optionally (and what happens when they're left out),
#   which Last.fm method it maps to, and whether the call changes state.
#
# WHY A TABLE AND NOT ONE CLASS PER TOOL?
#   The validator, merger and composer are the same for every tool.  Only
#   the declarations differ.  Keeping them as data means a new tool is a
#   new entry here, nothing more.
#
# DEFAULT POLICY:
#   - OMIT            → the parameter is left out of the request entirely.
#                       Used wherever "not given" is the honest answer
#                       (user names, album, mbid, track number, ...).
#   - Default.value() → sent verbatim, even when falsy.
#   - Default.now()   → current UNIX time (scrobble timestamps only).
#
# The registry is built once at import and exposed through a read-only
# mapping.  It is never written to afterwards.
# =============================================================================

from types import MappingProxyType

from core.errors import UnknownTool
from core.models import OMIT, Default, ParamKind, ParamSpec, ToolContract

# Last.fm accepts at most 50 scrobbles per track.scrobble request and at
# most 10 tags per addTags call.
MAX_SCROBBLE_BATCH = 50
MAX_TAGS = 10


# -----------------------------------------------------------------------------
# Parameter builders
# -----------------------------------------------------------------------------
def _text(name, default=OMIT, wire=None, description=""):
    return ParamSpec(name, ParamKind.STRING, default, wire, description)


def _int(name, default=OMIT, wire=None, minimum=None, maximum=None):
    return ParamSpec(name, ParamKind.INTEGER, default, wire, minimum=minimum, maximum=maximum)


def _flag(name, default, wire=None):
    return ParamSpec(name, ParamKind.BOOLEAN, Default.value(default), wire)


def _limit(default=None):
    return _int(
        "limit",
        Default.value(default) if default is not None else OMIT,
        minimum=1,
        maximum=1000,
    )


def _page():
    return _int("page", Default.value(1), minimum=1)


def _autocorrect(default=True):
    return _flag("autocorrect", default)


def _language():
    return _text("language", Default.value("en"), wire="lang")


_TAGS = ParamSpec("tags", ParamKind.STRING_LIST, max_items=MAX_TAGS)
_PERIOD = _text("period", Default.value("overall"))


# Optional parameters shared by track.scrobble and track.updateNowPlaying.
_TRACK_METADATA = (
    _text("album"),
    _text("album_artist", wire="albumArtist"),
    _int("track_number", wire="trackNumber", minimum=1),
    _int("duration", minimum=1),
    _text("mbid"),
)


_CATALOGUE = (
    # --- Authentication ------------------------------------------------------
    ToolContract(
        "authenticate_user", "auth.getMobileSession",
        "Authenticate with Last.fm using username and password",
        "authentication",
        required=(_text("username"), _text("password")),
        mutating=True,
    ),
    # Desktop auth: fetch a token, the user approves it on last.fm, then the
    # approved token is exchanged for a session.  Both steps are signed.
    ToolContract(
        "authenticate_browser", "auth.getToken",
        "Start browser authentication: get a token for the user to approve",
        "authentication",
        signed=True,
    ),
    ToolContract(
        "complete_browser_auth", "auth.getSession",
        "Exchange a browser-approved token for a session",
        "authentication",
        required=(_text("token"),),
        signed=True,
    ),

    # --- Albums -------------------------------------------------------------
    ToolContract(
        "search_album", "album.search",
        "Search for albums on Last.fm by name", "album",
        required=(_text("query", wire="album"),),
        optional=(_limit(10), _page()),
    ),
    ToolContract(
        "get_album_info", "album.getInfo",
        "Get detailed information about a specific album", "album",
        required=(_text("album"), _text("artist")),
        optional=(_autocorrect(), _text("user", wire="username"), _language()),
    ),
    ToolContract(
        "get_album_tags", "album.getTags",
        "Get tags applied to an album by a user", "album",
        required=(_text("album"), _text("artist")),
        optional=(_autocorrect(), _text("user")),
    ),
    ToolContract(
        "get_album_top_tags", "album.getTopTags",
        "Get top tags for an album ordered by popularity", "album",
        required=(_text("album"), _text("artist")),
        optional=(_autocorrect(),),
    ),
    ToolContract(
        "add_album_tags", "album.addTags",
        "Add tags to an album (requires authentication)", "album",
        required=(_text("album"), _text("artist"), _TAGS),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "remove_album_tag", "album.removeTag",
        "Remove a tag from an album (requires authentication)", "album",
        required=(_text("album"), _text("artist"), _text("tag")),
        mutating=True, needs_session=True,
    ),

    # --- Artists ------------------------------------------------------------
    ToolContract(
        "search_artist", "artist.search",
        "Search for artists on Last.fm by name", "artist",
        required=(_text("query", wire="artist"),),
        optional=(_limit(10), _page()),
    ),
    ToolContract(
        "get_artist_info", "artist.getInfo",
        "Get detailed information about a specific artist", "artist",
        required=(_text("name", wire="artist"),),
        optional=(_autocorrect(), _text("user", wire="username"), _language()),
    ),
    ToolContract(
        "get_similar_artists", "artist.getSimilar",
        "Get artists similar to the specified artist", "artist",
        required=(_text("name", wire="artist"),),
        optional=(_limit(10), _autocorrect()),
    ),
    ToolContract(
        "get_artist_correction", "artist.getCorrection",
        "Get the corrected artist name if available", "artist",
        required=(_text("artist"),),
    ),
    ToolContract(
        "get_artist_tags", "artist.getTags",
        "Get tags applied to an artist by a user", "artist",
        required=(_text("name", wire="artist"),),
        optional=(_text("user"), _autocorrect()),
    ),
    ToolContract(
        "get_artist_top_albums", "artist.getTopAlbums",
        "Get top albums for an artist", "artist",
        required=(_text("name", wire="artist"),),
        optional=(_limit(50), _page(), _autocorrect()),
    ),
    ToolContract(
        "get_artist_top_tracks", "artist.getTopTracks",
        "Get top tracks for an artist", "artist",
        required=(_text("name", wire="artist"),),
        optional=(_limit(50), _page(), _autocorrect()),
    ),
    ToolContract(
        "add_artist_tags", "artist.addTags",
        "Add tags to an artist (requires authentication)", "artist",
        required=(_text("artist"), _TAGS),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "remove_artist_tag", "artist.removeTag",
        "Remove a tag from an artist (requires authentication)", "artist",
        required=(_text("artist"), _text("tag")),
        mutating=True, needs_session=True,
    ),

    # --- Tracks -------------------------------------------------------------
    ToolContract(
        "search_track", "track.search",
        "Search for tracks on Last.fm by name", "track",
        required=(_text("query", wire="track"),),
        optional=(_text("artist"), _limit(10), _page()),
    ),
    ToolContract(
        "get_track_info", "track.getInfo",
        "Get detailed information about a specific track", "track",
        required=(_text("track"), _text("artist")),
        optional=(_text("user", wire="username"), _autocorrect(False), _language()),
    ),
    ToolContract(
        "get_similar_tracks", "track.getSimilar",
        "Get tracks similar to the specified track", "track",
        required=(_text("track"), _text("artist")),
        optional=(_autocorrect(), _limit()),
    ),
    ToolContract(
        "get_track_correction", "track.getCorrection",
        "Get corrected track and artist names if available", "track",
        required=(_text("track"), _text("artist")),
    ),
    ToolContract(
        "get_track_tags", "track.getTags",
        "Get tags applied to a track by a user", "track",
        required=(_text("track"), _text("artist")),
        optional=(_autocorrect(), _text("user")),
    ),
    ToolContract(
        "get_track_top_tags", "track.getTopTags",
        "Get top tags for a track ordered by popularity", "track",
        required=(_text("track"), _text("artist")),
        optional=(_autocorrect(),),
    ),
    ToolContract(
        "add_track_tags", "track.addTags",
        "Add tags to a track (requires authentication)", "track",
        required=(_text("track"), _text("artist"), _TAGS),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "remove_track_tag", "track.removeTag",
        "Remove a tag from a track (requires authentication)", "track",
        required=(_text("track"), _text("artist"), _text("tag")),
        mutating=True, needs_session=True,
    ),

    # --- Users --------------------------------------------------------------
    ToolContract(
        "get_user_info", "user.getInfo",
        "Get detailed information about a Last.fm user's profile", "user",
        required=(_text("username", wire="user"),),
    ),
    ToolContract(
        "get_session_user", "user.getInfo",
        "Get the profile of the user who owns the current session", "user",
        signed=True, needs_session=True,
    ),
    ToolContract(
        "get_user_recent_tracks", "user.getRecentTracks",
        "Get a user's recently played tracks", "user",
        required=(_text("username", wire="user"),),
        optional=(
            _limit(50),
            _page(),
            ParamSpec("start_date", ParamKind.TIMESTAMP, OMIT, wire="from"),
            ParamSpec("end_date", ParamKind.TIMESTAMP, OMIT, wire="to"),
            _flag("extended", False),
        ),
    ),
    ToolContract(
        "get_user_top_artists", "user.getTopArtists",
        "Get a user's top artists based on their listening history", "user",
        required=(_text("username", wire="user"),),
        optional=(_PERIOD, _limit(10), _page()),
    ),
    ToolContract(
        "get_user_top_tracks", "user.getTopTracks",
        "Get a user's top tracks based on their listening history", "user",
        required=(_text("username", wire="user"),),
        optional=(_PERIOD, _limit(10), _page()),
    ),
    ToolContract(
        "get_user_top_albums", "user.getTopAlbums",
        "Get a user's top albums based on their listening history", "user",
        required=(_text("user"),),
        optional=(_PERIOD, _limit(50), _page()),
    ),
    ToolContract(
        "get_user_top_tags", "user.getTopTags",
        "Get a user's top tags ordered by usage", "user",
        required=(_text("username", wire="user"),),
        optional=(_limit(),),
    ),
    ToolContract(
        "get_user_friends", "user.getFriends",
        "Get a user's friends list", "user",
        required=(_text("user"),),
        optional=(_flag("recent_tracks", False, wire="recenttracks"), _limit(50), _page()),
    ),
    ToolContract(
        "get_user_loved_tracks", "user.getLovedTracks",
        "Get a user's loved tracks", "user",
        required=(_text("user"),),
        optional=(_limit(50), _page()),
    ),
    ToolContract(
        "get_user_personal_tags_for_artists", "user.getPersonalTags",
        "Get artists tagged with a specific personal tag by a user", "user",
        required=(_text("user"), _text("tag")),
        optional=(
            _text("tagging_type", Default.value("artist"), wire="taggingtype"),
            _limit(50),
            _page(),
        ),
    ),

    # --- Scrobbling ---------------------------------------------------------
    ToolContract(
        "scrobble_track", "track.scrobble",
        "Scrobble a track to the authenticated user's profile", "scrobble",
        required=(_text("artist"), _text("track")),
        optional=(
            ParamSpec("timestamp", ParamKind.TIMESTAMP, Default.now()),
            *_TRACK_METADATA,
            ParamSpec("chosen_by_user", ParamKind.BOOLEAN, OMIT, wire="chosenByUser"),
        ),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "scrobble_multiple_tracks", "track.scrobble",
        "Scrobble up to 50 tracks at once to the authenticated user's profile",
        "scrobble",
        required=(
            ParamSpec("tracks", ParamKind.TRACK_LIST, max_items=MAX_SCROBBLE_BATCH),
        ),
        mutating=True, needs_session=True,
        batch_of="scrobble_track", max_batch=MAX_SCROBBLE_BATCH,
    ),
    ToolContract(
        "update_now_playing", "track.updateNowPlaying",
        "Update the currently playing track for the authenticated user", "scrobble",
        required=(_text("artist"), _text("track")),
        optional=(*_TRACK_METADATA, _text("context")),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "love_track", "track.love",
        "Mark a track as loved for the authenticated user", "scrobble",
        required=(_text("artist"), _text("track")),
        mutating=True, needs_session=True,
    ),
    ToolContract(
        "unlove_track", "track.unlove",
        "Remove a track from the authenticated user's loved tracks", "scrobble",
        required=(_text("artist"), _text("track")),
        mutating=True, needs_session=True,
    ),
)


CONTRACTS = MappingProxyType({contract.name: contract for contract in _CATALOGUE})


def lookup(tool_name: str) -> ToolContract:
    """Return the contract for a tool, or raise UnknownTool.

    Hyphenated spellings ("love-track") are accepted for the snake_case
    names the server registers.
    """
    contract = CONTRACTS.get(tool_name) or CONTRACTS.get(tool_name.replace("-", "_"))
    if contract is None:
        raise UnknownTool(tool_name, available=names())
    return contract


def names() -> list[str]:
    return list(CONTRACTS)


def all_contracts() -> list[ToolContract]:
    return list(CONTRACTS.values())


def by_category(category: str) -> list[ToolContract]:
    return [c for c in CONTRACTS.values() if c.category == category]


def mutating_tools() -> list[str]:
    return [c.name for c in CONTRACTS.values() if c.mutating]
