from core.responses import session_from_auth, summarize


def test_search_results_are_unwrapped_and_trimmed():
    payload = {
        "results": {
            "opensearch:totalResults": "1234",
            "trackmatches": {
                "track": [
                    {"name": f"Creep {i}", "artist": "Radiohead",
                     "image": [{"#text": "http://img"}], "streamable": "0"}
                    for i in range(30)
                ]
            },
        }
    }
    result = summarize("search_track", payload, max_items=5)
    assert result["tool"] == "search_track"
    assert result["total_results"] == 1234
    tracks = result["results"]["trackmatches"]["track"]
    assert len(tracks) == 5
    assert tracks[0] == {"name": "Creep 0", "artist": "Radiohead"}
    assert result["truncated"] == ["results.trackmatches.track (30 → 5)"]


def test_total_from_attr():
    payload = {"recenttracks": {"track": [], "@attr": {"total": "42", "user": "rj"}}}
    result = summarize("get_user_recent_tracks", payload)
    assert result["total_results"] == 42
    assert "truncated" not in result


def test_write_reply_is_a_short_confirmation():
    assert summarize("love_track", {}) == {
        "success": True, "tool": "love_track", "method": "track.love"}


def test_scrobble_counts_are_reported():
    payload = {"scrobbles": {"@attr": {"accepted": "2", "ignored": "1"}, "scrobble": []}}
    result = summarize("scrobble_multiple_tracks", payload)
    assert result["accepted"] == 2
    assert result["ignored"] == 1
    assert result["success"] is False


def test_auth_reply_never_exposes_the_key():
    payload = {"session": {"name": "rj", "key": "secret-session", "subscriber": "0"}}
    result = summarize("authenticate_user", payload)
    assert result["username"] == "rj"
    assert "secret-session" not in repr(result)
    assert session_from_auth(payload) == {"name": "rj", "key": "secret-session"}


def test_session_from_auth_without_key():
    assert session_from_auth({"session": {"name": "rj"}}) is None
    assert session_from_auth({}) is None
