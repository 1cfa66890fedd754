from core import contracts
from core.merger import merge, merge_batch
from core.validator import validate


def _merge(tool_name, raw, clock=lambda: 1_700_000_000):
    contract = contracts.lookup(tool_name)
    return merge(contract, validate(contract, raw), clock)


def test_read_defaults_are_applied_and_omitted_ones_are_absent():
    canonical = _merge("get_album_info", {"album": "OK Computer", "artist": "Radiohead"})
    assert canonical == {
        "album": "OK Computer",
        "artist": "Radiohead",
        "autocorrect": True,
        "language": "en",
    }


def test_no_optional_parameters_means_only_required_keys():
    assert _merge("love_track", {"artist": "Radiohead", "track": "Creep"}) == {
        "artist": "Radiohead",
        "track": "Creep",
    }


def test_supplied_value_wins_over_default():
    canonical = _merge("get_album_info", {"album": "OK Computer", "artist": "Radiohead",
                                          "autocorrect": False, "language": "de"})
    assert canonical["autocorrect"] is False
    assert canonical["language"] == "de"


def test_supplied_value_wins_over_omit():
    canonical = _merge("get_album_info", {"album": "OK Computer", "artist": "Radiohead",
                                          "user": "rj"})
    assert canonical["user"] == "rj"


def test_falsy_concrete_defaults_are_kept():
    canonical = _merge("get_user_recent_tracks", {"username": "rj"})
    assert canonical["extended"] is False
    assert canonical["page"] == 1
    assert "start_date" not in canonical


def test_timestamp_default_uses_the_clock():
    canonical = _merge("scrobble_track", {"artist": "Radiohead", "track": "Creep"},
                       clock=lambda: 1234.9)
    assert canonical["timestamp"] == 1234


def test_merge_is_deterministic_and_does_not_mutate_input():
    contract = contracts.lookup("search_album")
    validated = validate(contract, {"query": "Kid A"})
    before = dict(validated)
    assert merge(contract, validated) == merge(contract, validated)
    assert validated == before


def test_batch_entries_merge_independently():
    entry = contracts.lookup("scrobble_track")
    merged = merge_batch(entry, [{"artist": "A", "track": "x"},
                                 {"artist": "B", "track": "y", "timestamp": 5}],
                         clock=lambda: 100)
    assert merged[0]["timestamp"] == 100
    assert merged[1]["timestamp"] == 5
