import pytest

from core import contracts
from core.errors import BatchTooLarge, MissingRequired, TypeMismatch
from core.validator import coerce, validate, validate_batch

SCROBBLE = contracts.lookup("scrobble_track")
BATCH = contracts.lookup("scrobble_multiple_tracks")


def test_all_missing_required_names_are_reported_together():
    with pytest.raises(MissingRequired) as excinfo:
        validate(SCROBBLE, {})
    assert excinfo.value.names == ["artist", "track"]
    assert excinfo.value.to_dict()["missing"] == ["artist", "track"]


def test_blank_required_value_counts_as_missing():
    with pytest.raises(MissingRequired) as excinfo:
        validate(SCROBBLE, {"artist": "   ", "track": "Creep"})
    assert excinfo.value.names == ["artist"]


def test_missing_is_reported_before_type_errors():
    with pytest.raises(MissingRequired):
        validate(SCROBBLE, {"track": "Creep", "duration": "long"})


def test_type_mismatches_are_collected():
    with pytest.raises(TypeMismatch) as excinfo:
        validate(SCROBBLE, {"artist": "Radiohead", "track": "Creep",
                            "duration": "long", "chosen_by_user": "maybe"})
    assert excinfo.value.names == ["duration", "chosen_by_user"]


def test_undeclared_keys_are_dropped():
    validated = validate(contracts.lookup("love_track"),
                         {"artist": "Radiohead", "track": "Creep", "session": "x"})
    assert validated == {"artist": "Radiohead", "track": "Creep"}


def test_null_optional_means_not_supplied():
    validated = validate(contracts.lookup("get_album_info"),
                         {"album": "OK Computer", "artist": "Radiohead", "user": None})
    assert "user" not in validated


def test_loose_json_values_are_coerced():
    contract = contracts.lookup("get_user_recent_tracks")
    validated = validate(contract, {"username": "rj", "limit": "20", "extended": "true",
                                    "start_date": "2024-01-01T00:00:00Z"})
    assert validated["limit"] == 20
    assert validated["extended"] is True
    assert validated["start_date"] == 1704067200


def test_limit_bounds():
    spec = contracts.lookup("search_track").spec_for("limit")
    with pytest.raises(TypeMismatch) as excinfo:
        coerce(spec, 0)
    assert "between 1 and 1000" in str(excinfo.value)


def test_boolean_is_not_an_integer():
    with pytest.raises(TypeMismatch):
        coerce(contracts.lookup("search_track").spec_for("page"), True)


def test_tags_accept_comma_string_and_cap_count():
    spec = contracts.lookup("add_track_tags").spec_for("tags")
    assert coerce(spec, "rock, indie ,") == ["rock", "indie"]
    with pytest.raises(TypeMismatch):
        coerce(spec, [f"t{i}" for i in range(11)])


def test_batch_entries_are_validated_by_position():
    tracks = [
        {"artist": "Radiohead", "track": "Creep"},
        {"track": "Karma Police"},
        {"artist": "Björk", "track": "Joga", "duration": "x"},
    ]
    with pytest.raises(MissingRequired) as excinfo:
        validate_batch(BATCH, SCROBBLE, {"tracks": tracks})
    assert excinfo.value.names == ["tracks[1].artist"]

    tracks[1]["artist"] = "Radiohead"
    with pytest.raises(TypeMismatch) as excinfo:
        validate_batch(BATCH, SCROBBLE, {"tracks": tracks})
    assert excinfo.value.names == ["tracks[2].duration"]


def test_oversized_batch_is_rejected_before_entries_are_checked():
    tracks = [{} for _ in range(51)]
    with pytest.raises(BatchTooLarge) as excinfo:
        validate_batch(BATCH, SCROBBLE, {"tracks": tracks})
    assert excinfo.value.size == 51
    assert excinfo.value.limit == 50


def test_batch_requires_tracks():
    with pytest.raises(MissingRequired):
        validate_batch(BATCH, SCROBBLE, {"tracks": []})
