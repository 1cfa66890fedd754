import pytest

from core import composer, contracts


def test_values_are_encoded_for_the_wire():
    assert composer.encode_value(True) == "1"
    assert composer.encode_value(False) == "0"
    assert composer.encode_value(["rock", "indie"]) == "rock,indie"
    assert composer.encode_value(42) == "42"


def test_canonical_names_are_renamed_to_wire_names():
    contract = contracts.lookup("scrobble_track")
    wire = composer.to_wire(
        {"artist": "A", "track": "T", "album_artist": "B", "track_number": 3,
         "chosen_by_user": False, "timestamp": 10},
        contract,
    )
    assert wire == {"artist": "A", "track": "T", "albumArtist": "B", "trackNumber": "3",
                    "chosenByUser": "0", "timestamp": "10"}


def test_search_query_goes_out_under_the_entity_name():
    wire = composer.to_wire({"query": "Creep"}, contracts.lookup("search_track"))
    assert wire == {"track": "Creep"}


def test_index_batch_preserves_input_order():
    entry = contracts.lookup("scrobble_track")
    wire = composer.index_batch(
        [{"artist": "A", "track": "x"}, {"artist": "B", "track": "y", "album_artist": "C"}],
        entry,
    )
    assert wire == {"artist[0]": "A", "track[0]": "x",
                    "artist[1]": "B", "track[1]": "y", "albumArtist[1]": "C"}


def test_api_parameters_add_session_only_for_session_tools():
    love = contracts.lookup("love_track")
    search = contracts.lookup("search_track")
    assert composer.api_parameters({}, love, "K", "S") == {
        "method": "track.love", "api_key": "K", "sk": "S"}
    assert "sk" not in composer.api_parameters({}, search, "K", "S")


def test_compose_write_is_post_and_signed():
    contract = contracts.lookup("love_track")
    request = composer.compose({"artist": "A", "track": "T"}, contract, signature="abc")
    assert request.http_method == "POST"
    assert request.params["api_sig"] == "abc"
    assert request.params["format"] == "json"
    assert request.endpoint == composer.DEFAULT_ENDPOINT


def test_compose_read_is_get_and_unsigned():
    request = composer.compose({"track": "T"}, contracts.lookup("search_track"))
    assert request.http_method == "GET"
    assert not request.is_signed


def test_compose_refuses_unsigned_write_and_signed_read():
    with pytest.raises(ValueError):
        composer.compose({}, contracts.lookup("love_track"))
    with pytest.raises(ValueError):
        composer.compose({}, contracts.lookup("search_track"), signature="abc")
