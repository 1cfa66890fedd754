import http.client
import io
import json
import urllib.error
import urllib.parse

import pytest

from core import contracts
from core.composer import compose
from core.errors import LastFMError, TransportError
from core.transport import LastFMTransport


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _opener(body=None, error=None):
    calls = []

    def opener(request, timeout):
        calls.append((request, timeout))
        if error is not None:
            raise error
        return FakeResponse(json.dumps(body).encode("utf-8") if not isinstance(body, bytes) else body)

    opener.calls = calls
    return opener


def _read_request():
    return compose({"track": "Creep", "method": "track.search", "api_key": "K"},
                   contracts.lookup("search_track"))


def _write_request():
    return compose({"artist": "A", "track": "T", "method": "track.love", "api_key": "K", "sk": "S"},
                   contracts.lookup("love_track"), signature="sig")


def test_read_is_sent_as_query_string():
    opener = _opener({"results": {}})
    assert LastFMTransport(timeout=3, opener=opener).send(_read_request()) == {"results": {}}
    request, timeout = opener.calls[0]
    assert timeout == 3
    assert request.get_method() == "GET"
    query = urllib.parse.parse_qs(urllib.parse.urlsplit(request.full_url).query)
    assert query["track"] == ["Creep"]
    assert query["format"] == ["json"]
    assert request.data is None


def test_write_is_sent_as_form_body():
    opener = _opener({"lfm": {}})
    LastFMTransport(opener=opener).send(_write_request())
    request, _ = opener.calls[0]
    assert request.get_method() == "POST"
    body = urllib.parse.parse_qs(request.data.decode("utf-8"))
    assert body["api_sig"] == ["sig"]
    assert "?" not in request.full_url


def test_error_payload_becomes_lastfm_error():
    opener = _opener({"error": 6, "message": "Track not found"})
    with pytest.raises(LastFMError) as excinfo:
        LastFMTransport(opener=opener).send(_read_request())
    assert excinfo.value.code == 6
    assert excinfo.value.to_dict()["error_type"] == "lastfm_error"


def test_http_error_with_api_body_becomes_lastfm_error():
    body = io.BytesIO(json.dumps({"error": 9, "message": "Invalid session key"}).encode())
    error = urllib.error.HTTPError("https://example", 403, "Forbidden", {}, body)
    with pytest.raises(LastFMError) as excinfo:
        LastFMTransport(opener=_opener(error=error)).send(_write_request())
    assert excinfo.value.code == 9


def test_http_error_without_api_body_becomes_transport_error():
    error = urllib.error.HTTPError("https://example", 503, "Unavailable", {}, io.BytesIO(b"<html>"))
    with pytest.raises(TransportError) as excinfo:
        LastFMTransport(opener=_opener(error=error)).send(_read_request())
    assert excinfo.value.status == 503


def test_network_failure_becomes_transport_error():
    error = urllib.error.URLError("name resolution failed")
    with pytest.raises(TransportError) as excinfo:
        LastFMTransport(opener=_opener(error=error)).send(_read_request())
    assert excinfo.value.to_dict()["error_type"] == "transport_error"


def test_malformed_body_becomes_transport_error():
    with pytest.raises(TransportError):
        LastFMTransport(opener=_opener(b"not json")).send(_read_request())


@pytest.mark.parametrize("error", [
    ConnectionResetError(104, "Connection reset by peer"),
    http.client.RemoteDisconnected("Remote end closed connection without response"),
])
def test_dropped_connection_becomes_transport_error(error):
    with pytest.raises(TransportError) as excinfo:
        LastFMTransport(opener=_opener(error=error)).send(_read_request())
    assert excinfo.value.to_dict()["error_type"] == "transport_error"


def test_reset_while_reading_body_becomes_transport_error():
    class ResetResponse(FakeResponse):
        def read(self, *args):
            raise ConnectionResetError(104, "Connection reset by peer")

    def opener(request, timeout):
        return ResetResponse()

    with pytest.raises(TransportError):
        LastFMTransport(opener=opener).send(_write_request())
