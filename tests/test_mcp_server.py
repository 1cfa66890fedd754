import pytest

from core import contracts
from core.dispatcher import ToolDispatcher
from core.errors import LastFMError, TransportError
from tools import mcp_server


@pytest.fixture
def server(monkeypatch, credentials, transport, fixed_clock):
    """mcp_server with a fake transport and a fresh session."""
    monkeypatch.setattr(mcp_server, "_dispatcher",
                        ToolDispatcher(credentials, transport=transport, clock=fixed_clock))
    monkeypatch.setattr(mcp_server, "_session", mcp_server.SessionState())
    return mcp_server


def test_every_contract_is_exposed_as_a_tool():
    for name in contracts.names():
        assert hasattr(mcp_server, name), name


def test_read_tool_returns_summary(server, transport):
    transport.reply = {"results": {"opensearch:totalResults": "2", "trackmatches": {"track": []}}}
    result = server.run_tool("search_track", query="Creep", artist=None, limit=None)
    assert result["tool"] == "search_track"
    assert result["total_results"] == 2
    request = transport.sent[0]
    assert "artist" not in request.params
    assert request.params["limit"] == "10"


def test_validation_errors_are_returned_not_raised(server, transport):
    result = server.run_tool("scrobble_track", track="Creep")
    assert result["error_type"] == "missing_parameters"
    assert result["missing"] == ["artist"]
    assert transport.sent == []


def test_write_without_session_asks_for_authentication(server):
    result = server.run_tool("love_track", artist="Radiohead", track="Creep")
    assert result["error_type"] == "authentication_required"


def test_login_keeps_session_for_later_writes(server, transport):
    transport.reply = {"session": {"name": "rj", "key": "SESSION", "subscriber": "0"}}
    result = server.start_session("rj", "hunter2")
    assert result["username"] == "rj"
    assert "SESSION" not in repr(result)
    status = server.auth_status()
    assert status["authenticated"] is True
    assert status["username"] == "rj"
    assert status["message"] == "Authenticated as rj"

    transport.reply = {}
    assert server.run_tool("love_track", artist="Radiohead", track="Creep")["success"] is True
    assert transport.sent[-1].params["sk"] == "SESSION"


def test_login_without_session_in_reply_fails(server, transport):
    transport.reply = {"unexpected": {}}
    assert server.start_session("rj", "pw")["error_type"] == "authentication_failed"
    assert not server.auth_status()["authenticated"]


def test_session_key_is_verified_and_reports_its_user(server, transport):
    assert server.use_session_key("  ")["error_type"] == "missing_parameters"
    assert transport.sent == []

    transport.reply = {"user": {"name": "rj", "playcount": "1000"}}
    assert server.use_session_key(" sk-1 ") == {"success": True, "username": "rj"}
    lookup = transport.sent[-1]
    assert lookup.method == "user.getInfo"
    assert lookup.params["sk"] == "sk-1"
    assert lookup.is_signed
    assert "user" not in lookup.params
    assert server.auth_status()["username"] == "rj"


def test_rejected_session_key_is_not_kept(server, monkeypatch):
    class Rejecting:
        def send(self, request):
            raise LastFMError(9, "Invalid session key - Please re-authenticate")

    monkeypatch.setattr(server._dispatcher, "_transport", Rejecting())
    result = server.use_session_key("stale")
    assert result["error_type"] == "lastfm_error"
    assert result["code"] == 9
    assert server.auth_status()["authenticated"] is False


def test_browser_login_exchanges_the_approved_token(server, transport, monkeypatch):
    opened = []
    monkeypatch.setattr(mcp_server.webbrowser, "open", lambda url: opened.append(url) or True)

    transport.reply = {"token": "TOKEN-1"}
    started = server.begin_browser_auth(auto_open=True)
    assert started["status"] == "awaiting_user_authorization"
    assert started["auth_url"] == (
        "https://www.last.fm/api/auth/?api_key=test-api-key&token=TOKEN-1")
    assert started["browser_opened"] is True
    assert opened == [started["auth_url"]]
    token_request = transport.sent[-1]
    assert token_request.method == "auth.getToken"
    assert token_request.is_signed
    assert token_request.http_method == "GET"

    transport.reply = {"session": {"name": "rj", "key": "SESSION", "subscriber": "0"}}
    finished = server.finish_browser_auth()
    assert finished["username"] == "rj"
    assert "SESSION" not in repr(finished)
    session_request = transport.sent[-1]
    assert session_request.method == "auth.getSession"
    assert session_request.params["token"] == "TOKEN-1"
    assert session_request.redacted()["token"] == "***"
    assert server.auth_status()["authenticated"] is True


def test_browser_login_does_not_open_a_browser_unless_asked(server, transport, monkeypatch):
    monkeypatch.setattr(mcp_server.webbrowser, "open", lambda url: pytest.fail("browser opened"))
    transport.reply = {"token": "TOKEN-1"}
    assert server.begin_browser_auth()["browser_opened"] is False


def test_completing_browser_login_without_a_token(server, transport):
    result = server.finish_browser_auth()
    assert result["error_type"] == "missing_parameters"
    assert result["missing"] == ["token"]
    assert transport.sent == []


def test_logout_forgets_the_session(server, transport):
    transport.reply = {"session": {"name": "rj", "key": "SESSION"}}
    server.start_session("rj", "pw")
    assert server.end_session() == {"logged_out": True, "previous_user": "rj"}
    status = server.auth_status()
    assert status["authenticated"] is False
    assert status["username"] is None

    result = server.run_tool("love_track", artist="Radiohead", track="Creep")
    assert result["error_type"] == "authentication_required"
    assert server.end_session()["previous_user"] == "unknown"


def test_session_without_known_user_says_so(server):
    server._session.key = "from-environment"
    status = server.auth_status()
    assert status["authenticated"] is True
    assert status["message"] == "Authenticated but username unavailable"


def test_personal_tags_accept_tagging_type(server, transport):
    transport.reply = {"taggings": {"albums": {"album": []}}}
    server.run_tool("get_user_personal_tags_for_artists", user="rj", tag="rock",
                    tagging_type="album")
    assert transport.sent[-1].params["taggingtype"] == "album"

    server.run_tool("get_user_personal_tags_for_artists", user="rj", tag="rock")
    assert transport.sent[-1].params["taggingtype"] == "artist"


def test_transport_failures_are_returned(server, monkeypatch):
    class Unreachable:
        def send(self, request):
            raise TransportError("Could not reach Last.fm: timed out")

    monkeypatch.setattr(server._dispatcher, "_transport", Unreachable())
    result = server.run_tool("get_user_info", username="rj")
    assert result == {"error": "Could not reach Last.fm: timed out", "error_type": "transport_error"}


def test_missing_configuration_is_reported(monkeypatch):
    monkeypatch.setattr(mcp_server, "_dispatcher", None)
    monkeypatch.setattr(mcp_server, "load_dotenv", lambda: False)
    monkeypatch.delenv("LASTFM_API_KEY", raising=False)
    monkeypatch.delenv("LASTFM_SECRET_KEY", raising=False)
    result = mcp_server.run_tool("get_user_info", username="rj")
    assert result["error_type"] == "configuration_error"
    assert "LASTFM_API_KEY" in result["error"]
