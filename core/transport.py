# =============================================================================
# core/transport.py  —  HTTP transport for composed Last.fm requests
# =============================================================================
#
# The only module in core/ that touches the network.  It takes a finished
# SignedRequest, sends it, and returns the decoded JSON body.  It does not
# build parameters, sign anything, or retry: a failed call is reported
# once and the agent decides what to do next.
#
# FAILURE MODES:
#   - Last.fm replied with {"error": N, "message": "..."}  → LastFMError
#   - network failure, non-2xx status, non-JSON body        → TransportError
#     (connection resets and dropped connections included, even
#     while the body is being read)
#
# Last.fm also uses HTTP 4xx for its own API errors, with the same JSON
# error body, so an HTTPError body is inspected before giving up on it.
# =============================================================================

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request

from core.errors import LastFMError, TransportError
from core.models import SignedRequest

logger = logging.getLogger(__name__)

USER_AGENT = "scrobbler-context/1.0"


class LastFMTransport:
    """Send SignedRequests with urllib.

    Args:
        timeout: Seconds before the request is abandoned.
        opener: urlopen-compatible callable, replaceable in tests.
    """

    def __init__(self, timeout: float = 10.0, opener=urllib.request.urlopen):
        self.timeout = timeout
        self._opener = opener

    def build(self, request: SignedRequest) -> urllib.request.Request:
        encoded = urllib.parse.urlencode(request.params)
        headers = {"User-Agent": USER_AGENT}
        if request.http_method == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            return urllib.request.Request(
                request.endpoint, data=encoded.encode("utf-8"), headers=headers, method="POST"
            )
        return urllib.request.Request(
            f"{request.endpoint}?{encoded}", headers=headers, method="GET"
        )

    def send(self, request: SignedRequest) -> dict:
        http_request = self.build(request)
        try:
            with self._opener(http_request, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            body = exc.read() if exc.fp is not None else b""
            payload = _decode(body, strict=False)
            if payload is not None and "error" in payload:
                raise _api_error(payload) from exc
            raise TransportError(f"Last.fm returned HTTP {exc.code}", status=exc.code) from exc
        except urllib.error.URLError as exc:
            raise TransportError(f"Could not reach Last.fm: {exc.reason}") from exc
        except TimeoutError as exc:
            raise TransportError(f"Last.fm did not answer within {self.timeout}s") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise TransportError(f"Connection to Last.fm failed: {exc}") from exc

        payload = _decode(body)
        if "error" in payload:
            raise _api_error(payload)
        logger.debug("← %s: %d bytes", request.method, len(body))
        return payload


def _decode(body: bytes, strict: bool = True):
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        if strict:
            raise TransportError("Last.fm returned a malformed response body") from None
        return None
    if not isinstance(payload, dict):
        if strict:
            raise TransportError("Last.fm returned a malformed response body")
        return None
    return payload


def _api_error(payload: dict) -> LastFMError:
    try:
        code = int(payload["error"])
    except (TypeError, ValueError):
        code = -1
    return LastFMError(code, str(payload.get("message", "unknown error")))
