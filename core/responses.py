# =============================================================================
# core/responses.py  —  Summarising Last.fm replies for the agent
# =============================================================================
#
# CONTEXT BUDGET DISCIPLINE:
#   Last.fm replies are verbose: every artist carries five image URLs, every
#   search returns 30+ matches, and the interesting part is wrapped in an
#   envelope ({"results": {"trackmatches": {"track": [...]}}}).  The agent
#   needs the content, not the packaging.  These functions:
#     - unwrap the single top-level envelope
#     - drop presentation-only fields (images, streamable flags)
#     - cap every list at `max_items` and say so
#     - report total result counts when Last.fm provides them
#
# Write and authentication calls get a short confirmation instead of the
# echo Last.fm sends, so session keys and tokens never reach the agent.
# Everything here is a pure function over the decoded JSON.
# =============================================================================

from typing import Any, Optional

from core import contracts

DEFAULT_MAX_ITEMS = 10
_NOISE_KEYS = frozenset({"image", "streamable"})
_MAX_DEPTH = 4


def summarize(tool_name: str, payload: dict, max_items: int = DEFAULT_MAX_ITEMS) -> dict:
    """Reduce a decoded Last.fm reply to what the agent needs."""
    contract = contracts.lookup(tool_name)
    if contract.mutating or contract.category == "authentication":
        return _write_result(contract, payload)

    root, body = _unwrap(payload)
    result: dict[str, Any] = {"tool": contract.name}
    total = _total_results(body)
    if total is not None:
        result["total_results"] = total
    truncated: list[str] = []
    result[root or "data"] = _trim(body, max_items, truncated, path=root or "data")
    if truncated:
        result["truncated"] = truncated
    return result


def session_from_auth(payload: dict) -> Optional[dict]:
    """Extract {"name", "key"} from an auth.getMobileSession reply."""
    session = payload.get("session")
    if not isinstance(session, dict) or not session.get("key"):
        return None
    return {"name": session.get("name", ""), "key": session["key"]}


def _unwrap(payload: dict):
    if len(payload) == 1:
        root, body = next(iter(payload.items()))
        if isinstance(body, dict):
            return root, body
    return None, payload


def _total_results(body: Any) -> Optional[int]:
    if not isinstance(body, dict):
        return None
    candidates = [body.get("opensearch:totalResults")]
    attr = body.get("@attr")
    if isinstance(attr, dict):
        candidates.append(attr.get("total"))
    for value in candidates:
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None


def _trim(node: Any, max_items: int, truncated: list[str], path: str, depth: int = 0) -> Any:
    if depth > _MAX_DEPTH:
        return node
    if isinstance(node, dict):
        return {
            key: _trim(value, max_items, truncated, f"{path}.{key}", depth + 1)
            for key, value in node.items()
            if key not in _NOISE_KEYS
        }
    if isinstance(node, list):
        if len(node) > max_items:
            truncated.append(f"{path} ({len(node)} → {max_items})")
            node = node[:max_items]
        return [_trim(item, max_items, truncated, path, depth + 1) for item in node]
    return node


def _write_result(contract, payload: dict) -> dict:
    result = {"success": True, "tool": contract.name, "method": contract.method}

    scrobbles = payload.get("scrobbles")
    if isinstance(scrobbles, dict):
        attr = scrobbles.get("@attr", {})
        result["accepted"] = int(attr.get("accepted", 0))
        result["ignored"] = int(attr.get("ignored", 0))
        result["success"] = result["accepted"] > 0 and result["ignored"] == 0

    session = session_from_auth(payload)
    if session is not None:
        # The key stays with the server; the agent only learns who logged in.
        result["username"] = session["name"]
    return result
