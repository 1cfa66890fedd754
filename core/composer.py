# =============================================================================
# core/composer.py  —  Request Composer
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns CanonicalParameters into the exact parameter set Last.fm expects
#   and wraps it in a SignedRequest.  No network access here: the result
#   is a value the transport can send.
#
# THE STEPS (driven by dispatcher.py):
#   1. to_wire()         canonical names → Last.fm names, values → strings
#                        (album_artist → albumArtist, True → "1")
#      index_batch()     same, for batch scrobbles: artist[0], track[0], ...
#   2. api_parameters()  + method, api_key, and sk for session calls.
#                        This is exactly the set that gets signed.
#   3. compose()         + format=json, + api_sig for signed calls;
#                        picks GET/POST.
# =============================================================================

from typing import Any, Mapping, Optional

from core.models import CanonicalParameters, SignedRequest, ToolContract

DEFAULT_ENDPOINT = "https://ws.audioscrobbler.com/2.0/"
RESPONSE_FORMAT = "json"


def encode_value(value: Any) -> str:
    """Encode one canonical value the way Last.fm reads it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


def to_wire(canonical: CanonicalParameters, contract: ToolContract) -> dict[str, str]:
    """Rename canonical parameters to their wire names and encode the values."""
    wire = {}
    for name, value in canonical.items():
        spec = contract.spec_for(name)
        wire_name = spec.wire_name if spec is not None else name
        wire[wire_name] = encode_value(value)
    return wire


def index_batch(
    entries: list[CanonicalParameters],
    entry_contract: ToolContract,
) -> dict[str, str]:
    """Flatten batch entries into Last.fm's indexed form, preserving order.

    [{"artist": "A", "track": "x"}, {"artist": "B", "track": "y"}]
      → {"artist[0]": "A", "track[0]": "x", "artist[1]": "B", "track[1]": "y"}
    """
    wire = {}
    for index, entry in enumerate(entries):
        for name, value in to_wire(entry, entry_contract).items():
            wire[f"{name}[{index}]"] = value
    return wire


def api_parameters(
    wire: Mapping[str, str],
    contract: ToolContract,
    api_key: str,
    session_key: Optional[str] = None,
) -> dict[str, str]:
    """Add method, api_key and (for session calls) sk to the wire parameters."""
    params = dict(wire)
    params["method"] = contract.method
    params["api_key"] = api_key
    if contract.needs_session and session_key:
        params["sk"] = session_key
    return params


def compose(
    params: Mapping[str, str],
    contract: ToolContract,
    signature: Optional[str] = None,
    endpoint: str = DEFAULT_ENDPOINT,
) -> SignedRequest:
    """Build the final request.

    Signed calls (writes and the auth handshake) must carry a signature
    and plain reads must not; a mismatch is a programming error in the
    caller, so it raises ValueError.
    """
    if contract.requires_signature and not signature:
        raise ValueError(f"{contract.name} is a signed call and needs a signature")
    if not contract.requires_signature and signature is not None:
        raise ValueError(f"{contract.name} is an unsigned read and must not be signed")

    final = dict(params)
    final["format"] = RESPONSE_FORMAT
    if signature is not None:
        final["api_sig"] = signature

    return SignedRequest(
        tool=contract.name,
        method=contract.method,
        http_method=contract.http_method,
        endpoint=endpoint,
        params=final,
    )
