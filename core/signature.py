# =============================================================================
# core/signature.py  —  api_sig computation for Last.fm write calls
# =============================================================================
#
# Last.fm authenticates state-changing calls with a signature:
#
#   1. take every parameter that will be sent, plus `method` and `api_key`
#      (but never `format` or `callback`)
#   2. sort by parameter name (byte order)
#   3. concatenate name1value1name2value2... with no separators
#   4. append the shared secret
#   5. MD5, lowercase hex
#
# MD5 is Last.fm's choice, not ours; the result has to match theirs
# byte for byte.  This is a pure function with no network access.
# =============================================================================

import hashlib
import logging
from typing import Mapping

from core.errors import SignatureComputationFailed

logger = logging.getLogger(__name__)

# Sent alongside signed parameters but excluded from the signature.
UNSIGNED_PARAMS = frozenset({"format", "callback", "api_sig"})


def signature_base(params: Mapping[str, str], method: str, api_key: str) -> list[tuple[str, str]]:
    """The sorted (name, value) pairs that go into the signature."""
    full = {k: v for k, v in params.items() if k not in UNSIGNED_PARAMS}
    full["method"] = method
    full["api_key"] = api_key
    return sorted(full.items(), key=lambda item: item[0].encode("utf-8"))


def sign(params: Mapping[str, str], method: str, api_key: str, secret: str) -> str:
    """Compute api_sig for a Last.fm write call.

    Args:
        params: Wire parameters (names as Last.fm expects them, string values).
        method: Remote method name, e.g. "track.love".
        api_key: The application's API key.
        secret: The shared secret.  Hashed, never sent.

    Returns:
        32-character lowercase hex MD5 digest.
    """
    try:
        pairs = signature_base(params, method, api_key)
        payload = "".join(name + value for name, value in pairs) + secret
        return hashlib.md5(payload.encode("utf-8")).hexdigest()
    except (TypeError, AttributeError) as exc:
        # Values are strings by construction; reaching this means a caller
        # skipped the composer's wire encoding.
        logger.critical("Signature computation failed for %s: %s", method, exc)
        raise SignatureComputationFailed(f"cannot sign {method}: {exc}") from exc
