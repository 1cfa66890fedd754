# =============================================================================
# core/dispatcher.py  —  Tool Dispatcher (the pipeline, end to end)
# =============================================================================
#
# HOW A TOOL CALL FLOWS:
#
#   lookup ─▶ validate ─▶ merge ─▶ session check ─▶ sign ─▶ compose ─▶ transport
#
# Each stage either returns a new value or raises; the first failure stops
# the pipeline, so e.g. a scrobble with a missing artist never reaches the
# signer.  The dispatcher itself holds only immutable configuration
# (credentials, endpoint, collaborators), so one instance serves any
# number of concurrent calls.
#
# The session key is passed PER CALL.  Who keeps it between calls is the
# front-end's business (see tools/mcp_server.py).
# =============================================================================

import logging
import time
from typing import Any, Callable, Mapping, Optional

from core import composer, contracts
from core.errors import AuthenticationRequired
from core.merger import merge, merge_batch
from core.models import Credentials, SignedRequest, ToolContract
from core.signature import sign
from core.validator import validate, validate_batch

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Compose (and optionally send) Last.fm requests for named tools.

    Args:
        credentials: API key and shared secret.
        transport: Anything with ``send(SignedRequest) -> dict``.  Only
            needed for ``call``.
        clock: Source of "now" for time-based defaults.
        signer: The signature function; swappable for tests.
        endpoint: Last.fm API root.
    """

    def __init__(
        self,
        credentials: Credentials,
        transport=None,
        clock: Callable[[], float] = time.time,
        signer: Callable[..., str] = sign,
        endpoint: str = composer.DEFAULT_ENDPOINT,
    ):
        self._credentials = credentials
        self._transport = transport
        self._clock = clock
        self._signer = signer
        self._endpoint = endpoint

    @property
    def api_key(self) -> str:
        """The public API key (used in browser-auth URLs).  The secret stays private."""
        return self._credentials.api_key

    def compose(
        self,
        tool_name: str,
        raw: Optional[Mapping[str, Any]] = None,
        session_key: Optional[str] = None,
    ) -> SignedRequest:
        """Run lookup → validate → merge → sign → compose for one call."""
        contract = contracts.lookup(tool_name)
        wire = self._wire_parameters(contract, raw or {})

        if contract.needs_session and not session_key:
            raise AuthenticationRequired(contract.name)

        params = composer.api_parameters(
            wire, contract, self._credentials.api_key, session_key
        )
        signature = None
        if contract.requires_signature:
            signature = self._signer(
                params, contract.method, self._credentials.api_key, self._credentials.secret
            )

        request = composer.compose(params, contract, signature, self._endpoint)
        logger.debug("Composed %s %s %s", request.http_method, request.method, request.redacted())
        return request

    def call(
        self,
        tool_name: str,
        raw: Optional[Mapping[str, Any]] = None,
        session_key: Optional[str] = None,
    ) -> dict:
        """Compose a request and hand it to the transport.

        Returns:
            The decoded JSON reply from Last.fm.
        """
        if self._transport is None:
            raise RuntimeError("ToolDispatcher.call needs a transport")
        request = self.compose(tool_name, raw, session_key)
        logger.info("→ %s (%s)", request.method, request.http_method)
        return self._transport.send(request)

    def _wire_parameters(self, contract: ToolContract, raw: Mapping[str, Any]) -> dict[str, str]:
        if contract.batch_of is None:
            canonical = merge(contract, validate(contract, raw), self._clock)
            return composer.to_wire(canonical, contract)

        # Batch: every entry follows the single-item contract's shape.
        entry_contract = contracts.lookup(contract.batch_of)
        (spec,) = contract.required
        validated = validate_batch(contract, entry_contract, raw)
        entries = merge_batch(entry_contract, validated[spec.name], self._clock)
        return composer.index_batch(entries, entry_contract)
