# =============================================================================
# core/errors.py  —  Error taxonomy for tool calls
# =============================================================================
#
# A malformed tool call is the AGENT's mistake, not the server's.  These
# errors are raised by the core stages, caught once by the tool layer, and
# handed back to the agent as a plain dict (see `to_dict`) so it can fix
# its arguments and try again.  None of them should ever take the server
# process down.
#
# Validation errors list EVERY violation they found, not just the first:
# each round-trip costs the agent an LLM call.
#
# SignatureComputationFailed is the odd one out.  It is an internal
# invariant violation (the inputs are plain strings; hashing them cannot
# fail), so it is a RuntimeError and is not part of the ToolInputError
# family the tool layer turns into friendly messages.
# =============================================================================


class ToolInputError(Exception):
    """Base class for errors the agent can fix by changing its call."""

    error_type = "invalid_input"

    def to_dict(self) -> dict:
        return {"error": str(self), "error_type": self.error_type}


class UnknownTool(ToolInputError):
    error_type = "unknown_tool"

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = list(available or [])
        super().__init__(f"Unknown tool: {name}")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.available:
            result["available_tools"] = self.available
        return result


class MissingRequired(ToolInputError):
    error_type = "missing_parameters"

    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(
            "Missing required parameter(s): " + ", ".join(self.names)
        )

    def to_dict(self) -> dict:
        return {**super().to_dict(), "missing": self.names}


class TypeMismatch(ToolInputError):
    """One or more parameters could not be coerced to their declared kind.

    `mismatches` is a list of (parameter name, expected description) pairs.
    """

    error_type = "invalid_parameters"

    def __init__(self, mismatches: list[tuple[str, str]]):
        self.mismatches = list(mismatches)
        details = "; ".join(f"'{name}' expected {expected}" for name, expected in self.mismatches)
        super().__init__(f"Invalid parameter type(s): {details}")

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.mismatches]

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "invalid": [{"name": n, "expected": e} for n, e in self.mismatches],
        }


class BatchTooLarge(ToolInputError):
    error_type = "batch_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Batch of {size} entries exceeds the maximum of {limit}; split it into smaller calls"
        )

    def to_dict(self) -> dict:
        return {**super().to_dict(), "size": self.size, "limit": self.limit}


class AuthenticationRequired(ToolInputError):
    error_type = "authentication_required"

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(
            f"'{tool}' changes your Last.fm profile and needs a session. "
            "Call authenticate_user or set_session_key first."
        )


class SignatureComputationFailed(RuntimeError):
    """api_sig could not be computed from the given parameters."""


class ConfigurationError(Exception):
    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Missing required environment variable: {variable}")


class LastFMError(Exception):
    """Last.fm answered, but with an error payload ({"error": N, ...})."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"Last.fm API error {code}: {message}")

    def to_dict(self) -> dict:
        return {"error": str(self), "error_type": "lastfm_error", "code": self.code}


class TransportError(Exception):
    """The request never produced a usable reply (network, HTTP status, body)."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {"error": str(self), "error_type": "transport_error"}
        if self.status is not None:
            result["status"] = self.status
        return result
